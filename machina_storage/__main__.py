"""Allow running as ``python -m machina_storage``."""

import sys

from .cli import main

sys.exit(main())
