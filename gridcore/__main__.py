"""Allow ``python -m gridcore``."""

import sys

from .cli import main


sys.exit(main())
