"""``python -m fishbowl`` entry point."""

import sys

from fishbowl.cli import main

sys.exit(main())
