"""Allow running socialink as a module: python -m socialink."""

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())
