"""Entry point: python -m releaseos."""

import sys

from releaseos.cli import main

if __name__ == "__main__":
    sys.exit(main())
