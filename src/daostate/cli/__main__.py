"""Main entry point for the daostate CLI when run as a module."""

import sys

from daostate.cli import main

if __name__ == "__main__":
    sys.exit(main())
