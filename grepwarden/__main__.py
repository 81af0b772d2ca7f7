"""
Entry point for running grepwarden as a module.

Usage:
    python -m grepwarden scan .
    python -m grepwarden --help
"""

import sys
from grepwarden.cli import main

if __name__ == "__main__":
    sys.exit(main())
