"""
Main entry point for tilecraft.

Allows running: python -m tilecraft <command>
"""

import sys
from tilecraft.cli import main

if __name__ == "__main__":
    sys.exit(main())
