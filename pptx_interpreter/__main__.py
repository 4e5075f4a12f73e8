"""
Entry point for running pptx_interpreter as a module.

Usage:
    python -m pptx_interpreter inventory deck.pptx --output inventory.json
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main() or 0)
