"""CLI entry point.

Usage:
    python -m llm_extract extract --shape int
    python -m llm_extract describe 'list[str]'
    python -m llm_extract config
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
