"""
Main entry point for running the package as a module.

Usage:
    python -m imgstore upload photo.jpg --folder blog
    python -m imgstore list --folder blog
    python -m imgstore stats --json
    python -m imgstore delete blog/2026/10/1760000000000-abc123.webp
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
