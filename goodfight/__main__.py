"""
Run the Good Fight CLI.

Usage:
    python -m goodfight status
"""

import sys

from .interface.cli import main

sys.exit(main())
