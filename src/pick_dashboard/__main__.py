"""
Package entry point for python -m execution.

USAGE:
    python -m pick_dashboard dashboard # Launch web dashboard
    python -m pick_dashboard export    # Write a CSV export
    python -m pick_dashboard init-db   # Create database schema
"""

import sys

from pick_dashboard.cli import main

if __name__ == "__main__":
    sys.exit(main())
