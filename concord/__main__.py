#!/usr/bin/env python3
"""
Enable running concord via: python -m concord

Usage:
    python -m concord compute --snapshot diagram.json --responses general.json
    python -m concord fetch --survey-id S1 --project-id P1
"""

import sys

from concord.cli import main

if __name__ == "__main__":
    sys.exit(main())
