#!/usr/bin/env python3
"""
Script entry point for running from a checkout without installing.
"""

import sys
from pathlib import Path

# Add src to Python path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from presentation.cli import main

if __name__ == '__main__':
    sys.exit(main())
