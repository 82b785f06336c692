#!/usr/bin/env python3
"""
DualSub Entry Point Script

This script initializes the CLI handler and runs the bilingual subtitle process.
"""

import sys
from dualsub.cli import CLIHandler

if __name__ == "__main__":
    if sys.version_info < (3, 8):
        sys.stderr.write("DualSub requires Python 3.8 or later.\n")
        sys.exit(1)

    cli = CLIHandler()
    cli.run()
