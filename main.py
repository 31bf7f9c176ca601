#!/usr/bin/env python3
"""
CaptionLoop Entry Point Script

This script initializes the CLI handler and fetches the transcript of one video.
"""

import sys
from captionloop.cli import CLIHandler

if __name__ == "__main__":
    if sys.version_info < (3, 8):
        sys.stderr.write("CaptionLoop requires Python 3.8 or later.\n")
        sys.exit(1)

    cli = CLIHandler()
    cli.run()
