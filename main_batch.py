#!/usr/bin/env python3
"""
CaptionLoop Batch Processing Entry Point

Fetches the transcripts of every YouTube URL listed in a text file.
"""

import sys
from captionloop.batch import run_batch_processing

if __name__ == "__main__":
    if sys.version_info < (3, 8):
        sys.stderr.write("CaptionLoop requires Python 3.8 or later.\n")
        sys.exit(1)

    run_batch_processing()
