#!/usr/bin/env python3
import sys
import os

# Run from a checkout without installing: put the repo root on sys.path so 'mdfetch' imports
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from mdfetch.main import main
from mdfetch.screen import main as screen_main

if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "screen":
        screen_main(sys.argv[2:])
    else:
        main()
