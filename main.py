#!/usr/bin/env python3
"""Run DocMirror from a source checkout: python3 main.py [options]"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "src"))

from doc_mirror.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
