"""tar2zip - Package entry point.

Enables running the tool with:

    python -m tar2zip FILE...
"""

from __future__ import annotations

import sys

from tar2zip.cli import main

if __name__ == "__main__":
    sys.exit(main())
