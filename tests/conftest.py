from __future__ import annotations

import os
import sys
from pathlib import Path


def pytest_configure():
    # Project root on sys.path for 'sourcing' imports without an install
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    os.environ.setdefault("LOG_LEVEL", "DEBUG")
