"""
Embed X bios into the x-bio namespace.

Usage: python scripts/upsert_x_bios.py
"""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sourcing.runner import main
from sourcing.services.matching.vector_upsert import upsert_x_bios

if __name__ == "__main__":
    main("UPSERT X BIOS", upsert_x_bios)
