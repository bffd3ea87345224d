"""
Scrape LinkedIn profiles for people with a LinkedIn URL and add them as candidates.

Usage: python scripts/add_candidates.py
"""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sourcing.runner import main
from sourcing.services.enrichment import add_candidates

if __name__ == "__main__":
    main("ADD CANDIDATES", add_candidates)
