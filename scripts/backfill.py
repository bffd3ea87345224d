"""
Run one backfill job over existing rows.

Usage: python scripts/backfill.py <job>
"""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import argparse

from sourcing.runner import main
from sourcing.services import backfills

JOBS = {
    "locations": backfills.normalize_locations,
    "whop": backfills.update_whop_statuses,
    "github-companies": backfills.resolve_github_companies,
    "twitter-bios": backfills.backfill_twitter_bios,
    "linkedin-urls": backfills.backfill_linkedin_urls,
    "github-images": backfills.backfill_github_images,
    "company-ids": backfills.resolve_company_ids,
    "company-features": backfills.add_company_features,
    "company-technologies": backfills.compute_company_technologies,
}

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run a backfill job")
    parser.add_argument("job", choices=sorted(JOBS))
    args = parser.parse_args()

    main(f"BACKFILL {args.job.upper()}", JOBS[args.job])
