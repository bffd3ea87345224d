"""
Upsert candidate vectors still pending: averaged skill / feature / job title
vectors and the per-item technology / job title vectors.

Usage: python scripts/embed_averages.py [skills|features|job-titles|technology-items|job-title-items|all]
"""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import argparse

from sourcing.runner import main
from sourcing.services.matching.vector_upsert import (
    embed_feature_averages,
    embed_job_title_averages,
    embed_skill_averages,
    upsert_job_title_items,
    upsert_technology_items,
)

JOBS = {
    "skills": embed_skill_averages,
    "features": embed_feature_averages,
    "job-titles": embed_job_title_averages,
    "technology-items": upsert_technology_items,
    "job-title-items": upsert_job_title_items,
}


async def run_all(clients):
    report = None
    for job in JOBS.values():
        result = await job(clients)
        report = result if report is None else report.merge(result)
    return report


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Embed pending candidate vectors")
    parser.add_argument("kind", nargs="?", default="all", choices=[*JOBS, "all"])
    args = parser.parse_args()

    job = run_all if args.kind == "all" else JOBS[args.kind]
    main(f"EMBED VECTORS ({args.kind})", job)
