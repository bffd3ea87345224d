"""
Shared entry point for the job scripts.

Builds the clients once, runs one job, prints a summary banner and turns
failures into a non-zero exit code.
"""

import asyncio
import sys
from typing import Awaitable, Callable

from .logging_setup import init_logging
from .services.batching import BatchReport
from .services.clients import Clients, build_clients

Job = Callable[[Clients], Awaitable[BatchReport]]


def print_report(title: str, report: BatchReport) -> None:
    print(f"\n{'='*60}")
    print(f"[{title}] COMPLETE")
    print(f"  - Total: {report.total}")
    print(f"  - Succeeded: {report.succeeded}")
    print(f"  - Skipped: {report.skipped}")
    print(f"  - Failed: {report.failed}")
    print(f"{'='*60}\n")


async def run_job(title: str, job: Job) -> int:
    print("=" * 60)
    print(title)
    print("=" * 60)

    clients = build_clients()
    try:
        report = await job(clients)
    finally:
        await clients.aclose()

    print_report(title, report)
    return 0 if report.ok else 1


def main(title: str, job: Job) -> None:
    init_logging()
    sys.exit(asyncio.run(run_job(title, job)))
