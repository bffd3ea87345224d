"""
Batch Orchestrator - SELECT -> CHUNK -> PROCESS -> DELAY over large row sets.

Rows are collected up front with limit/offset paging, then processed in
fixed-size chunks. All items of a chunk run concurrently and the whole chunk
finishes before the pause and the next chunk. A failing item is logged and
counted; it never aborts the chunk or the run.

Worker contract: return True (done), False (failed, already logged) or
None (deliberately skipped).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 1000


@dataclass
class BatchReport:
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def merge(self, other: "BatchReport") -> "BatchReport":
        return BatchReport(
            total=self.total + other.total,
            succeeded=self.succeeded + other.succeeded,
            failed=self.failed + other.failed,
            skipped=self.skipped + other.skipped,
        )


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """Split items into consecutive lists of at most ``size`` elements."""
    if size < 1:
        raise ValueError("batch size must be positive")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


async def collect_rows(
    fetch_page: Callable[[int, int], Awaitable[List[T]]],
    page_size: int = DEFAULT_PAGE_SIZE,
) -> List[T]:
    """
    Page through a source until a short page comes back.

    Args:
        fetch_page: ``(limit, offset) -> rows``
        page_size: Rows per page
    """
    rows: List[T] = []
    offset = 0
    while True:
        page = await fetch_page(page_size, offset)
        rows.extend(page)
        if len(page) < page_size:
            return rows
        offset += page_size


async def _run_item(
    worker: Callable[[T], Awaitable[Optional[bool]]], item: T, label: str
) -> Optional[bool]:
    try:
        return await worker(item)
    except Exception as e:
        logger.error("[%s] Item failed: %s", label, e, exc_info=True)
        return False


async def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[Optional[bool]]],
    batch_size: int,
    delay_seconds: float = 0.0,
    label: str = "Batch",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> BatchReport:
    """
    Run ``worker`` over ``items`` chunk by chunk.

    Returns:
        BatchReport with per-outcome counts
    """
    report = BatchReport(total=len(items))
    batches = chunk(items, batch_size)

    for index, batch in enumerate(batches):
        logger.info(
            "[%s] Processing batch %d of %d (%d items)...", label, index + 1, len(batches), len(batch)
        )
        outcomes = await asyncio.gather(*[_run_item(worker, item, label) for item in batch])

        for outcome in outcomes:
            if outcome is None:
                report.skipped += 1
            elif outcome:
                report.succeeded += 1
            else:
                report.failed += 1

        if delay_seconds and index < len(batches) - 1:
            logger.info("[%s] Waiting %s seconds before next batch...", label, delay_seconds)
            await sleep(delay_seconds)

    logger.info(
        "[%s] COMPLETE - %d ok, %d failed, %d skipped of %d",
        label, report.succeeded, report.failed, report.skipped, report.total,
    )
    return report
