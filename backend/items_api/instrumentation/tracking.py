"""Timing and outcome accounting for named storage operations."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from .metrics import DB_OPERATION_DURATION_SECONDS, DB_OPERATIONS_TOTAL

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def _record_operation(operation: str, status: str, elapsed: float) -> None:
    try:
        DB_OPERATION_DURATION_SECONDS.labels(operation).observe(elapsed)
        DB_OPERATIONS_TOTAL.labels(operation, status).inc()
    except Exception:
        LOGGER.exception(
            "Failed to record metrics for operation %s",
            operation,
            extra={"operation": operation, "status": status},
        )


@contextmanager
def track_operation(operation: str) -> Iterator[None]:
    """Time the enclosed block and count it as ``success`` or ``error``.

    Exceptions raised inside the block propagate unchanged.

    Usage:
        with track_operation("get_items"):
            items = await repo.list_items()
    """
    start = time.perf_counter()
    status = "error"
    try:
        yield
        status = "success"
    finally:
        _record_operation(operation, status, time.perf_counter() - start)


async def tracked(operation: str, work: Callable[[], Awaitable[T]]) -> T:
    with track_operation(operation):
        return await work()
