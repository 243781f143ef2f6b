"""Small shared helpers."""

from __future__ import annotations

import contextlib
import logging
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


@contextlib.contextmanager
def benchmark(logger: logging.Logger, level: int, message: str) -> Iterator[None]:
    """Log *message* with the elapsed time once the block completes."""
    start = time.perf_counter()
    yield
    logger.log(level, "%s in %.2fs", message, time.perf_counter() - start)


def log_failure(
    logger: logging.Logger, message: str, error: BaseException, *, trace: bool
) -> None:
    """Log a swallowed error, with its traceback only when *trace* is set."""
    logger.error("%s: %s", message, error, exc_info=error if trace else None)
