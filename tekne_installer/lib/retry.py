from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from ..errors import NetworkUnavailable

logger = logging.getLogger(__name__)

FATAL = "fatal"
WARN = "warn"


def retry_until(
    probe: Callable[[], bool],
    *,
    attempts: int,
    interval: float,
    on_exhausted: str = FATAL,
    describe: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
) -> Optional[int]:
    """Call ``probe`` until it returns True, at most ``attempts`` times.

    attempts: upper bound on probe calls
    interval: seconds slept between a failed attempt and the next one
    on_exhausted: "fatal" raises NetworkUnavailable, "warn" logs and returns None

    Returns the 1-based attempt that succeeded. There is no sleep after a
    success or after the last failed attempt.
    """

    if attempts < 1:
        raise ValueError("attempts must be >= 1")
    if on_exhausted not in (FATAL, WARN):
        raise ValueError(f"on_exhausted must be {FATAL!r} or {WARN!r}")

    for attempt in range(1, attempts + 1):
        if probe():
            return attempt
        if attempt < attempts:
            logger.info("%s attempt %d/%d failed, retrying in %ss...", describe, attempt, attempts, interval)
            sleep(interval)

    msg = f"{describe} failed after {attempts} attempts"
    if on_exhausted == FATAL:
        raise NetworkUnavailable(msg)
    logger.warning("%s. Continuing.", msg)
    return None
