from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from .command import CommandRunner
from .retry import FATAL, WARN, retry_until

logger = logging.getLogger(__name__)

PROBE_ATTEMPTS = 30
PROBE_INTERVAL = 2.0
WIFI_ATTEMPTS = 6
WIFI_INTERVAL = 5.0


def is_online(runner: CommandRunner, *, address: str = "1.1.1.1") -> bool:
    """Single low-latency reachability probe."""

    r = runner.run(["ping", "-c", "1", "-W", "2", address], target=address, check=False)
    return r.ok


def wait_for_network(
    runner: CommandRunner,
    *,
    address: str = "1.1.1.1",
    max_attempts: int = PROBE_ATTEMPTS,
    interval: float = PROBE_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Block until ``address`` answers; NetworkUnavailable on exhaustion."""

    logger.info("Waiting for network connectivity...")
    attempt = retry_until(
        lambda: is_online(runner, address=address),
        attempts=max_attempts,
        interval=interval,
        on_exhausted=FATAL,
        describe=f"Reachability probe to {address}",
        sleep=sleep,
    )
    logger.info("Network is up (attempt %d/%d).", attempt, max_attempts)
    return int(attempt or 0)


def connect_wifi(
    runner: CommandRunner,
    *,
    interface: str = "wlan0",
    network: str = "esher",
    max_attempts: int = WIFI_ATTEMPTS,
    interval: float = WIFI_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
) -> Optional[int]:
    """Associate with the wireless network; exhaustion only warns."""

    logger.info("Trying to connect %s to WiFi network %s...", interface, network)

    def _associate() -> bool:
        r = runner.run(
            ["/usr/bin/iwctl", "station", interface, "connect", network],
            target=interface,
            check=False,
        )
        return r.ok

    attempt = retry_until(
        _associate,
        attempts=max_attempts,
        interval=interval,
        on_exhausted=WARN,
        describe=f"WiFi association ({network})",
        sleep=sleep,
    )
    if attempt is not None:
        logger.info("WiFi connection initiated (attempt %d/%d); waiting for DHCP and routing...", attempt, max_attempts)
        sleep(interval)
    return attempt
