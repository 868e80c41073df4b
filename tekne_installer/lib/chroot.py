from __future__ import annotations

import logging
from typing import Sequence

from .command import CmdResult, CommandRunner

logger = logging.getLogger(__name__)


def chroot_cmd(
    runner: CommandRunner,
    target_root: str,
    argv: Sequence[str],
    *,
    target: str | None = None,
    check: bool = True,
) -> CmdResult:
    """Run a command inside the target root (arch-chroot sets up the API mounts)."""

    return runner.run(["arch-chroot", target_root, *argv], target=target or argv[0], check=check)


def interactive_chroot(runner: CommandRunner, target_root: str) -> int:
    """Hand the terminal to the operator; the exit status is informational."""

    logger.info("Entering interactive chroot for password setup...")
    r = runner.run(["arch-chroot", target_root], target=target_root, check=False, interactive=True)
    logger.info("Interactive chroot session ended (exit %d).", r.returncode)
    return r.returncode
