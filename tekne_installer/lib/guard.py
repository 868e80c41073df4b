from __future__ import annotations

import logging
import sys
from typing import Callable, Protocol, TextIO

from ..errors import UserAborted
from .hosts import HostProfile

logger = logging.getLogger(__name__)

CONFIRMATION = "YES"


class ConfirmPort(Protocol):
    """Gate in front of every block-device-altering phase."""

    def confirm(self, action: str, profile: HostProfile) -> None:
        ...


def render_warning(action: str, profile: HostProfile) -> str:
    bar = "+" + "-" * 56 + "+"
    return "\n".join(
        [
            "",
            bar,
            "|  WARNING: DESTRUCTIVE OPERATION".ljust(57) + "|",
            bar,
            f"|  Action: {action}",
            f"|  Host:   {profile.name}",
            f"|  Drives: {' '.join(profile.drives)}",
            bar,
            "",
        ]
    )


class InteractiveConfirm:
    """Ask the operator to type the literal confirmation string."""

    def __init__(self, *, input_fn: Callable[[str], str] = input, out: TextIO | None = None) -> None:
        self._input = input_fn
        self._out = out

    def confirm(self, action: str, profile: HostProfile) -> None:
        out = self._out or sys.stdout
        out.write(render_warning(action, profile) + "\n")
        out.flush()
        try:
            answer = self._input(f"Type '{CONFIRMATION}' to continue: ")
        except EOFError:
            answer = ""
        if answer != CONFIRMATION:
            logger.info("Operation cancelled by user.")
            raise UserAborted(f"{action}: cancelled by user")
        logger.info("Confirmed: %s on %s", action, profile.name)


class AutoConfirm:
    """Non-interactive port for automated runs; records what it approved."""

    def __init__(self) -> None:
        self.confirmed: list[str] = []

    def confirm(self, action: str, profile: HostProfile) -> None:
        logger.info("Auto-confirmed: %s on %s", action, profile.name)
        self.confirmed.append(action)
