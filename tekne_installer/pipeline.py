from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Protocol, Sequence

from .config import InstallerConfig
from .lib.command import CommandRunner
from .lib.guard import ConfirmPort
from .lib.hosts import HostProfile
from .lib.roles import RoleRepository

logger = logging.getLogger(__name__)


class PipelineState(str, enum.Enum):
    INIT = "Init"
    NETWORK_READY = "NetworkReady"
    FORMATTED = "Formatted"
    PARTITIONED = "Partitioned"
    FILESYSTEMS_BUILT = "FilesystemsBuilt"
    MOUNTED = "Mounted"
    BASE_INSTALLED = "BaseInstalled"
    CHROOT_HANDOFF = "ChrootHandoff"
    DONE = "Done"
    FAILED = "Failed"


@dataclass(frozen=True)
class InstallCtx:
    profile: HostProfile
    cfg: InstallerConfig
    runner: CommandRunner
    confirm: ConfirmPort
    roles: Dict[str, List[RoleRepository]]
    base_packages: List[str]
    sleep: Callable[[float], None] = time.sleep

    @property
    def target_root(self) -> str:
        return self.cfg.target_root

    def role_set(self) -> List[RoleRepository]:
        """Every role repository this host needs, in sync order."""

        repos = list(self.roles.get("common") or [])
        if self.profile.flags.is_workstation:
            repos += list(self.roles.get("workstation") or [])
        return repos


class Step(Protocol):
    """A single forward transition of the install."""

    step_id: str
    reaches: PipelineState

    def applies(self, ctx: InstallCtx) -> bool:
        ...

    def run(self, ctx: InstallCtx) -> Dict[str, Any]:
        ...


@dataclass
class PipelineResult:
    state: PipelineState = PipelineState.INIT
    ran_steps: List[str] = field(default_factory=list)
    skipped_steps: List[str] = field(default_factory=list)
    decisions: Dict[str, Any] = field(default_factory=dict)
    failed_step: str | None = None


def run_pipeline(
    *,
    ctx: InstallCtx,
    steps: Sequence[Step],
    result: PipelineResult | None = None,
) -> PipelineResult:
    """Run steps strictly in order; the first failure stops everything.

    There is no rollback: devices stay in whatever state the failing step
    left them in. Pass ``result`` to inspect progress after a failure.
    """

    if result is None:
        result = PipelineResult()

    for step in steps:
        if not step.applies(ctx):
            logger.info("Skipping step %s (not applicable to %s)", step.step_id, ctx.profile.name)
            result.skipped_steps.append(step.step_id)
            result.state = step.reaches
            continue

        logger.info("Running step %s", step.step_id)
        try:
            decisions = step.run(ctx)
        except Exception:
            result.failed_step = step.step_id
            result.state = PipelineState.FAILED
            logger.error("Step %s failed on %s", step.step_id, ctx.profile.name)
            raise
        result.ran_steps.append(step.step_id)
        if decisions:
            result.decisions[step.step_id] = decisions
        result.state = step.reaches
        logger.info("%s: %s", ctx.profile.name, result.state.value)

    result.state = PipelineState.DONE
    return result
