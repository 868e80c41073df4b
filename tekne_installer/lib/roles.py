"""Role repository sync.

Clones missing role repositories and fast-forwards existing ones, in
declared order. The first failure aborts the whole sync: later phases
cannot run with a partial role set.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..config import MANIFEST_DIR, load_yaml
from ..errors import ConfigError
from .command import CommandRunner

logger = logging.getLogger(__name__)

DEFAULT_ROLES_MANIFEST = MANIFEST_DIR / "roles.yaml"
COMMON = "common"
WORKSTATION = "workstation"


@dataclass(frozen=True)
class RoleRepository:
    url: str
    group: str = COMMON

    @property
    def name(self) -> str:
        return self.url.rstrip("/").rsplit("/", 1)[-1].removesuffix(".git")

    def local_path(self, roles_dir: str) -> Path:
        return Path(roles_dir) / self.name


@dataclass
class SyncReport:
    cloned: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)

    @property
    def synced(self) -> List[str]:
        return self.cloned + self.updated

    def merge(self, other: "SyncReport") -> "SyncReport":
        return SyncReport(cloned=self.cloned + other.cloned, updated=self.updated + other.updated)


def load_role_sets(path: Optional[str] = None) -> Dict[str, List[RoleRepository]]:
    p = Path(path) if path else DEFAULT_ROLES_MANIFEST
    raw = load_yaml(p)
    sets: Dict[str, List[RoleRepository]] = {}
    for group in (COMMON, WORKSTATION):
        urls = raw.get(group)
        if urls is None:
            urls = []
        if not isinstance(urls, list):
            raise ConfigError(f"{p}: '{group}' must be a list of repository URLs")
        sets[group] = [RoleRepository(url=str(u), group=group) for u in urls]
    if not sets[COMMON]:
        raise ConfigError(f"{p}: the common role set is empty")
    return sets


def ensure_git(runner: CommandRunner) -> None:
    if shutil.which("git"):
        return
    logger.info("git not found, installing...")
    runner.run(["pacman", "-Sy", "--noconfirm", "git"], target="git")


def sync_repository(repo: RoleRepository, roles_dir: str, runner: CommandRunner, report: SyncReport) -> None:
    target_dir = repo.local_path(roles_dir)
    if target_dir.is_dir():
        logger.info("Role '%s' already exists, pulling latest...", repo.name)
        runner.run(["git", "-C", str(target_dir), "pull", "--rebase", "-q"], target=repo.name)
        report.updated.append(repo.name)
        logger.info("Role '%s' updated.", repo.name)
    else:
        logger.info("Cloning '%s' from %s ...", repo.name, repo.url)
        runner.run(["git", "clone", repo.url, str(target_dir)], target=repo.name)
        report.cloned.append(repo.name)
        logger.info("Role '%s' cloned successfully.", repo.name)


def sync(repos: Sequence[RoleRepository], roles_dir: str, runner: CommandRunner) -> SyncReport:
    """Materialize every repository under ``roles_dir``; fail fast."""

    Path(roles_dir).mkdir(parents=True, exist_ok=True)
    report = SyncReport()
    for repo in repos:
        sync_repository(repo, roles_dir, runner, report)
    return report


def missing_roles(repos: Sequence[RoleRepository], roles_dir: str) -> List[str]:
    return [r.name for r in repos if not r.local_path(roles_dir).is_dir()]
