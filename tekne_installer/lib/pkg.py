from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from ..config import MANIFEST_DIR, InstallerConfig, load_yaml
from ..errors import ConfigError
from .command import CommandRunner
from .hosts import HostProfile

logger = logging.getLogger(__name__)

DEFAULT_PACKAGES_MANIFEST = MANIFEST_DIR / "packages.yaml"
PACMAN_CONF_ASSET = Path(__file__).resolve().parents[1] / "assets/pacman.conf"


def pacman_conf_template() -> str:
    return PACMAN_CONF_ASSET.read_text(encoding="utf-8")


def render_pacman_conf(cfg: InstallerConfig, profile: HostProfile) -> str:
    """pacman.conf for the live system and the target.

    Every host except the one serving it pulls from the local repository.
    """

    text = pacman_conf_template()
    if not profile.flags.serves_package_repo:
        text += (
            f"\n[{cfg.local_repo_name}]\n"
            f"SigLevel = {cfg.local_repo_siglevel}\n"
            f"Server = {cfg.local_repo_server}\n"
        )
    return text


def write_pacman_conf(cfg: InstallerConfig, profile: HostProfile) -> None:
    logger.info("Configuring pacman.conf...")
    p = Path(cfg.pacman_conf)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(render_pacman_conf(cfg, profile), encoding="utf-8")
    logger.info("pacman.conf configured.")


def refresh_mirrors(runner: CommandRunner, cfg: InstallerConfig) -> None:
    if not cfg.reflector_args:
        return
    runner.run(["/usr/bin/reflector", *cfg.reflector_args], target="mirrorlist")


def sync_databases(runner: CommandRunner) -> None:
    logger.info("Synchronizing package databases...")
    runner.run(["pacman", "-Syy"], target="pacman")


def load_base_packages(path: Optional[str] = None) -> List[str]:
    p = Path(path) if path else DEFAULT_PACKAGES_MANIFEST
    raw = load_yaml(p)
    groups = raw.get("base")
    if not isinstance(groups, dict) or not groups:
        raise ConfigError(f"{p}: 'base' must map group names to package lists")
    packages: List[str] = []
    for name, items in groups.items():
        if not isinstance(items, list):
            raise ConfigError(f"{p}: package group '{name}' must be a list")
        packages.extend(str(i) for i in items if str(i) not in packages)
    return packages


def host_packages(profile: HostProfile, base: Sequence[str]) -> List[str]:
    """Common packages plus the host's kernel, headers and firmware picks."""

    out = list(base)
    for pkg in [*profile.extra_packages, profile.kernel, f"{profile.kernel}-headers"]:
        if pkg not in out:
            out.append(pkg)
    return out


def pacstrap(runner: CommandRunner, target_root: str, packages: Sequence[str]) -> None:
    logger.info("Installing base system with pacstrap (%d packages)...", len(packages))
    runner.run(["/usr/bin/pacstrap", "-K", target_root, *packages], target=target_root)
