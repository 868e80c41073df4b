from __future__ import annotations

import argparse
import logging
import os
from typing import List, Optional

from .config import InstallerConfig, load_installer_config
from .errors import ProvisionError, PreconditionFailure
from .lib.command import CommandRunner
from .lib.guard import ConfirmPort, InteractiveConfirm
from .lib.hosts import VALID_HOSTS, HostProfile, resolve
from .lib.pkg import load_base_packages
from .lib.roles import load_role_sets
from .logging_utils import DEFAULT_LOG_DIR, configure_logging, run_log_path
from .pipeline import InstallCtx, PipelineResult, run_pipeline
from .steps import (
    ChrootHandoffStep,
    CreateFilesystemsStep,
    FormatDrivesStep,
    InstallBaseStep,
    MountFilesystemsStep,
    NetworkReadyStep,
    PartitionDrivesStep,
)

logger = logging.getLogger(__name__)


def build_steps():
    return [
        NetworkReadyStep(),
        FormatDrivesStep(),
        PartitionDrivesStep(),
        CreateFilesystemsStep(),
        MountFilesystemsStep(),
        InstallBaseStep(),
        ChrootHandoffStep(),
    ]


def require_root() -> None:
    if os.geteuid() != 0:
        raise PreconditionFailure("This script must be run as root.")


def log_banner(profile: HostProfile, log_path: str) -> None:
    logger.info("=" * 45)
    logger.info("Arch Linux Installation Script")
    logger.info("Host: %s", profile.name)
    logger.info("Log: %s", log_path)
    logger.info("=" * 45)


def run_install(
    profile: HostProfile,
    cfg: InstallerConfig,
    *,
    runner: Optional[CommandRunner] = None,
    confirm: Optional[ConfirmPort] = None,
) -> PipelineResult:
    """Drive every phase for ``profile`` against the live system."""

    ctx = InstallCtx(
        profile=profile,
        cfg=cfg,
        runner=runner or CommandRunner(),
        confirm=confirm or InteractiveConfirm(),
        roles=load_role_sets(),
        base_packages=load_base_packages(),
    )
    result = run_pipeline(ctx=ctx, steps=build_steps())
    logger.info("Installation completed for %s.", profile.name)
    return result


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="tekne-installer",
        description="Provision a bare-metal Arch Linux host from the live ISO.",
        epilog=f"Valid hosts: {' '.join(VALID_HOSTS)}",
    )
    p.add_argument("host", metavar="HOST", help="Host to install")
    args = p.parse_args(argv)

    try:
        require_root()
    except PreconditionFailure as e:
        configure_logging(run_log_path(DEFAULT_LOG_DIR))
        logger.error("%s", e)
        return 1

    try:
        cfg = load_installer_config()
    except ProvisionError as e:
        configure_logging(run_log_path(DEFAULT_LOG_DIR))
        logger.error("%s", e)
        return 1

    log_path = configure_logging(run_log_path(cfg.log_dir))

    try:
        profile = resolve(args.host)
    except ProvisionError as e:
        logger.error("%s", e)
        return 1

    log_banner(profile, log_path)
    try:
        run_install(profile, cfg)
    except ProvisionError as e:
        logger.error("%s", e)
        logger.info("Log file: %s", log_path)
        return 1
    except Exception:
        logger.exception("Installer failed")
        raise

    logger.info("Log file: %s", log_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
