from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.net import connect_wifi, wait_for_network
from ..lib.pkg import refresh_mirrors, write_pacman_conf
from ..lib.roles import ensure_git, sync
from ..pipeline import InstallCtx, PipelineState

logger = logging.getLogger(__name__)


class NetworkReadyStep:
    step_id = "10_network"
    reaches = PipelineState.NETWORK_READY

    def applies(self, ctx: InstallCtx) -> bool:
        return True

    def run(self, ctx: InstallCtx) -> Dict[str, Any]:
        cfg = ctx.cfg
        profile = ctx.profile

        wifi_attempt = None
        if profile.flags.requires_wifi:
            wifi_attempt = connect_wifi(
                ctx.runner,
                interface=cfg.wifi_interface,
                network=cfg.wifi_network,
                max_attempts=cfg.wifi_attempts,
                interval=cfg.wifi_interval,
                sleep=ctx.sleep,
            )

        probe_attempt = wait_for_network(
            ctx.runner,
            address=cfg.probe_address,
            max_attempts=cfg.probe_attempts,
            interval=cfg.probe_interval,
            sleep=ctx.sleep,
        )

        write_pacman_conf(cfg, profile)
        refresh_mirrors(ctx.runner, cfg)

        logger.info("Downloading Ansible roles...")
        ensure_git(ctx.runner)

        report = sync(ctx.roles.get("common") or [], cfg.roles_dir, ctx.runner)
        if profile.flags.is_workstation:
            logger.info("Downloading workstation roles for %s...", profile.name)
            report = report.merge(sync(ctx.roles.get("workstation") or [], cfg.roles_dir, ctx.runner))
        logger.info("Ansible roles downloaded to: %s", cfg.roles_dir)

        return {
            "wifi_attempt": wifi_attempt,
            "probe_attempt": probe_attempt,
            "roles_cloned": report.cloned,
            "roles_updated": report.updated,
        }
