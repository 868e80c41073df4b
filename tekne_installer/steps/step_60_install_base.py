from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

from ..errors import PreconditionFailure
from ..lib import storage
from ..lib.fstab import generate_fstab
from ..lib.net import wait_for_network
from ..lib.pkg import host_packages, pacstrap, refresh_mirrors, sync_databases, write_pacman_conf
from ..lib.system import (
    enable_locale,
    force_symlink,
    install_pacman_conf,
    target_path,
    write_file,
    write_host_identity,
)
from ..pipeline import InstallCtx, PipelineState

logger = logging.getLogger(__name__)


class InstallBaseStep:
    step_id = "60_install_base"
    reaches = PipelineState.BASE_INSTALLED

    def applies(self, ctx: InstallCtx) -> bool:
        return True

    def _mount_aux(self, ctx: InstallCtx) -> List[str]:
        mounted = []
        for aux in ctx.profile.aux_mounts:
            if not storage.block_device_present(aux.device):
                if aux.required:
                    raise PreconditionFailure(f"Required partition {aux.device} not found")
                logger.warning("%s not found, skipping %s mount.", aux.device, aux.mountpoint)
                continue
            where = storage.mount_path(ctx.target_root, aux.mountpoint)
            logger.info("Mounting auxiliary partition %s -> %s", aux.device, where)
            ctx.runner.run(["/usr/bin/mkdir", "-p", where], target=aux.device)
            ctx.runner.run(["mount", aux.device, where], target=aux.device)
            mounted.append(where)
        return mounted

    def run(self, ctx: InstallCtx) -> Dict[str, Any]:
        cfg = ctx.cfg
        profile = ctx.profile
        root = ctx.target_root
        logger.info("Starting system installation...")

        enable_locale(Path(cfg.locale_gen), cfg.locale)
        write_pacman_conf(cfg, profile)
        refresh_mirrors(ctx.runner, cfg)

        # Long disk operations may have dropped the link.
        wait_for_network(
            ctx.runner,
            address=cfg.probe_address,
            max_attempts=cfg.probe_attempts,
            interval=cfg.probe_interval,
            sleep=ctx.sleep,
        )
        ctx.runner.run(["/usr/bin/timedatectl", "set-ntp", "true"], target="ntp")

        sync_databases(ctx.runner)
        packages = host_packages(profile, ctx.base_packages)
        pacstrap(ctx.runner, root, packages)

        generate_fstab(ctx.runner, root)

        force_symlink(target_path(root, "/usr/bin/vi"), "/usr/bin/vim")
        force_symlink(target_path(root, "/etc/resolv.conf"), "/run/systemd/resolve/stub-resolv.conf")

        install_pacman_conf(ctx.runner, cfg.pacman_conf, root, backup=True)
        write_host_identity(root, profile.name, cfg.domain)

        aux = self._mount_aux(ctx)

        if profile.flags.has_raid:
            logger.info("Configuring mdadm for RAID...")
            r = ctx.runner.run(["mdadm", "--detail", "--scan"], target="mdadm")
            write_file(root, "/etc/mdadm.conf", r.stdout, append=True)

        logger.info("Installation complete. Configuring chroot...")
        return {"kernel": profile.kernel, "package_count": len(packages), "aux_mounted": aux}
