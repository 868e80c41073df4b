from __future__ import annotations

import logging
from typing import Any, Dict

from ..errors import PreconditionFailure
from ..lib.bootloader import build_initramfs, install_efi_entry, kernel_cmdline
from ..lib.chroot import chroot_cmd, interactive_chroot
from ..lib.roles import missing_roles
from ..lib.system import enable_locale, install_pacman_conf, target_path, write_file
from ..pipeline import InstallCtx, PipelineState

logger = logging.getLogger(__name__)


class ChrootHandoffStep:
    step_id = "70_chroot"
    reaches = PipelineState.CHROOT_HANDOFF

    def applies(self, ctx: InstallCtx) -> bool:
        return True

    def _configure_system(self, ctx: InstallCtx) -> None:
        cfg = ctx.cfg
        root = ctx.target_root

        chroot_cmd(ctx.runner, root, ["ln", "-sf", f"/usr/share/zoneinfo/{cfg.timezone}", "/etc/localtime"])
        chroot_cmd(ctx.runner, root, ["hwclock", "--systohc"])

        enable_locale(target_path(root, "/etc/locale.gen"), cfg.locale)
        chroot_cmd(ctx.runner, root, ["locale-gen"])
        write_file(root, "/etc/locale.conf", f"LANG={cfg.locale}\n")
        write_file(root, "/etc/vconsole.conf", f"KEYMAP={cfg.keymap}\n")

    def _apply_roles(self, ctx: InstallCtx) -> None:
        profile = ctx.profile
        missing = missing_roles(ctx.role_set(), ctx.cfg.roles_dir)
        if missing:
            raise PreconditionFailure(f"Role directories missing in {ctx.cfg.roles_dir}: {', '.join(missing)}")

        logger.info("Running user and desktop roles for %s...", profile.name)
        for collection in ctx.cfg.galaxy_collections:
            chroot_cmd(
                ctx.runner,
                ctx.target_root,
                ["ansible-galaxy", "collection", "install", collection, "--force"],
                target=collection,
            )
        chroot_cmd(
            ctx.runner,
            ctx.target_root,
            ["bash", ctx.cfg.configuration_entrypoint],
            target=ctx.cfg.configuration_entrypoint,
        )
        logger.info("User and desktop roles completed for %s.", profile.name)

    def run(self, ctx: InstallCtx) -> Dict[str, Any]:
        cfg = ctx.cfg
        profile = ctx.profile
        root = ctx.target_root
        logger.info("Configuring system inside chroot...")

        install_pacman_conf(ctx.runner, cfg.pacman_conf, root)
        self._configure_system(ctx)

        install_efi_entry(
            ctx.runner,
            target_root=root,
            disk=profile.boot_disk,
            kernel=profile.kernel,
            cmdline=kernel_cmdline(cfg.kernel_cmdline, profile.kernel, microcode_image=cfg.microcode_image),
            label=cfg.boot_label,
        )
        build_initramfs(ctx.runner, target_root=root, kernel=profile.kernel)
        logger.info("Automated chroot configuration complete.")

        if profile.flags.is_workstation:
            self._apply_roles(ctx)

        rc = interactive_chroot(ctx.runner, root)
        return {"boot_disk": profile.boot_disk, "roles_applied": profile.flags.is_workstation, "interactive_exit": rc}
