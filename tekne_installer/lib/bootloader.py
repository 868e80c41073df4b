from __future__ import annotations

import logging
from typing import List, Optional

from .chroot import chroot_cmd
from .command import CommandRunner

logger = logging.getLogger(__name__)


def kernel_cmdline(base: str, kernel: str, *, microcode_image: Optional[str] = None) -> str:
    """Insert the initrd entries right after the root/rw arguments."""

    initrds = [f"initrd=\\{microcode_image}"] if microcode_image else []
    initrds.append(f"initrd=\\initramfs-{kernel}.img")

    tokens: List[str] = base.split()
    at = tokens.index("rw") + 1 if "rw" in tokens else len(tokens)
    return " ".join(tokens[:at] + initrds + tokens[at:])


def install_efi_entry(
    runner: CommandRunner,
    *,
    target_root: str,
    disk: str,
    kernel: str,
    cmdline: str,
    label: str = "BOOT",
) -> None:
    """Create the EFISTUB boot entry on partition 1 of ``disk``."""

    # A stale entry 0 may or may not exist.
    chroot_cmd(runner, target_root, ["/usr/bin/efibootmgr", "-B", "-b", "0"], target=disk, check=False)
    chroot_cmd(
        runner,
        target_root,
        [
            "/usr/bin/efibootmgr",
            "--disk",
            disk,
            "--part",
            "1",
            "--create",
            "--label",
            label,
            "--loader",
            f"/vmlinuz-{kernel}",
            "--unicode",
            f" {cmdline}",
        ],
        target=disk,
    )
    logger.info("EFI boot entry %s created on %s", label, disk)


def build_initramfs(runner: CommandRunner, *, target_root: str, kernel: str) -> None:
    chroot_cmd(runner, target_root, ["mkinitcpio", "-p", kernel], target=kernel)
