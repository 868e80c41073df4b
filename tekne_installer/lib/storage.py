from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from ..errors import ConfigError
from .command import CommandRunner
from .hosts import FormatTarget, MountTarget, NvmeFormat, PartitionTarget

logger = logging.getLogger(__name__)

F2FS_FEATURES = "extra_attr,inode_checksum,sb_checksum,compression"


def dev(name: str) -> str:
    return name if name.startswith("/dev/") else f"/dev/{name}"


def format_nvme(runner: CommandRunner, drive: str, params: NvmeFormat) -> None:
    """Low-level NVMe format (namespace 1) with the host's LBA format."""

    logger.info("Formatting NVMe drive: %s", dev(drive))
    runner.run(
        [
            "nvme",
            "format",
            dev(drive),
            "--namespace-id=1",
            f"--lbaf={params.lbaf}",
            f"--ses={params.ses}",
            "--ms=1",
            "--reset",
            "--force",
        ],
        target=drive,
    )
    runner.run(["partprobe"], target=drive)
    logger.info("Drive %s has been formatted successfully.", drive)


def partition_device(runner: CommandRunner, target: PartitionTarget) -> None:
    logger.info("Partitioning %s...", dev(target.device))
    runner.run(["/usr/bin/parted", dev(target.device), "-a", "optimal", "--", *target.script], target=target.device)
    runner.run(["/usr/bin/partprobe"], target=target.device)
    logger.info("Drive %s has been partitioned (%s).", dev(target.device), ", ".join(target.produces))


def mkfs_argv(target: FormatTarget) -> List[str]:
    part = dev(target.partition)
    if target.fstype == "vfat":
        return ["/usr/bin/mkfs.vfat", "-F32", "-n", target.label, *target.options, part]
    if target.fstype == "f2fs":
        return ["/usr/bin/mkfs.f2fs", "-l", target.label, "-i", "-O", F2FS_FEATURES, *target.options, part]
    if target.fstype == "ext4":
        return ["/usr/bin/mkfs.ext4", "-F", "-L", target.label, *target.options, part]
    if target.fstype == "xfs":
        return ["/usr/bin/mkfs.xfs", "-f", *target.options, "-L", target.label, part]
    raise ConfigError(f"Unsupported filesystem {target.fstype} for {target.partition}")


def make_filesystem(runner: CommandRunner, target: FormatTarget) -> None:
    logger.info("Creating %s filesystem (%s) on %s...", target.fstype.upper(), target.label, dev(target.partition))
    runner.run(mkfs_argv(target), target=target.partition)
    runner.run(["/usr/bin/partprobe"], target=target.partition)


def mount_path(target_root: str, mountpoint: str) -> str:
    if mountpoint == "/":
        return target_root
    return str(Path(target_root) / mountpoint.lstrip("/"))


def mount_filesystem(runner: CommandRunner, target: MountTarget, *, target_root: str) -> str:
    """Mount one target under ``target_root``; creates the mountpoint first."""

    where = mount_path(target_root, target.mountpoint)
    logger.info("Mounting %s: %s -> %s", target.mountpoint, dev(target.partition), where)

    runner.run(["/usr/bin/mkdir", "-p", where], target=target.partition)
    argv = ["/usr/bin/mount"]
    if target.options:
        argv += ["-o", target.options]
    runner.run([*argv, dev(target.partition), where], target=target.partition)

    if target.create_dirs:
        runner.run(
            ["/usr/bin/mkdir", "-p", *[str(Path(where) / d) for d in target.create_dirs]],
            target=target.partition,
        )
    return where


def block_device_present(path: str) -> bool:
    return Path(path).is_block_device()
