from __future__ import annotations

import pytest

from tekne_installer.errors import ConfigError
from tekne_installer.lib.hosts import FormatTarget, MountTarget, NvmeFormat, resolve
from tekne_installer.lib.storage import (
    format_nvme,
    mkfs_argv,
    mount_filesystem,
    mount_path,
    partition_device,
)

from .conftest import FakeRunner


def test_nvme_format_uses_host_parameters():
    runner = FakeRunner()
    format_nvme(runner, "nvme2", NvmeFormat(lbaf=1, ses=2))
    fmt, probe = runner.calls
    assert fmt[:3] == ["nvme", "format", "/dev/nvme2"]
    assert "--lbaf=1" in fmt and "--ses=2" in fmt
    assert probe == ["partprobe"]


def test_partition_applies_parted_script():
    runner = FakeRunner()
    target = resolve("THEMIS").partitions[3]
    partition_device(runner, target)
    assert runner.calls[0][:4] == ["/usr/bin/parted", "/dev/sdb", "-a", "optimal"]
    assert runner.calls[0][5:] == list(target.script)


@pytest.mark.parametrize(
    "fstype, exe",
    [("vfat", "/usr/bin/mkfs.vfat"), ("f2fs", "/usr/bin/mkfs.f2fs"), ("ext4", "/usr/bin/mkfs.ext4"), ("xfs", "/usr/bin/mkfs.xfs")],
)
def test_mkfs_per_type(fstype, exe):
    argv = mkfs_argv(FormatTarget(partition="sda2", fstype=fstype, label="ROOT"))
    assert argv[0] == exe
    assert argv[-1] == "/dev/sda2"
    assert "ROOT" in argv


def test_mkfs_passes_extra_options():
    argv = mkfs_argv(FormatTarget(partition="nvme1n1p1", fstype="xfs", label="docker", options=("-n", "ftype=1")))
    assert argv == ["/usr/bin/mkfs.xfs", "-f", "-n", "ftype=1", "-L", "docker", "/dev/nvme1n1p1"]


def test_mkfs_unknown_type():
    with pytest.raises(ConfigError):
        mkfs_argv(FormatTarget(partition="sda2", fstype="zfs", label="ROOT"))


def test_mount_path():
    assert mount_path("/mnt", "/") == "/mnt"
    assert mount_path("/mnt", "/var/lib/docker") == "/mnt/var/lib/docker"


def test_mount_creates_point_then_children():
    runner = FakeRunner()
    target = MountTarget(partition="sda2", mountpoint="/", options="noatime", create_dirs=("boot", "var"))
    assert mount_filesystem(runner, target, target_root="/mnt") == "/mnt"
    assert runner.calls == [
        ["/usr/bin/mkdir", "-p", "/mnt"],
        ["/usr/bin/mount", "-o", "noatime", "/dev/sda2", "/mnt"],
        ["/usr/bin/mkdir", "-p", "/mnt/boot", "/mnt/var"],
    ]


def test_mount_without_options():
    runner = FakeRunner()
    mount_filesystem(runner, MountTarget(partition="nvme0n1p1", mountpoint="/boot"), target_root="/mnt")
    assert runner.calls[1] == ["/usr/bin/mount", "/dev/nvme0n1p1", "/mnt/boot"]
