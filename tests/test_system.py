from __future__ import annotations

import os

from tekne_installer.lib.bootloader import install_efi_entry, kernel_cmdline
from tekne_installer.lib.system import (
    enable_locale,
    force_symlink,
    install_pacman_conf,
    write_host_identity,
)

from .conftest import FakeRunner


def test_kernel_cmdline_puts_initrds_after_rw():
    line = kernel_cmdline("root=LABEL=ROOT rw quiet", "linux-tkg-alk", microcode_image="intel-ucode.img")
    assert line == (
        "root=LABEL=ROOT rw initrd=\\intel-ucode.img initrd=\\initramfs-linux-tkg-alk.img quiet"
    )


def test_kernel_cmdline_without_microcode():
    assert kernel_cmdline("root=LABEL=ROOT rw", "linux") == "root=LABEL=ROOT rw initrd=\\initramfs-linux.img"


def test_efi_entry_replaces_slot_zero():
    runner = FakeRunner(rcs={"arch-chroot": [1]})
    install_efi_entry(runner, target_root="/mnt", disk="/dev/sda", kernel="linux", cmdline="root=LABEL=ROOT rw")

    delete, create = runner.calls
    assert delete == ["arch-chroot", "/mnt", "/usr/bin/efibootmgr", "-B", "-b", "0"]
    assert create[create.index("--disk") + 1] == "/dev/sda"
    assert create[create.index("--loader") + 1] == "/vmlinuz-linux"
    assert create[-1] == " root=LABEL=ROOT rw"


def test_enable_locale_uncomments_existing_entry(tmp_path):
    locale_gen = tmp_path / "locale.gen"
    locale_gen.write_text("#en_GB.UTF-8 UTF-8\n#en_US.UTF-8 UTF-8\n")
    enable_locale(locale_gen, "en_US.UTF-8")
    assert locale_gen.read_text().splitlines() == ["#en_GB.UTF-8 UTF-8", "en_US.UTF-8 UTF-8"]

    enable_locale(locale_gen, "en_US.UTF-8")
    assert locale_gen.read_text().count("en_US.UTF-8 UTF-8") == 1


def test_enable_locale_creates_missing_file(tmp_path):
    locale_gen = tmp_path / "etc/locale.gen"
    enable_locale(locale_gen, "en_US.UTF-8")
    assert locale_gen.read_text() == "en_US.UTF-8 UTF-8\n"


def test_force_symlink_replaces_existing_file(tmp_path):
    link = tmp_path / "etc/resolv.conf"
    link.parent.mkdir()
    link.write_text("nameserver 1.1.1.1\n")
    force_symlink(link, "/run/systemd/resolve/stub-resolv.conf")
    assert os.readlink(link) == "/run/systemd/resolve/stub-resolv.conf"


def test_install_pacman_conf_keeps_backup(tmp_path):
    live = tmp_path / "pacman.conf"
    live.write_text("[options]\n")
    root = tmp_path / "mnt"
    (root / "etc").mkdir(parents=True)
    (root / "etc/pacman.conf").write_text("# pacstrap default\n")

    runner = FakeRunner()
    dst = install_pacman_conf(runner, str(live), str(root), backup=True)

    assert dst.read_text() == "[options]\n"
    assert (root / "etc/pacman.bak").read_text() == "# pacstrap default\n"
    assert runner.calls == [["chown", "root:users", str(dst)]]


def test_host_identity(tmp_path):
    write_host_identity(str(tmp_path), "YUGEN", "tekne.sv")
    assert (tmp_path / "etc/hostname").read_text() == "YUGEN\n"
    assert "127.0.0.1 localhost YUGEN.tekne.sv YUGEN" in (tmp_path / "etc/hosts").read_text()
