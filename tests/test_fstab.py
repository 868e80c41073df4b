from __future__ import annotations

from tekne_installer.lib.fstab import generate_fstab, normalize_fstab

from .conftest import GENFSTAB_OUTPUT, FakeRunner


def test_relatime_becomes_noatime():
    assert normalize_fstab("UUID=1 / f2fs rw,relatime 0 1\n") == "UUID=1 / f2fs rw,noatime 0 1\n"


def test_other_atime_options_are_untouched():
    line = "UUID=1 /srv xfs rw,norelatime,strictatime 0 2\n"
    assert normalize_fstab(line) == line


def test_generate_keeps_raw_copy(tmp_path):
    root = tmp_path / "mnt"
    fstab = generate_fstab(FakeRunner(), str(root))

    assert (root / "etc/fstab.origin").read_text() == GENFSTAB_OUTPUT
    assert "relatime" not in fstab.read_text()
    assert fstab.read_text().count("noatime") == 2


def test_generate_appends_to_existing_fstab(tmp_path):
    root = tmp_path / "mnt"
    (root / "etc").mkdir(parents=True)
    (root / "etc/fstab").write_text("# static\n")
    fstab = generate_fstab(FakeRunner(), str(root))
    assert fstab.read_text().startswith("# static\n")
