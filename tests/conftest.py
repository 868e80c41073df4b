from __future__ import annotations

import copy
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import pytest

from tekne_installer.config import DEFAULT_INSTALLER_CONFIG, InstallerConfig, load_yaml
from tekne_installer.errors import SubprocessFailure
from tekne_installer.lib.command import CmdResult, CommandRunner
from tekne_installer.lib.guard import AutoConfirm
from tekne_installer.lib.hosts import resolve
from tekne_installer.lib.pkg import load_base_packages
from tekne_installer.lib.roles import load_role_sets
from tekne_installer.pipeline import InstallCtx

GENFSTAB_OUTPUT = "UUID=1111 / f2fs rw,relatime,lazytime 0 1\nUUID=2222 /boot vfat rw,relatime,umask=0077 0 2\n"
MDADM_SCAN = "ARRAY /dev/md/126 metadata=1.2 UUID=abcd:ef01\n"


class FakeRunner(CommandRunner):
    """Records commands instead of executing them.

    rcs: per-executable queue of exit codes, consumed in order (default 0)
    always_fail: executables that always exit 1
    fail_targets: targets whose commands exit 1
    """

    def __init__(
        self,
        *,
        rcs: Optional[Dict[str, List[int]]] = None,
        always_fail: Iterable[str] = (),
        fail_targets: Iterable[str] = (),
    ) -> None:
        super().__init__()
        self.rcs = {k: list(v) for k, v in (rcs or {}).items()}
        self.always_fail = set(always_fail)
        self.fail_targets = set(fail_targets)
        self.calls: List[List[str]] = []
        self.targets: List[str] = []

    def _returncode(self, argv: List[str], target: str) -> int:
        exe = Path(argv[0]).name
        if exe in self.always_fail or target in self.fail_targets:
            return 1
        queue = self.rcs.get(exe)
        if queue:
            return queue.pop(0)
        return 0

    def run(
        self,
        argv: Sequence[str],
        *,
        target: str,
        check: bool = True,
        cwd: Optional[str] = None,
        input_text: Optional[str] = None,
        interactive: bool = False,
    ) -> CmdResult:
        argv = list(argv)
        self.calls.append(argv)
        self.targets.append(target)
        rc = self._returncode(argv, target)

        stdout = ""
        exe = Path(argv[0]).name
        if rc == 0 and exe == "git" and argv[1] == "clone":
            Path(argv[3]).mkdir(parents=True, exist_ok=True)
        if exe == "genfstab":
            stdout = GENFSTAB_OUTPUT
        if exe == "mdadm":
            stdout = MDADM_SCAN

        result = CmdResult(argv=argv, target=target, returncode=rc, stdout=stdout, stderr="")
        self.outcomes.append(result)
        if check and rc != 0:
            raise SubprocessFailure(target=target, argv=argv, returncode=rc)
        return result

    def named(self, exe: str) -> List[List[str]]:
        return [c for c in self.calls if Path(c[0]).name == exe]

    def chrooted(self, exe: str) -> List[List[str]]:
        return [c[2:] for c in self.calls if c[0] == "arch-chroot" and len(c) > 2 and Path(c[2]).name == exe]


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def cfg(tmp_path) -> InstallerConfig:
    raw = copy.deepcopy(load_yaml(DEFAULT_INSTALLER_CONFIG))
    raw["paths"] = {
        "target_root": str(tmp_path / "mnt"),
        "log_dir": str(tmp_path / "log"),
        "roles_dir": str(tmp_path / "roles"),
        "pacman_conf": str(tmp_path / "live/etc/pacman.conf"),
        "locale_gen": str(tmp_path / "live/etc/locale.gen"),
    }
    raw["network"]["probe_attempts"] = 3
    return InstallerConfig(raw=raw)


@pytest.fixture(autouse=True)
def offline_host(monkeypatch):
    # Never look at the machine running the tests.
    monkeypatch.setattr("tekne_installer.lib.roles.shutil.which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr("tekne_installer.lib.storage.block_device_present", lambda path: False)


@pytest.fixture
def make_ctx(cfg, sleep):
    def _make(host: str, *, runner: Optional[CommandRunner] = None, confirm=None, profile=None) -> InstallCtx:
        return InstallCtx(
            profile=profile or resolve(host),
            cfg=cfg,
            runner=runner or FakeRunner(),
            confirm=confirm or AutoConfirm(),
            roles=load_role_sets(),
            base_packages=load_base_packages(),
            sleep=sleep,
        )

    return _make
