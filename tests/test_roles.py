from __future__ import annotations

import pytest

from tekne_installer.errors import ConfigError, SubprocessFailure
from tekne_installer.lib import roles
from tekne_installer.lib.roles import RoleRepository, load_role_sets, missing_roles, sync

from .conftest import FakeRunner


def _repos(n):
    return [RoleRepository(url=f"https://github.com/dvaliente-tekne/ansible-role-r{i}") for i in range(n)]


def test_repository_name_is_the_url_basename():
    assert RoleRepository(url="https://example.com/org/ansible-role-gpu.git").name == "ansible-role-gpu"
    assert RoleRepository(url="https://example.com/org/ansible-role-gpu/").name == "ansible-role-gpu"


def test_manifest_role_sets():
    sets = load_role_sets()
    assert len(sets["common"]) == 14
    assert [r.name for r in sets["workstation"]] == ["ansible-role-gpu"]


def test_empty_common_set_is_rejected(tmp_path):
    p = tmp_path / "roles.yaml"
    p.write_text("common: []\nworkstation: []\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_role_sets(str(p))


def test_sync_clones_then_updates(tmp_path):
    repos = _repos(3)
    roles_dir = str(tmp_path / "roles")
    runner = FakeRunner()

    first = sync(repos, roles_dir, runner)
    assert first.cloned == [r.name for r in repos]
    assert first.updated == []
    assert [c[:2] for c in runner.calls] == [["git", "clone"]] * 3

    runner.calls.clear()
    second = sync(repos, roles_dir, runner)
    assert second.cloned == []
    assert second.updated == [r.name for r in repos]
    assert runner.calls[0] == ["git", "-C", str(tmp_path / "roles" / "ansible-role-r0"), "pull", "--rebase", "-q"]
    assert missing_roles(repos, roles_dir) == []


def test_sync_stops_at_first_failure(tmp_path):
    repos = _repos(5)
    runner = FakeRunner(fail_targets={repos[2].name})
    with pytest.raises(SubprocessFailure) as exc:
        sync(repos, str(tmp_path / "roles"), runner)
    assert exc.value.target == repos[2].name
    assert runner.targets == [r.name for r in repos[:3]]
    assert missing_roles(repos, str(tmp_path / "roles")) == [r.name for r in repos[2:]]


def test_ensure_git_installs_when_absent(monkeypatch):
    monkeypatch.setattr(roles.shutil, "which", lambda name: None)
    runner = FakeRunner()
    roles.ensure_git(runner)
    assert runner.calls == [["pacman", "-Sy", "--noconfirm", "git"]]


def test_ensure_git_is_a_noop_when_present():
    runner = FakeRunner()
    roles.ensure_git(runner)
    assert runner.calls == []
