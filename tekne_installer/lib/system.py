from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .command import CommandRunner

logger = logging.getLogger(__name__)


def target_path(root: str, rel: str) -> Path:
    return Path(root) / rel.lstrip("/")


def write_file(root: str, rel: str, contents: str, *, append: bool = False) -> Path:
    p = target_path(root, rel)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("a" if append else "w", encoding="utf-8") as f:
        f.write(contents)
    return p


def force_symlink(link: Path, dest: str) -> None:
    """ln -sf: ``dest`` is resolved inside the target, so it may dangle here."""

    link.parent.mkdir(parents=True, exist_ok=True)
    if link.is_symlink() or link.exists():
        link.unlink()
    link.symlink_to(dest)


def enable_locale(locale_gen: Path, locale: str) -> None:
    """Uncomment ``<locale> <charset>`` in locale.gen (appends it if absent)."""

    charset = locale.split(".", 1)[1] if "." in locale else "UTF-8"
    entry = f"{locale} {charset}"
    text = locale_gen.read_text(encoding="utf-8") if locale_gen.exists() else ""

    lines = text.splitlines()
    if entry in lines:
        return
    if f"#{entry}" in lines:
        lines = [entry if ln == f"#{entry}" else ln for ln in lines]
    else:
        lines.append(entry)
    locale_gen.parent.mkdir(parents=True, exist_ok=True)
    locale_gen.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.info("Enabled locale %s in %s", entry, locale_gen)


def install_pacman_conf(runner: CommandRunner, live_conf: str, target_root: str, *, backup: bool = False) -> Path:
    """Copy the live pacman.conf into the target, owned by root:users."""

    dst = target_path(target_root, "/etc/pacman.conf")
    dst.parent.mkdir(parents=True, exist_ok=True)
    if backup and dst.exists():
        dst.replace(dst.with_name("pacman.bak"))
    shutil.copyfile(live_conf, dst)
    runner.run(["chown", "root:users", str(dst)], target=str(dst))
    return dst


def write_host_identity(target_root: str, host: str, domain: str) -> None:
    write_file(target_root, "/etc/hosts", f"127.0.0.1 localhost {host}.{domain} {host}\n", append=True)
    write_file(target_root, "/etc/hostname", f"{host}\n")
    logger.info("Configured hostname=%s (%s.%s)", host, host, domain)
