from __future__ import annotations

import logging
import re
from pathlib import Path

from .command import CommandRunner

logger = logging.getLogger(__name__)

_RELATIME = re.compile(r"\brelatime\b")


def normalize_fstab(text: str) -> str:
    """Prefer noatime everywhere genfstab wrote relatime."""

    return _RELATIME.sub("noatime", text)


def generate_fstab(runner: CommandRunner, target_root: str) -> Path:
    """Append genfstab output, keep the raw copy, normalize the live one."""

    logger.info("Generating fstab...")
    r = runner.run(["genfstab", "-U", target_root], target=target_root)

    fstab = Path(target_root) / "etc/fstab"
    fstab.parent.mkdir(parents=True, exist_ok=True)
    with fstab.open("a", encoding="utf-8") as f:
        f.write(r.stdout)

    contents = fstab.read_text(encoding="utf-8")
    (fstab.parent / "fstab.origin").write_text(contents, encoding="utf-8")
    fstab.write_text(normalize_fstab(contents), encoding="utf-8")
    return fstab
