from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass, field
from typing import List, Mapping, Sequence

from ..errors import SubprocessFailure

logger = logging.getLogger(__name__)

EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    target: str
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(
    argv: Sequence[str],
    *,
    target: str,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    input_text: str | None = None,
    interactive: bool = False,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command and the device/path/repo it acts on.
    - Captures stdout/stderr unless ``interactive`` (terminal stays attached).
    - ``check`` turns a non-zero exit into SubprocessFailure naming ``target``.
    - A command that cannot be started reports exit 127, like the shell.
    """

    argv_list = list(argv)
    logger.info("CMD [%s] %s", target, _fmt_argv(argv_list))

    try:
        if interactive:
            p = subprocess.run(argv_list, cwd=cwd, env=dict(os.environ, **(env or {})))
            returncode, stdout, stderr = p.returncode, "", ""
        else:
            p = subprocess.run(
                argv_list,
                input=input_text,
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=cwd,
                env=dict(os.environ, **(env or {})),
            )
            returncode, stdout, stderr = p.returncode, p.stdout or "", p.stderr or ""
    except OSError as e:
        # Tool missing from the live medium (or not executable): same exit as the shell.
        logger.debug("Could not start %s: %s", argv_list[0], e)
        returncode, stdout, stderr = EXIT_NOT_FOUND, "", str(e)

    if stdout:
        logger.debug("STDOUT %s", stdout.strip())
    if stderr:
        logger.debug("STDERR %s", stderr.strip())

    result = CmdResult(argv=argv_list, target=target, returncode=returncode, stdout=stdout, stderr=stderr)
    if check and returncode != 0:
        raise SubprocessFailure(target=target, argv=argv_list, returncode=returncode, stderr=stderr)
    return result


@dataclass
class CommandRunner:
    """Runs commands and keeps every outcome for diagnostics."""

    outcomes: List[CmdResult] = field(default_factory=list)

    def run(
        self,
        argv: Sequence[str],
        *,
        target: str,
        check: bool = True,
        cwd: str | None = None,
        input_text: str | None = None,
        interactive: bool = False,
    ) -> CmdResult:
        try:
            result = run_cmd(
                argv,
                target=target,
                check=check,
                cwd=cwd,
                input_text=input_text,
                interactive=interactive,
            )
        except SubprocessFailure as e:
            self.outcomes.append(
                CmdResult(argv=list(argv), target=target, returncode=e.returncode, stdout="", stderr=e.stderr)
            )
            raise
        self.outcomes.append(result)
        return result
