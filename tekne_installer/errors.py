from __future__ import annotations

from typing import Sequence


class ProvisionError(RuntimeError):
    """Base class for fatal installer failures."""


class ConfigError(ProvisionError):
    """Invalid host argument, manifest or profile."""


class UnknownHost(ConfigError):
    def __init__(self, host: str, valid: Sequence[str]) -> None:
        super().__init__(f"Unknown host: '{host}'. Valid hosts: {' '.join(valid)}")
        self.host = host
        self.valid = list(valid)


class NetworkUnavailable(ProvisionError):
    """Reachability probe exhausted its attempts."""


class UserAborted(ProvisionError):
    """Operator declined a destructive action."""


class PreconditionFailure(ProvisionError):
    """A required resource is missing (privilege, role dir, partition)."""


class SubprocessFailure(ProvisionError):
    def __init__(self, *, target: str, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        msg = f"{target}: command failed ({returncode}): {' '.join(argv)}"
        if stderr.strip():
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)
        self.target = target
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
