from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

from .errors import ConfigError

MANIFEST_DIR = Path(__file__).resolve().parent / "manifests"
DEFAULT_INSTALLER_CONFIG = MANIFEST_DIR / "installer.yaml"


def _repo_root() -> Path:
    # tekne_installer/config.py -> tekne_installer -> repo root
    return Path(__file__).resolve().parents[1]


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping, turning every failure into ConfigError."""

    if not path.exists():
        raise ConfigError(f"Missing manifest: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Manifest must be a mapping/dict: {path}")
    return data


@dataclass(frozen=True)
class InstallerConfig:
    raw: Dict[str, Any]

    def _section(self, name: str) -> Dict[str, Any]:
        return self.raw.get(name) or {}

    def _number(self, section: str, key: str, default: Any, *, cast: Callable[[Any], Any], minimum: float) -> Any:
        raw = self._section(section)
        if key not in raw:
            return default
        value = raw[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"{section}.{key} must be a number, got {value!r}")
        if cast is int and not float(value).is_integer():
            raise ConfigError(f"{section}.{key} must be a whole number, got {value!r}")
        if value < minimum:
            raise ConfigError(f"{section}.{key} must be >= {minimum}, got {value!r}")
        return cast(value)

    def validate(self) -> None:
        """Fail on bad numeric settings now rather than mid-install."""

        for name in ("probe_attempts", "probe_interval", "wifi_attempts", "wifi_interval"):
            getattr(self, name)

    # paths

    @property
    def target_root(self) -> str:
        return str(self._section("paths").get("target_root") or "/mnt")

    @property
    def log_dir(self) -> str:
        return str(self._section("paths").get("log_dir") or "/tmp")

    @property
    def roles_dir(self) -> str:
        return str(self._section("paths").get("roles_dir") or (_repo_root() / "roles"))

    @property
    def pacman_conf(self) -> str:
        return str(self._section("paths").get("pacman_conf") or "/etc/pacman.conf")

    @property
    def locale_gen(self) -> str:
        return str(self._section("paths").get("locale_gen") or "/etc/locale.gen")

    # network

    @property
    def probe_address(self) -> str:
        return str(self._section("network").get("probe_address") or "1.1.1.1")

    @property
    def probe_attempts(self) -> int:
        return self._number("network", "probe_attempts", 30, cast=int, minimum=1)

    @property
    def probe_interval(self) -> float:
        return self._number("network", "probe_interval", 2.0, cast=float, minimum=0)

    @property
    def wifi_interface(self) -> str:
        return str(self._section("network").get("wifi_interface") or "wlan0")

    @property
    def wifi_network(self) -> str:
        return str(self._section("network").get("wifi_network") or "esher")

    @property
    def wifi_attempts(self) -> int:
        return self._number("network", "wifi_attempts", 6, cast=int, minimum=1)

    @property
    def wifi_interval(self) -> float:
        return self._number("network", "wifi_interval", 5.0, cast=float, minimum=0)

    # system

    @property
    def timezone(self) -> str:
        return str(self._section("system").get("timezone") or "America/El_Salvador")

    @property
    def locale(self) -> str:
        return str(self._section("system").get("locale") or "en_US.UTF-8")

    @property
    def keymap(self) -> str:
        return str(self._section("system").get("keymap") or "us")

    @property
    def domain(self) -> str:
        return str(self._section("system").get("domain") or "tekne.sv")

    # package manager

    @property
    def reflector_args(self) -> List[str]:
        return [str(a) for a in (self._section("mirrors").get("reflector_args") or [])]

    @property
    def local_repo_name(self) -> str:
        return str(self._section("local_repo").get("name") or "themis")

    @property
    def local_repo_server(self) -> str:
        return str(self._section("local_repo").get("server") or "http://repo.tekne.sv")

    @property
    def local_repo_siglevel(self) -> str:
        return str(self._section("local_repo").get("siglevel") or "Optional TrustAll")

    # boot entry

    @property
    def boot_label(self) -> str:
        return str(self._section("boot").get("label") or "BOOT")

    @property
    def microcode_image(self) -> Optional[str]:
        return self._section("boot").get("microcode_image")

    @property
    def kernel_cmdline(self) -> str:
        return " ".join(str(self._section("boot").get("cmdline") or "root=LABEL=ROOT rw").split())

    # configuration management inside the target

    @property
    def galaxy_collections(self) -> List[str]:
        return [str(c) for c in (self._section("configuration").get("collections") or [])]

    @property
    def configuration_entrypoint(self) -> str:
        return str(
            self._section("configuration").get("entrypoint")
            or "/media/ansible-playbook/archlinux/chroot.sh"
        )


def load_installer_config(path: Optional[str] = None) -> InstallerConfig:
    p = Path(path) if path else DEFAULT_INSTALLER_CONFIG
    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError("installer config must be YAML")
    cfg = InstallerConfig(raw=load_yaml(p))
    cfg.validate()
    return cfg
