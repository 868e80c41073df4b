"""Host registry.

Maps a host identifier to its immutable HostProfile. The YAML table is
validated in full on load: a partial or inconsistent profile is a
ConfigError raised before any phase runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config import MANIFEST_DIR, load_yaml
from ..errors import ConfigError, UnknownHost

logger = logging.getLogger(__name__)

VALID_HOSTS = ("ASTER", "THEMIS", "HEPHAESTUS", "YUGEN")
DEFAULT_HOSTS_MANIFEST = MANIFEST_DIR / "hosts.yaml"

FILESYSTEM_TYPES = {"vfat", "f2fs", "ext4", "xfs"}


@dataclass(frozen=True)
class NvmeFormat:
    lbaf: int = 0
    ses: int = 1


@dataclass(frozen=True)
class PartitionTarget:
    device: str
    script: Tuple[str, ...]
    produces: Tuple[str, ...]


@dataclass(frozen=True)
class FormatTarget:
    partition: str
    fstype: str
    label: str
    options: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MountTarget:
    partition: str
    mountpoint: str
    options: Optional[str] = None
    create_dirs: Tuple[str, ...] = ()

    @property
    def is_root(self) -> bool:
        return self.mountpoint == "/"


@dataclass(frozen=True)
class AuxMount:
    device: str
    mountpoint: str
    required: bool = False


@dataclass(frozen=True)
class HostFlags:
    requires_wifi: bool = False
    has_raid: bool = False
    is_workstation: bool = False
    serves_package_repo: bool = False


@dataclass(frozen=True)
class HostProfile:
    name: str
    description: str
    drives: Tuple[str, ...]
    partitions: Tuple[PartitionTarget, ...]
    filesystems: Tuple[FormatTarget, ...]
    mounts: Tuple[MountTarget, ...]
    boot_disk: str
    kernel: str
    extra_packages: Tuple[str, ...]
    flags: HostFlags
    nvme_format: NvmeFormat = field(default_factory=NvmeFormat)
    skip_format: bool = False
    partition_stop_after: Optional[str] = None
    filesystem_stop_after: Optional[str] = None
    aux_mounts: Tuple[AuxMount, ...] = ()

    @property
    def nvme_drives(self) -> List[str]:
        return [d for d in self.drives if d.startswith("nvme")]

    def partitions_to_apply(self) -> List[PartitionTarget]:
        return _until(self.partitions, lambda p: p.device, self.partition_stop_after)

    def filesystems_to_build(self) -> List[FormatTarget]:
        return _until(self.filesystems, lambda f: f.partition, self.filesystem_stop_after)

    @property
    def produced_partitions(self) -> List[str]:
        return [name for p in self.partitions_to_apply() for name in p.produces]


def _until(items: Iterable[Any], key, stop_after: Optional[str]) -> List[Any]:
    out = []
    for it in items:
        out.append(it)
        if stop_after is not None and key(it) == stop_after:
            break
    return out


def _require(raw: Dict[str, Any], key: str, host: str) -> Any:
    value = raw.get(key)
    if value is None or value == "" or value == []:
        raise ConfigError(f"Host {host}: '{key}' is required")
    return value


def _flatten(items: Iterable[Any]) -> List[str]:
    # YAML aliases nest shared package groups as sub-lists.
    out: List[str] = []
    for it in items:
        if isinstance(it, list):
            out.extend(_flatten(it))
        elif str(it) not in out:
            out.append(str(it))
    return out


def _build_profile(name: str, raw: Dict[str, Any]) -> HostProfile:
    if not isinstance(raw, dict):
        raise ConfigError(f"Host {name}: profile must be a mapping")

    try:
        partitions = tuple(
            PartitionTarget(
                device=str(p["device"]),
                script=tuple(str(t) for t in p["script"]),
                produces=tuple(str(x) for x in p["produces"]),
            )
            for p in _require(raw, "partitions", name)
        )
        filesystems = tuple(
            FormatTarget(
                partition=str(f["partition"]),
                fstype=str(f["fstype"]),
                label=str(f["label"]),
                options=tuple(str(o) for o in (f.get("options") or [])),
            )
            for f in _require(raw, "filesystems", name)
        )
        mounts = tuple(
            MountTarget(
                partition=str(m["partition"]),
                mountpoint=str(m["mountpoint"]),
                options=m.get("options"),
                create_dirs=tuple(str(d) for d in (m.get("create_dirs") or [])),
            )
            for m in _require(raw, "mounts", name)
        )
        aux = tuple(
            AuxMount(device=str(a["device"]), mountpoint=str(a["mountpoint"]), required=bool(a.get("required", False)))
            for a in (raw.get("aux_mounts") or [])
        )
    except (KeyError, TypeError) as e:
        raise ConfigError(f"Host {name}: malformed target entry ({e})") from e

    flags_raw = raw.get("flags") or {}
    nvme_raw = raw.get("nvme_format") or {}

    profile = HostProfile(
        name=name,
        description=str(raw.get("description") or name),
        drives=tuple(str(d) for d in _require(raw, "drives", name)),
        partitions=partitions,
        filesystems=filesystems,
        mounts=mounts,
        boot_disk=str(_require(raw, "boot_disk", name)),
        kernel=str(_require(raw, "kernel", name)),
        extra_packages=tuple(_flatten(raw.get("extra_packages") or [])),
        flags=HostFlags(
            requires_wifi=bool(flags_raw.get("requires_wifi", False)),
            has_raid=bool(flags_raw.get("has_raid", False)),
            is_workstation=bool(flags_raw.get("is_workstation", False)),
            serves_package_repo=bool(flags_raw.get("serves_package_repo", False)),
        ),
        nvme_format=NvmeFormat(lbaf=int(nvme_raw.get("lbaf", 0)), ses=int(nvme_raw.get("ses", 1))),
        skip_format=bool(raw.get("skip_format", False)),
        partition_stop_after=raw.get("partition_stop_after"),
        filesystem_stop_after=raw.get("filesystem_stop_after"),
        aux_mounts=aux,
    )
    validate_profile(profile)
    return profile


def validate_profile(profile: HostProfile) -> None:
    """Check referential consistency: partition -> format -> mount."""

    name = profile.name

    if profile.partition_stop_after and profile.partition_stop_after not in {p.device for p in profile.partitions}:
        raise ConfigError(f"Host {name}: partition_stop_after names unknown device {profile.partition_stop_after}")
    if profile.filesystem_stop_after and profile.filesystem_stop_after not in {f.partition for f in profile.filesystems}:
        raise ConfigError(
            f"Host {name}: filesystem_stop_after names unknown partition {profile.filesystem_stop_after}"
        )

    for p in profile.partitions:
        if not p.script or not p.produces:
            raise ConfigError(f"Host {name}: partition target {p.device} needs a script and produced partitions")

    produced = profile.produced_partitions
    built: List[str] = []
    for f in profile.filesystems_to_build():
        if f.fstype not in FILESYSTEM_TYPES:
            raise ConfigError(f"Host {name}: unsupported filesystem {f.fstype} on {f.partition}")
        if f.partition not in produced:
            raise ConfigError(f"Host {name}: filesystem target {f.partition} is not produced by any partition target")
        built.append(f.partition)

    if not profile.mounts[0].is_root:
        raise ConfigError(f"Host {name}: the first mount target must be the root filesystem")
    if sum(1 for m in profile.mounts if m.is_root) > 1:
        raise ConfigError(f"Host {name}: root filesystem mounted twice")

    mounted: List[str] = []
    for m in profile.mounts:
        if m.partition not in built:
            raise ConfigError(f"Host {name}: mount target {m.partition} has no filesystem")
        if not m.mountpoint.startswith("/"):
            raise ConfigError(f"Host {name}: mountpoint {m.mountpoint} must be absolute")
        for earlier in mounted:
            # A later mount must never shadow an earlier one.
            if earlier != "/" and earlier.startswith(m.mountpoint.rstrip("/") + "/"):
                raise ConfigError(f"Host {name}: {m.mountpoint} would hide already mounted {earlier}")
        mounted.append(m.mountpoint)


def load_host_table(path: Optional[str] = None) -> Dict[str, HostProfile]:
    p = Path(path) if path else DEFAULT_HOSTS_MANIFEST
    raw = load_yaml(p)
    hosts = raw.get("hosts")
    if not isinstance(hosts, dict):
        raise ConfigError(f"{p}: 'hosts' must be a mapping")

    missing = [h for h in VALID_HOSTS if h not in hosts]
    if missing:
        raise ConfigError(f"{p}: no profile for {', '.join(missing)}")

    return {name: _build_profile(name, hosts[name]) for name in VALID_HOSTS}


def resolve(host_id: str, *, manifest: Optional[str] = None) -> HostProfile:
    """Return the profile for ``host_id`` or raise UnknownHost/ConfigError."""

    if host_id not in VALID_HOSTS:
        raise UnknownHost(host_id, VALID_HOSTS)

    profile = load_host_table(manifest)[host_id]
    logger.info("Host configuration loaded for: %s (%s)", profile.name, profile.description)
    return profile
