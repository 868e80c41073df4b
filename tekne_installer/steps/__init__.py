from .step_10_network import NetworkReadyStep
from .step_20_format_drives import FormatDrivesStep
from .step_30_partition import PartitionDrivesStep
from .step_40_filesystems import CreateFilesystemsStep
from .step_50_mount import MountFilesystemsStep
from .step_60_install_base import InstallBaseStep
from .step_70_chroot import ChrootHandoffStep

__all__ = [
    "NetworkReadyStep",
    "FormatDrivesStep",
    "PartitionDrivesStep",
    "CreateFilesystemsStep",
    "MountFilesystemsStep",
    "InstallBaseStep",
    "ChrootHandoffStep",
]
