from hostguard.system.mounts import MountEntry, PartitionMountController
from hostguard.system.shell import PrivilegedCommandRunner
from hostguard.system.symlinks import SymlinkController


__all__ = [
    "MountEntry",
    "PartitionMountController",
    "PrivilegedCommandRunner",
    "SymlinkController",
]
