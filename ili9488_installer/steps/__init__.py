from .step_10_install_packages import InstallPackagesStep
from .step_20_build_driver import BuildDriverStep
from .step_30_patch_boot_config import PatchBootConfigStep
from .step_40_configure_privileges import ConfigurePrivilegesStep
from .step_50_register_service import RegisterServiceStep
from .step_90_finalize_reboot import FinalizeRebootStep

__all__ = [
    "InstallPackagesStep",
    "BuildDriverStep",
    "PatchBootConfigStep",
    "ConfigurePrivilegesStep",
    "RegisterServiceStep",
    "FinalizeRebootStep",
]
