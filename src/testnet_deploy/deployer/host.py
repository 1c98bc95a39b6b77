"""Host checks for the deployment recipe"""

import os
import platform
import shutil
from pathlib import Path
from typing import Iterable, List, Optional

from testnet_deploy.errors import HostPlatformError

SUPPORTED_SYSTEM = "Linux"

DOCKERENV = Path("/.dockerenv")

_TRUTHY = ("1", "true", "yes", "on")


def check_host(system: Optional[str] = None) -> str:
    """Fail unless the host can run the deploy container"""
    system = system or platform.system()
    if system != SUPPORTED_SYSTEM:
        raise HostPlatformError(
            f"Testnet deployment is only supported on {SUPPORTED_SYSTEM} hosts (found {system})"
        )
    return system


def in_container() -> bool:
    """Check whether we already run inside the build container"""
    if os.getenv("TND_IN_CONTAINER", "").lower() in _TRUTHY:
        return True
    return DOCKERENV.exists()


def check_prerequisites(tools: Iterable[str]) -> List[str]:
    """Return the tools that are not on PATH"""
    return [tool for tool in tools if shutil.which(tool) is None]
