"""Build container wrapper"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Sequence

from testnet_deploy.deployer.host import in_container
from testnet_deploy.errors import ContainerError

logger = logging.getLogger(__name__)


class ContainerWrapper:
    """Run commands through the repository's docker-run script"""

    def __init__(self, repo_root: Path, script: str = "gitlab-ci/tools/docker-run", enabled: bool = True):
        self.repo_root = Path(repo_root)
        self.script = script
        self.enabled = enabled

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ContainerWrapper":
        container = config.get("container", {})
        return cls(
            repo_root=Path(config.get("repo_root", ".")),
            script=container.get("script", "gitlab-ci/tools/docker-run"),
            enabled=bool(container.get("enabled", True)),
        )

    @property
    def script_path(self) -> Path:
        return self.repo_root / self.script

    @property
    def active(self) -> bool:
        """Whether wrap() will prefix commands"""
        return self.enabled and not in_container()

    def ensure_available(self) -> None:
        """Fail if the docker-run script is missing or not executable"""
        if not self.active:
            return
        if not self.script_path.is_file():
            raise ContainerError(f"Container script not found: {self.script_path}")
        if not os.access(self.script_path, os.X_OK):
            raise ContainerError(f"Container script is not executable: {self.script_path}")

    def wrap(self, cmd: Sequence[str]) -> List[str]:
        """Return cmd as it should be run on this host"""
        if not self.enabled:
            logger.debug("Container disabled, running command directly")
            return list(cmd)
        if in_container():
            logger.debug("Already inside the build container")
            return list(cmd)
        return [str(self.script_path), *cmd]
