"""Deploy built artifacts to a reserved testnet"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from testnet_deploy.deployer.container import ContainerWrapper
from testnet_deploy.deployer.reservation import Runner
from testnet_deploy.deployer.runner import run_command
from testnet_deploy.errors import CommandError, DeployError
from testnet_deploy.testnet.identifier import validate_testnet

logger = logging.getLogger(__name__)

DEFAULT_TARGET = "//testnet/tools:icos_deploy"
DEFAULT_CONFIG = "systest"


def build_deploy_command(
    testnet: str,
    bazel: str = "bazel",
    target: str = DEFAULT_TARGET,
    config: str = DEFAULT_CONFIG,
    extra_args: Sequence[str] = (),
) -> List[str]:
    """Build the deploy command line for a testnet"""
    testnet = validate_testnet(testnet)
    cmd = [bazel, "run", target]
    if config:
        cmd.append(f"--config={config}")
    return [*cmd, "--", testnet, *extra_args]


class Deployer:
    """Run the deploy tool against a testnet"""

    def __init__(
        self,
        container: ContainerWrapper,
        bazel: str = "bazel",
        target: str = DEFAULT_TARGET,
        config: str = DEFAULT_CONFIG,
        extra_args: Sequence[str] = (),
        runner: Runner = run_command,
    ):
        self.container = container
        self.bazel = bazel
        self.target = target
        self.config = config
        self.extra_args = list(extra_args)
        self.runner = runner

    @classmethod
    def from_config(cls, config: Dict[str, Any], runner: Runner = run_command) -> "Deployer":
        deploy = config.get("deploy", {})
        return cls(
            container=ContainerWrapper.from_config(config),
            bazel=deploy.get("bazel", "bazel"),
            target=deploy.get("target", DEFAULT_TARGET),
            config=deploy.get("config", DEFAULT_CONFIG),
            extra_args=deploy.get("extra_args") or [],
            runner=runner,
        )

    @property
    def repo_root(self) -> Path:
        return self.container.repo_root

    def command(self, testnet: str, extra_args: Sequence[str] = ()) -> List[str]:
        """Full command line, container wrapper included"""
        cmd = build_deploy_command(
            testnet,
            bazel=self.bazel,
            target=self.target,
            config=self.config,
            extra_args=[*self.extra_args, *extra_args],
        )
        return self.container.wrap(cmd)

    def deploy(self, testnet: str, extra_args: Sequence[str] = (), dry_run: bool = False) -> List[str]:
        """Deploy to a testnet; returns the command that ran"""
        cmd = self.command(testnet, extra_args)

        if not dry_run:
            self.container.ensure_available()

        logger.info("Deploying to testnet %s", testnet)
        try:
            self.runner(cmd, cwd=self.repo_root, check=True, capture=False, dry_run=dry_run)
        except CommandError as e:
            raise DeployError(f"Deploy to {testnet} failed with code {e.returncode}", e.returncode) from e

        return cmd
