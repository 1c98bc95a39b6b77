"""Shared fixtures"""

import subprocess
from pathlib import Path

import pytest
import yaml

from testnet_deploy.config.manager import ConfigManager

INVENTORY = {
    "nns": {
        "hosts": {
            "small01-0-0": {"ipv6": "2a02:800:2:2003:5000:f6ff:fec4:4c86"},
            "small01-0-1": {"ipv6": "2a02:800:2:2003:5000:f6ff:fec4:4c87"},
        }
    },
    "subnet_1": {
        "hosts": {
            "small01-1-0": {"ipv6": "2a02:800:2:2003:5000:f6ff:fec4:4c88"},
        }
    },
    "boundary": {
        "hosts": {
            "small01-bn-0": {"ansible_host": "10.11.12.13"},
        }
    },
}


class FakeRunner:
    """Stand-in for run_command that records calls"""

    def __init__(self, fail_on=None, returncode=1):
        self.calls = []
        self.fail_on = fail_on
        self.returncode = returncode

    def __call__(self, cmd, **kwargs):
        from testnet_deploy.errors import CommandError

        cmd = [str(part) for part in cmd]
        self.calls.append((cmd, kwargs))
        if self.fail_on and self.fail_on in cmd and kwargs.get("check", True) and not kwargs.get("dry_run"):
            raise CommandError(cmd, self.returncode, "boom")
        return subprocess.CompletedProcess(cmd, 0, "", "")

    @property
    def commands(self):
        return [cmd for cmd, _ in self.calls]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the host environment out of the tests"""
    for var in ("TND_REPO_ROOT", "TND_BAZEL_CONFIG", "TND_LEDGER", "TND_LOG_LEVEL", "TND_IN_CONTAINER"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("testnet_deploy.deployer.host.DOCKERENV", tmp_path / "no-dockerenv")


@pytest.fixture
def repo(tmp_path):
    """Repository checkout with the docker-run script and an inventory"""
    root = tmp_path / "repo"
    script = root / "gitlab-ci" / "tools" / "docker-run"
    script.parent.mkdir(parents=True)
    script.write_text("#!/bin/sh\nexec \"$@\"\n")
    script.chmod(0o755)

    hosts = root / "testnet" / "env" / "small01" / "hosts.yml"
    hosts.parent.mkdir(parents=True)
    hosts.write_text(yaml.safe_dump(INVENTORY))

    return root


@pytest.fixture
def ledger_path(tmp_path):
    return tmp_path / "state" / "reservations.yaml"


@pytest.fixture
def config(repo, ledger_path, tmp_path):
    """Loaded configuration pointing at the test repository"""
    cfg = ConfigManager(tmp_path / "missing.yaml").load()
    cfg["repo_root"] = str(repo)
    cfg["reservation"]["ledger"] = str(ledger_path)
    return cfg


@pytest.fixture
def config_file(repo, ledger_path, tmp_path):
    """Config file for CLI invocations"""
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "repo_root": str(repo),
                "reservation": {"ledger": str(ledger_path)},
                "logging": {"level": "warning"},
            }
        )
    )
    return path


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def linux(monkeypatch):
    monkeypatch.setattr("testnet_deploy.deployer.host.platform.system", lambda: "Linux")


def read_ledger(path: Path):
    with open(path) as f:
        return yaml.safe_load(f)["reservations"]
