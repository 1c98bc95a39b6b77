import pytest

from testnet_deploy.deployer import host
from testnet_deploy.errors import HostPlatformError


def test_linux_is_accepted():
    assert host.check_host("Linux") == "Linux"


@pytest.mark.parametrize("system", ["Darwin", "Windows"])
def test_other_platforms_rejected(system):
    with pytest.raises(HostPlatformError, match="Linux"):
        host.check_host(system)


def test_uses_platform_when_not_given(monkeypatch):
    monkeypatch.setattr("testnet_deploy.deployer.host.platform.system", lambda: "Darwin")

    with pytest.raises(HostPlatformError):
        host.check_host()


def test_in_container_from_env(monkeypatch):
    assert not host.in_container()

    monkeypatch.setenv("TND_IN_CONTAINER", "true")
    assert host.in_container()


def test_in_container_from_dockerenv(monkeypatch, tmp_path):
    dockerenv = tmp_path / ".dockerenv"
    dockerenv.touch()
    monkeypatch.setattr("testnet_deploy.deployer.host.DOCKERENV", dockerenv)

    assert host.in_container()


def test_check_prerequisites(monkeypatch):
    monkeypatch.setattr(
        "testnet_deploy.deployer.host.shutil.which",
        lambda tool: "/usr/bin/docker" if tool == "docker" else None,
    )

    assert host.check_prerequisites(["docker", "bazel"]) == ["bazel"]
