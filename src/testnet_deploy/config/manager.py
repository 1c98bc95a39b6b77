"""Configuration management for testnet-deploy"""

import os
from pathlib import Path
from typing import Any, Dict

import yaml

from testnet_deploy.errors import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".testnet-deploy" / "config.yaml"


class ConfigManager:
    """Manage testnet-deploy configuration"""

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        self.config_path = Path(config_path)

    def load(self) -> Dict[str, Any]:
        """Load configuration from file and environment"""
        config = self._load_defaults()

        if self.config_path.exists():
            with open(self.config_path) as f:
                try:
                    file_config = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigError(f"Invalid config file {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigError(f"Config file {self.config_path} must contain a mapping")
            config = self._merge(config, file_config)

        config = self._apply_env_overrides(config)

        return config

    def save(self, config: Dict[str, Any]) -> None:
        """Save configuration to file"""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, "w") as f:
            yaml.dump(config, f, default_flow_style=False)

    def _load_defaults(self) -> Dict[str, Any]:
        """Load default configuration"""
        return {
            "repo_root": ".",
            "container": {
                "script": "gitlab-ci/tools/docker-run",
                "enabled": True,
            },
            "deploy": {
                "bazel": "bazel",
                "target": "//testnet/tools:icos_deploy",
                "config": "systest",
                "extra_args": [],
            },
            "reservation": {
                "reserve": ["dee", "reserve", "{testnet}"],
                "release": ["dee", "release", "{testnet}"],
                "ledger": str(Path.home() / ".testnet-deploy" / "reservations.yaml"),
            },
            "inventory": {
                "path": "testnet/env/{testnet}/hosts.yml",
            },
            "health": {
                "port": 8080,
                "path": "/api/v2/status",
                "timeout": 5,
            },
            "vector": {
                "scrape_interval": 30,
                "proxy_url": "",
            },
            "logging": {
                "level": "info",
            },
        }

    def _merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge two configuration dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides"""
        if repo_root := os.getenv("TND_REPO_ROOT"):
            config["repo_root"] = repo_root

        if bazel_config := os.getenv("TND_BAZEL_CONFIG"):
            config["deploy"]["config"] = bazel_config

        if ledger := os.getenv("TND_LEDGER"):
            config["reservation"]["ledger"] = ledger

        if level := os.getenv("TND_LOG_LEVEL"):
            config["logging"]["level"] = level

        return config
