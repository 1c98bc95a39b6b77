"""Vector scrape configuration for testnet nodes.

Each node becomes a ``prometheus_scrape`` source plus a ``remap`` transform
that tags the scraped metrics with the testnet, node, subnet and job names.
Both are keyed by the node's first scrape target, e.g.
``[2a02:800::1]:9090-source`` and ``[2a02:800::1]:9090-transform``.
"""

import json
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import yaml

from testnet_deploy.testnet.inventory import TargetGroup

IC_NAME = "ic"
IC_NODE = "ic_node"
IC_SUBNET = "ic_subnet"


class JobType(Enum):
    REPLICA = ("replica", 9090, "/")
    ORCHESTRATOR = ("orchestrator", 9091, "/")
    NODE_EXPORTER = ("node_exporter", 9100, "/metrics")

    def __init__(self, job_name: str, port: int, endpoint: str):
        self.job_name = job_name
        self.port = port
        self.endpoint = endpoint

    def __str__(self) -> str:
        return self.job_name

    @classmethod
    def from_name(cls, name: str) -> "JobType":
        for job in cls:
            if job.job_name == name:
                return job
        raise ValueError(f"Unknown job type: {name}")


def tag_literal(value: str) -> str:
    """Quote a tag value as a VRL string literal"""
    return json.dumps(str(value), ensure_ascii=False)


class VectorConfig:
    """Vector sources and transforms for a set of target groups"""

    def __init__(self):
        self.sources: Dict[str, Dict[str, Any]] = {}
        self.transforms: Dict[str, Dict[str, Any]] = {}

    @classmethod
    def from_target_groups(
        cls,
        groups: Iterable[TargetGroup],
        job: JobType,
        scrape_interval: int = 30,
        proxy_url: Optional[str] = None,
    ) -> "VectorConfig":
        config = cls()
        for group in groups:
            config.add_target_group(group, job, scrape_interval, proxy_url)
        return config

    def add_target_group(
        self,
        group: TargetGroup,
        job: JobType,
        scrape_interval: int = 30,
        proxy_url: Optional[str] = None,
    ) -> None:
        if not group.targets:
            raise ValueError(f"Target group for {group.node_name} has no targets")

        key = str(group.targets[0])
        self.sources[f"{key}-source"] = self._source(group, job, scrape_interval, proxy_url)
        self.transforms[f"{key}-transform"] = self._transform(group, job)

    def _source(
        self, group: TargetGroup, job: JobType, scrape_interval: int, proxy_url: Optional[str]
    ) -> Dict[str, Any]:
        source = {
            "type": "prometheus_scrape",
            "endpoints": [f"http://{target}{job.endpoint}" for target in group.targets],
            "scrape_interval_secs": int(scrape_interval),
            "instance_tag": "instance",
            "endpoint_tag": "endpoint",
        }
        if proxy_url:
            source["proxy"] = {"enabled": True, "http": proxy_url}
        return source

    def _transform(self, group: TargetGroup, job: JobType) -> Dict[str, Any]:
        labels = {IC_NAME: group.ic_name, IC_NODE: group.node_name}
        if group.subnet:
            labels[IC_SUBNET] = group.subnet
        labels["job"] = str(job)

        return {
            "type": "remap",
            "inputs": [f"{target}-source" for target in group.targets],
            "source": "\n".join(f".tags.{key} = {tag_literal(value)}" for key, value in labels.items()),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {"sources": self.sources, "transforms": self.transforms}

    def render(self, fmt: str = "yaml") -> str:
        """Serialize as YAML or JSON"""
        if fmt == "json":
            return json.dumps(self.to_dict(), indent=2, sort_keys=True)
        if fmt == "yaml":
            return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=True)
        raise ValueError(f"Unknown format: {fmt}")


def job_names() -> List[str]:
    return [job.job_name for job in JobType]
