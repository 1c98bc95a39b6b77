"""Testnet inventories.

A testnet's nodes are listed in an Ansible-style YAML inventory kept in the
repository next to the deploy tool::

    nns:
      hosts:
        small01-0-0.testnet:
          ipv6: "2a02:800:2:2003:5000:f6ff:fec4:4c86"
    subnet_1:
      hosts:
        small01-1-0.testnet:
          ipv6: "2a02:800:2:2003:5000:f6ff:fec4:4c87"
    boundary:
      hosts:
        small01-bn-0.testnet:
          ansible_host: "10.11.12.13"

Groups may also nest other groups under ``children``. Nodes in ``nns`` and
``subnet_*`` groups are replicas of that subnet; other groups carry no subnet.
"""

import ipaddress
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from testnet_deploy.errors import InventoryError
from testnet_deploy.testnet.identifier import validate_testnet

DEFAULT_PATH_TEMPLATE = "testnet/env/{testnet}/hosts.yml"

ADDRESS_KEYS = ("ipv6", "ansible_host")

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def subnet_for_group(group: str) -> Optional[str]:
    if group == "nns" or group.startswith("subnet_"):
        return group
    return None


def socket_address(address: IPAddress, port: int) -> str:
    """host:port with IPv6 addresses bracketed"""
    if address.version == 6:
        return f"[{address}]:{port}"
    return f"{address}:{port}"


@dataclass(frozen=True)
class Node:
    name: str
    group: str
    address: IPAddress
    subnet: Optional[str] = None

    def socket(self, port: int) -> str:
        return socket_address(self.address, port)


@dataclass(frozen=True)
class TargetGroup:
    """Scrape targets of one node"""

    node_name: str
    ic_name: str
    targets: tuple
    subnet: Optional[str] = None


class Inventory:
    """Nodes of one testnet"""

    def __init__(self, testnet: str, nodes: List[Node]):
        self.testnet = testnet
        self.nodes = nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes)

    def subnets(self) -> Dict[str, List[Node]]:
        """Replica nodes grouped by subnet"""
        result: Dict[str, List[Node]] = {}
        for node in self.nodes:
            if node.subnet:
                result.setdefault(node.subnet, []).append(node)
        return result

    def target_groups(self, port: int) -> List[TargetGroup]:
        return [
            TargetGroup(
                node_name=node.name,
                ic_name=self.testnet,
                targets=(node.socket(port),),
                subnet=node.subnet,
            )
            for node in self.nodes
        ]

    @classmethod
    def from_dict(cls, testnet: str, data: Dict[str, Any]) -> "Inventory":
        if not isinstance(data, dict):
            raise InventoryError(f"Inventory for {testnet} must be a mapping of groups")

        nodes: Dict[str, Node] = {}
        for group, body in data.items():
            _collect(group, body, nodes, inherited={})

        return cls(testnet, sorted(nodes.values(), key=lambda n: (n.group, n.name)))


def _collect(group: str, body: Any, nodes: Dict[str, Node], inherited: Dict[str, Any]) -> None:
    if body is None:
        return
    if not isinstance(body, dict):
        raise InventoryError(f"Group {group} must be a mapping")

    own_vars = body.get("vars") or {}
    hosts = body.get("hosts") or {}
    children = body.get("children") or {}
    for key, value in (("vars", own_vars), ("hosts", hosts), ("children", children)):
        if not isinstance(value, dict):
            raise InventoryError(f"Group {group}: {key} must be a mapping")

    group_vars = {**inherited, **own_vars}

    for name, host_vars in hosts.items():
        if host_vars is not None and not isinstance(host_vars, dict):
            raise InventoryError(f"Host {name} vars must be a mapping")
        host_vars = {**group_vars, **(host_vars or {})}
        if name in nodes:
            # A host listed in several groups keeps the first one
            continue
        nodes[name] = Node(
            name=name,
            group=group,
            address=_parse_address(name, host_vars),
            subnet=subnet_for_group(group),
        )

    for child, child_body in children.items():
        _collect(child, child_body, nodes, group_vars)


def _parse_address(name: str, host_vars: Dict[str, Any]) -> IPAddress:
    raw = next((host_vars[key] for key in ADDRESS_KEYS if host_vars.get(key)), None)
    if raw is None:
        raise InventoryError(f"Host {name} has no address ({' or '.join(ADDRESS_KEYS)})")

    value = str(raw).strip().strip("[]")
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        raise InventoryError(f"Host {name} has invalid address: {raw}") from None


def inventory_path(repo_root: Path, testnet: str, template: str = DEFAULT_PATH_TEMPLATE) -> Path:
    return Path(repo_root) / template.format(testnet=testnet)


def load_inventory(repo_root: Path, testnet: str, template: str = DEFAULT_PATH_TEMPLATE) -> Inventory:
    """Load the inventory of a testnet"""
    testnet = validate_testnet(testnet)
    path = inventory_path(repo_root, testnet, template)

    if not path.is_file():
        raise InventoryError(f"No inventory for testnet {testnet} at {path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InventoryError(f"Invalid inventory {path}: {e}") from e

    inventory = Inventory.from_dict(testnet, data)
    if not inventory.nodes:
        raise InventoryError(f"Inventory {path} lists no hosts")
    return inventory
