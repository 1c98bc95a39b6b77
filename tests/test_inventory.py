import ipaddress

import pytest

from testnet_deploy.errors import InventoryError
from testnet_deploy.testnet.inventory import Inventory, load_inventory, socket_address


class TestLoadInventory:
    def test_loads_nodes(self, repo):
        inventory = load_inventory(repo, "small01")

        assert inventory.testnet == "small01"
        assert len(inventory) == 4
        names = {node.name: node for node in inventory}
        assert names["small01-0-0"].subnet == "nns"
        assert names["small01-1-0"].subnet == "subnet_1"
        assert names["small01-bn-0"].subnet is None
        assert names["small01-bn-0"].address == ipaddress.ip_address("10.11.12.13")

    def test_subnets(self, repo):
        subnets = load_inventory(repo, "small01").subnets()

        assert sorted(subnets) == ["nns", "subnet_1"]
        assert [n.name for n in subnets["nns"]] == ["small01-0-0", "small01-0-1"]

    def test_missing_inventory(self, repo):
        with pytest.raises(InventoryError, match="No inventory"):
            load_inventory(repo, "medium05")

    def test_custom_path_template(self, repo):
        path = repo / "inventories" / "small01.yml"
        path.parent.mkdir()
        path.write_text("nns:\n  hosts:\n    n0:\n      ipv6: '::1'\n")

        inventory = load_inventory(repo, "small01", "inventories/{testnet}.yml")

        assert [node.name for node in inventory] == ["n0"]

    def test_empty_inventory(self, repo):
        path = repo / "testnet" / "env" / "empty" / "hosts.yml"
        path.parent.mkdir(parents=True)
        path.write_text("")

        with pytest.raises(InventoryError, match="no hosts"):
            load_inventory(repo, "empty")


class TestInventoryFromDict:
    def test_nested_children_and_vars(self):
        data = {
            "all": {
                "vars": {"ansible_host": "10.0.0.1"},
                "children": {
                    "subnet_2": {
                        "hosts": {
                            "a": {"ipv6": "[2001:db8::1]"},
                            "b": None,
                        }
                    }
                },
            }
        }

        inventory = Inventory.from_dict("net", data)

        nodes = {node.name: node for node in inventory}
        assert nodes["a"].address == ipaddress.ip_address("2001:db8::1")
        assert nodes["a"].subnet == "subnet_2"
        assert nodes["b"].address == ipaddress.ip_address("10.0.0.1")

    def test_host_without_address(self):
        with pytest.raises(InventoryError, match="no address"):
            Inventory.from_dict("net", {"nns": {"hosts": {"a": {}}}})

    def test_host_with_bad_address(self):
        with pytest.raises(InventoryError, match="invalid address"):
            Inventory.from_dict("net", {"nns": {"hosts": {"a": {"ipv6": "not-an-ip"}}}})

    def test_group_must_be_mapping(self):
        with pytest.raises(InventoryError):
            Inventory.from_dict("net", {"nns": ["a", "b"]})

    @pytest.mark.parametrize(
        "body",
        [
            {"hosts": ["small01-0-0", "small01-0-1"]},
            {"hosts": {"a": "2001:db8::1"}},
            {"vars": ["ipv6"], "hosts": {}},
            {"children": "subnet_1"},
        ],
    )
    def test_malformed_group_body(self, body):
        with pytest.raises(InventoryError, match="must be a mapping"):
            Inventory.from_dict("net", {"nns": body})

    def test_target_groups(self):
        inventory = Inventory.from_dict(
            "net",
            {
                "nns": {"hosts": {"a": {"ipv6": "2001:db8::1"}}},
                "aux": {"hosts": {"b": {"ansible_host": "192.0.2.7"}}},
            },
        )

        groups = {g.node_name: g for g in inventory.target_groups(9090)}

        assert groups["a"].targets == ("[2001:db8::1]:9090",)
        assert groups["a"].subnet == "nns"
        assert groups["a"].ic_name == "net"
        assert groups["b"].targets == ("192.0.2.7:9090",)
        assert groups["b"].subnet is None


def test_socket_address():
    assert socket_address(ipaddress.ip_address("::1"), 80) == "[::1]:80"
    assert socket_address(ipaddress.ip_address("127.0.0.1"), 80) == "127.0.0.1:80"
