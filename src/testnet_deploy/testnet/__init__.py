"""Testnet identifiers and inventories."""

from .identifier import validate_testnet
from .inventory import Inventory, Node, TargetGroup, load_inventory

__all__ = [
    "validate_testnet",
    "Inventory",
    "Node",
    "TargetGroup",
    "load_inventory",
]
