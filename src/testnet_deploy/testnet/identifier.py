"""Testnet identifiers"""

import re

from testnet_deploy.errors import InvalidTestnetError

MAX_LENGTH = 64

_TESTNET_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def validate_testnet(name: str) -> str:
    """Return the testnet identifier, stripped, or raise InvalidTestnetError"""
    if name is None:
        raise InvalidTestnetError("Testnet identifier is required")

    testnet = str(name).strip()
    if not testnet:
        raise InvalidTestnetError("Testnet identifier is required")
    if len(testnet) > MAX_LENGTH:
        raise InvalidTestnetError(f"Testnet identifier longer than {MAX_LENGTH} characters: {testnet}")
    if not _TESTNET_RE.match(testnet):
        raise InvalidTestnetError(f"Invalid testnet identifier: {testnet!r}")

    return testnet
