import pytest

from testnet_deploy.errors import InvalidTestnetError
from testnet_deploy.testnet.identifier import MAX_LENGTH, validate_testnet


@pytest.mark.parametrize("name", ["small01", "cdslo", "medium05", "my_net-1.b"])
def test_accepts_usual_names(name):
    assert validate_testnet(name) == name


def test_strips_whitespace():
    assert validate_testnet("  small01\n") == "small01"


@pytest.mark.parametrize("name", ["", "   ", "-small01", ".hidden", "small 01", "small01;rm", "a/b", "$(x)"])
def test_rejects_unusable_names(name):
    with pytest.raises(InvalidTestnetError):
        validate_testnet(name)


def test_rejects_none():
    with pytest.raises(InvalidTestnetError):
        validate_testnet(None)


def test_length_limit():
    assert validate_testnet("a" * MAX_LENGTH) == "a" * MAX_LENGTH
    with pytest.raises(InvalidTestnetError):
        validate_testnet("a" * (MAX_LENGTH + 1))


def test_is_a_value_error():
    with pytest.raises(ValueError):
        validate_testnet("bad name")
