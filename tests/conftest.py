import pytest
from web3 import Web3

from commitment_config import reset_to_default_config

RAW_ADDRESSES = [
    "0x627306090abab3a6e1400e9345bc60c78a8bef57",
    "0xf17f52151ebef6c7334fad080c5704d77216b732",
    "0xc5fdf4076b8f3a5357c5e395ab970b5b54098fef",
    "0x821aea9a577a9b44299b9c15c88cf3087f3b5544",
    "0x0d1d4e623d10f9fba5db95830f7d3839406c6af2",
    "0x2932b7a2355d6fecc4b5c0b6bd44cc31df247a2e",
]


@pytest.fixture(autouse=True)
def default_config():
    reset_to_default_config()
    yield
    reset_to_default_config()


@pytest.fixture
def payees():
    return [Web3.to_checksum_address(a) for a in RAW_ADDRESSES]


@pytest.fixture
def payments(payees):
    # payees[0] stands in for a miner that is never paid
    return [
        {"payee": payees[1], "amount": 10},
        {"payee": payees[2], "amount": 12},
        {"payee": payees[3], "amount": 2},
        {"payee": payees[4], "amount": 1},
    ]
