"""
Pytest configuration and fixtures for the pToken deployer tests.

Every collaborator that would reach a node or a block explorer is replaced
by unittest.mock objects, no network is needed.

Usage:
    def test_something(mock_client, ptoken):
        mock_client.call.return_value = encode_uint(10)
        ...
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from eth_abi import encode as abi_encode
from eth_account import Account

from ..commands.context import CommandContext
from ..core.client.chain_client import BoundContract, FeeData
from ..core.reporter import RecordingReporter
from ..utils.config_manager import NetworkConfiguration, PTokenConfig
from ..utils.transaction_builder import TransactionReceipt, TransactionResult

TOKEN_ADDRESS = "0x78731D3Ca6b7E34aC0F824c42a7cC18A495cabaB"
SIGNER_ADDRESS = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"
RECIPIENT_ADDRESS = "0xAb8483F64d9C6d1EcF9b849Ae677dD3315835cb2"
TX_HASH = "0x" + "ab" * 32


def encode_uint(value: int) -> bytes:
    return abi_encode(["uint256"], [value])


def make_receipt(status: int = 1, **kwargs) -> TransactionReceipt:
    return TransactionReceipt(
        tx_hash=kwargs.pop("tx_hash", TX_HASH),
        status=status,
        block_number=kwargs.pop("block_number", 100),
        gas_used=kwargs.pop("gas_used", 54321),
        **kwargs
    )


@pytest.fixture
def test_account():
    """Create test account"""
    return Account.create()


@pytest.fixture
def mock_web3():
    """Create mock Web3 instance"""
    web3 = Mock()
    web3.eth.chain_id = 12345
    web3.eth.gas_price = 20000000000
    web3.eth.get_transaction_count = Mock(return_value=0)
    web3.eth.estimate_gas = Mock(return_value=50000)
    return web3


@pytest.fixture
def mock_client():
    """Chain client double: signer address, fees, calls and a transaction builder"""
    client = Mock()
    client.address = SIGNER_ADDRESS
    client.get_fee_data = AsyncMock(return_value=FeeData(
        gas_price=30 * 10**9,
        max_fee_per_gas=50 * 10**9,
        max_priority_fee_per_gas=2 * 10**9
    ))
    client.get_chain_id = AsyncMock(return_value=12345)
    client.call = AsyncMock(return_value=encode_uint(0))
    client.tx_builder.build_and_send_tx = AsyncMock(return_value=TransactionResult(
        tx_hash=TX_HASH,
        tx_receipt=make_receipt(),
        success=True
    ))
    client.contract = Mock(side_effect=lambda address, name="pToken": BoundContract(client, address, name))
    return client


@pytest.fixture
def ptoken(mock_client):
    """pToken handle bound to the mock client"""
    return BoundContract(client=mock_client, address=TOKEN_ADDRESS)


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def config():
    return PTokenConfig(
        networks={"local": NetworkConfiguration(name="local", rpc_url="http://127.0.0.1:8545", chain_id=12345)},
        default_network="local",
        existing_contracts={"ropsten": TOKEN_ADDRESS},
    )


@pytest.fixture
def ctx(config, reporter, mock_client):
    """Command context whose client factory hands out mock_client"""
    return CommandContext(config, reporter, client_factory=Mock(return_value=mock_client))


# Markers
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "encoding: mark test as exercising byte-exact ABI output"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to handle async tests."""
    for item in items:
        # Add asyncio marker to all async tests
        if asyncio.iscoroutinefunction(getattr(item, "obj", None)):
            item.add_marker(pytest.mark.asyncio)
