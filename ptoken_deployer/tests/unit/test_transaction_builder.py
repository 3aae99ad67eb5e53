"""
Unit tests for transaction building and the chain client

Web3 is a Mock; signing uses a throwaway eth_account key.
"""

import asyncio
from unittest.mock import Mock, patch

import pytest
from eth_abi import encode as abi_encode
from web3.exceptions import ContractLogicError, TransactionNotFound

from ptoken_deployer.core.client.chain_client import BoundContract, ChainClient, FeeData
from ptoken_deployer.tests.conftest import TOKEN_ADDRESS
from ptoken_deployer.utils.exceptions import (
    ConfigurationError,
    ErrorCodes,
    RevertedError,
    SubmissionError,
)
from ptoken_deployer.utils.transaction_builder import (
    TransactionBuilder,
    TransactionOptions,
    TransactionReceipt,
    decode_revert_reason,
    revert_reason_from_exception,
)

TX_HASH_BYTES = bytes.fromhex("ab" * 32)


def _web3_receipt(status=1, contract_address=None):
    return {
        "transactionHash": TX_HASH_BYTES,
        "status": status,
        "blockNumber": 7,
        "gasUsed": 21000,
        "contractAddress": contract_address,
        "logs": [],
    }


class TestRevertReasons:
    """Test revert reason extraction"""

    def test_decode_error_string(self):
        payload = bytes.fromhex("08c379a0") + abi_encode(["string"], ["ERC777: mint to the zero address"])
        assert decode_revert_reason(payload) == "ERC777: mint to the zero address"
        assert decode_revert_reason("0x" + payload.hex()) == "ERC777: mint to the zero address"

    def test_decode_other_payloads(self):
        assert decode_revert_reason(None) is None
        assert decode_revert_reason("0x4e487b71" + "00" * 32) is None
        assert decode_revert_reason("not hex") is None

    def test_reason_from_node_message(self):
        error = ContractLogicError("execution reverted: Recipient cannot be the token contract address!")
        assert revert_reason_from_exception(error) == "Recipient cannot be the token contract address!"


class TestTransactionBuilder:
    """Test transaction building"""

    def test_build_legacy_transaction(self, mock_web3, test_account):
        builder = TransactionBuilder(mock_web3, test_account)

        tx = asyncio.run(builder.build_transaction(
            to=TOKEN_ADDRESS,
            data="0x70a08231",
            options=TransactionOptions(gas_price=10**9, tx_type=0)
        ))

        assert tx['to'] == TOKEN_ADDRESS
        assert tx['data'] == "0x70a08231"
        assert tx['chainId'] == 12345
        assert tx['nonce'] == 0
        assert tx['gasPrice'] == 10**9
        assert tx['gas'] == 60000  # 50000 estimate with 1.2 padding
        assert 'maxFeePerGas' not in tx

    def test_build_eip1559_transaction(self, mock_web3, test_account):
        builder = TransactionBuilder(mock_web3, test_account)
        options = FeeData(gas_price=10**9, max_fee_per_gas=3 * 10**9, max_priority_fee_per_gas=10**9).to_options()

        tx = asyncio.run(builder.build_transaction(to=TOKEN_ADDRESS, data="0x", options=options))

        assert tx['type'] == 2
        assert tx['maxFeePerGas'] == 3 * 10**9
        assert tx['maxPriorityFeePerGas'] == 10**9
        assert 'gasPrice' not in tx

    def test_contract_creation_has_no_recipient(self, mock_web3, test_account):
        builder = TransactionBuilder(mock_web3, test_account)

        tx = asyncio.run(builder.build_transaction(to=None, data="0x6080"))

        assert 'to' not in tx
        assert tx['gasPrice'] == 20000000000

    def test_explicit_gas_limit_skips_estimate(self, mock_web3, test_account):
        builder = TransactionBuilder(mock_web3, test_account, default_options=TransactionOptions(gas_limit=90000))

        tx = asyncio.run(builder.build_transaction(to=TOKEN_ADDRESS))

        assert tx['gas'] == 90000
        mock_web3.eth.estimate_gas.assert_not_called()

    def test_estimate_revert(self, mock_web3, test_account):
        mock_web3.eth.estimate_gas = Mock(side_effect=ContractLogicError("execution reverted: Caller is not a minter"))
        builder = TransactionBuilder(mock_web3, test_account)

        with pytest.raises(RevertedError) as exc_info:
            asyncio.run(builder.estimate_gas({"to": TOKEN_ADDRESS, "data": "0x"}))

        assert exc_info.value.reason == "Caller is not a minter"

    def test_estimate_failure(self, mock_web3, test_account):
        mock_web3.eth.estimate_gas = Mock(side_effect=ConnectionError("connection refused"))
        builder = TransactionBuilder(mock_web3, test_account)

        with pytest.raises(SubmissionError):
            asyncio.run(builder.estimate_gas({"to": TOKEN_ADDRESS, "data": "0x"}))

    def test_send_transaction_waits_for_receipt(self, mock_web3, test_account):
        mock_web3.eth.send_raw_transaction = Mock(return_value=TX_HASH_BYTES)
        mock_web3.eth.get_transaction_receipt = Mock(return_value=_web3_receipt())
        builder = TransactionBuilder(mock_web3, test_account)

        result = asyncio.run(builder.build_and_send_tx(
            to=TOKEN_ADDRESS,
            data="0x",
            options=TransactionOptions(gas_price=10**9)
        ))

        assert result.success
        assert result.tx_hash == "0x" + "ab" * 32
        assert result.tx_receipt.block_number == 7
        mock_web3.eth.send_raw_transaction.assert_called_once()

    def test_send_failure(self, mock_web3, test_account):
        mock_web3.eth.send_raw_transaction = Mock(side_effect=ValueError({"message": "nonce too low"}))
        builder = TransactionBuilder(mock_web3, test_account)

        with pytest.raises(SubmissionError, match="nonce too low"):
            asyncio.run(builder.build_and_send_tx(to=TOKEN_ADDRESS, options=TransactionOptions(gas_price=1)))

        mock_web3.eth.send_raw_transaction.assert_called_once()

    def test_receipt_polling(self, mock_web3, test_account):
        mock_web3.eth.get_transaction_receipt = Mock(side_effect=[
            TransactionNotFound("not yet"),
            _web3_receipt(status=0),
        ])
        builder = TransactionBuilder(mock_web3, test_account, poll_latency=0.001)

        receipt = asyncio.run(builder.wait_for_receipt(TX_HASH_BYTES))

        assert receipt.status == 0
        assert not receipt.success
        assert mock_web3.eth.get_transaction_receipt.call_count == 2

    def test_receipt_timeout(self, mock_web3, test_account):
        mock_web3.eth.get_transaction_receipt = Mock(side_effect=TransactionNotFound("not yet"))
        builder = TransactionBuilder(mock_web3, test_account, receipt_timeout=0.01, poll_latency=0.005)

        with pytest.raises(SubmissionError) as exc_info:
            asyncio.run(builder.wait_for_receipt(TX_HASH_BYTES))

        assert exc_info.value.code == ErrorCodes.RECEIPT_TIMEOUT
        assert exc_info.value.tx_hash == "0x" + "ab" * 32


class TestTransactionReceipt:
    """Test receipt normalization"""

    def test_from_web3(self):
        receipt = TransactionReceipt.from_web3(_web3_receipt(contract_address=TOKEN_ADDRESS))

        assert receipt.success
        assert receipt.contract_address == TOKEN_ADDRESS
        assert receipt.to_dict()["transactionHash"] == "0x" + "ab" * 32


class TestChainClient:
    """Test the web3 wrapper"""

    def test_eip1559_fee_data(self, mock_web3):
        mock_web3.eth.get_block = Mock(return_value={"baseFeePerGas": 10 * 10**9})
        mock_web3.eth.max_priority_fee = 2 * 10**9
        client = ChainClient(mock_web3)

        fee_data = asyncio.run(client.get_fee_data())

        assert fee_data.supports_eip1559
        assert fee_data.max_fee_per_gas == 22 * 10**9
        assert fee_data.max_priority_fee_per_gas == 2 * 10**9
        assert fee_data.gas_price == 20000000000

    def test_legacy_fee_data(self, mock_web3):
        mock_web3.eth.get_block = Mock(return_value={"number": 1})
        client = ChainClient(mock_web3)

        fee_data = asyncio.run(client.get_fee_data())

        assert not fee_data.supports_eip1559
        assert fee_data.to_options().gas_price == 20000000000

    def test_signer_required_for_transactions(self, mock_web3):
        client = ChainClient(mock_web3)

        with pytest.raises(ConfigurationError):
            client.tx_builder
        with pytest.raises(ConfigurationError):
            client.address

    def test_transactions_go_through_one_builder(self, mock_web3, test_account):
        client = ChainClient(mock_web3, test_account, receipt_timeout=30, poll_latency=0.5)

        builder = client.tx_builder

        assert builder is client.tx_builder
        assert builder.account is test_account
        assert (builder.receipt_timeout, builder.poll_latency) == (30, 0.5)
        for name in ("send_raw_transaction", "wait_for_receipt", "get_nonce", "estimate_gas"):
            assert not hasattr(client, name)

    def test_contract_checksums_address(self, mock_web3, test_account):
        client = ChainClient(mock_web3, test_account)

        contract = client.contract(TOKEN_ADDRESS.lower())

        assert isinstance(contract, BoundContract)
        assert contract.address == TOKEN_ADDRESS
        assert str(contract) == f"pToken@{TOKEN_ADDRESS}"

    def test_balance_of(self, mock_web3, test_account):
        mock_web3.eth.call = Mock(return_value=abi_encode(["uint256"], [1337]))
        client = ChainClient(mock_web3, test_account)

        balance = asyncio.run(client.contract(TOKEN_ADDRESS).balance_of(test_account.address))

        assert balance == 1337
        tx, block = mock_web3.eth.call.call_args.args
        assert tx["to"] == TOKEN_ADDRESS
        assert tx["data"].startswith("0x70a08231")
        assert block == "latest"

    def test_view_call_revert(self, mock_web3, test_account):
        mock_web3.eth.call = Mock(side_effect=ContractLogicError("execution reverted: Caller is not an admin"))
        client = ChainClient(mock_web3, test_account)

        with pytest.raises(RevertedError) as exc_info:
            asyncio.run(client.contract(TOKEN_ADDRESS).balance_of(test_account.address))

        assert exc_info.value.reason == "Caller is not an admin"

    def test_call_transport_failure(self, mock_web3):
        mock_web3.eth.call = Mock(side_effect=ConnectionError("refused"))
        client = ChainClient(mock_web3)

        with pytest.raises(SubmissionError):
            asyncio.run(client.call(TOKEN_ADDRESS, "0x"))

    def test_from_rpc_url(self, test_account):
        with patch("ptoken_deployer.core.client.chain_client.Web3") as web3_cls:
            client = ChainClient.from_rpc_url("http://127.0.0.1:8545", test_account.key.hex(), poll_latency=0.5)

        web3_cls.HTTPProvider.assert_called_once_with("http://127.0.0.1:8545")
        assert client.address == test_account.address
        assert client._builder_kwargs["poll_latency"] == 0.5
