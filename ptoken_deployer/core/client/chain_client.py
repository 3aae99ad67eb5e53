import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import ContractLogicError

from ..abi_encoder import Address, decode_output, encode
from ...utils.common import to_hex
from ...utils.exceptions import ConfigurationError, RevertedError, SubmissionError
from ...utils.transaction_builder import (
    TransactionBuilder,
    TransactionOptions,
    revert_reason_from_exception,
    run_sync,
)

LOG = logging.getLogger(__name__)

ONE_GWEI = 10**9


@dataclass
class FeeData:
    """Network fee suggestion, EIP-1559 fields are None on legacy chains"""
    gas_price: Optional[int]
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None

    @property
    def supports_eip1559(self) -> bool:
        return self.max_fee_per_gas is not None

    def to_options(self) -> TransactionOptions:
        if self.supports_eip1559:
            return TransactionOptions(
                max_fee_per_gas=self.max_fee_per_gas,
                max_priority_fee_per_gas=self.max_priority_fee_per_gas,
                tx_type=2
            )
        return TransactionOptions(gas_price=self.gas_price, tx_type=0)


class ChainClient:
    """EVM chain client bound to one signer"""

    def __init__(
        self,
        web3: Web3,
        account: Optional[LocalAccount] = None,
        gas_limit_padding: float = 1.2,
        receipt_timeout: Optional[float] = None,
        poll_latency: float = 1.0
    ):
        self.web3 = web3
        self.account = account
        self._tx_builder: Optional[TransactionBuilder] = None
        self._builder_kwargs = dict(
            gas_limit_padding=gas_limit_padding,
            receipt_timeout=receipt_timeout,
            poll_latency=poll_latency
        )

    @classmethod
    def from_rpc_url(cls, rpc_url: str, private_key: Optional[str] = None, **kwargs) -> "ChainClient":
        web3 = Web3(Web3.HTTPProvider(rpc_url))
        account = Account.from_key(private_key) if private_key else None
        return cls(web3, account, **kwargs)

    @property
    def address(self) -> str:
        if self.account is None:
            raise ConfigurationError("No signing key configured, set PTOKEN_PRIVATE_KEY", field="private_key")
        return self.account.address

    @property
    def tx_builder(self) -> TransactionBuilder:
        if self._tx_builder is None:
            if self.account is None:
                raise ConfigurationError("No signing key configured, set PTOKEN_PRIVATE_KEY", field="private_key")
            self._tx_builder = TransactionBuilder(self.web3, self.account, **self._builder_kwargs)
        return self._tx_builder

    async def get_chain_id(self) -> int:
        return await run_sync(lambda: self.web3.eth.chain_id)

    async def get_gas_price(self) -> int:
        return await run_sync(lambda: self.web3.eth.gas_price)

    async def get_block(self, block_identifier: Any = "latest") -> Dict[str, Any]:
        return await run_sync(self.web3.eth.get_block, block_identifier)

    async def get_code(self, address: str) -> str:
        code = await run_sync(self.web3.eth.get_code, Web3.to_checksum_address(address))
        return to_hex(code)

    async def get_fee_data(self) -> FeeData:
        """
        Suggested fees for the next transaction.

        maxFeePerGas is twice the latest base fee plus the priority fee,
        falling back to a 1 gwei tip when the node has no suggestion.
        """
        LOG.debug("Fetching suggested fee data...")
        gas_price = await self.get_gas_price()
        block = await self.get_block("latest")
        base_fee = block.get("baseFeePerGas")
        if base_fee is None:
            return FeeData(gas_price=gas_price)

        try:
            priority_fee = await run_sync(lambda: self.web3.eth.max_priority_fee)
        except ValueError as e:
            LOG.warning(f"Node has no max priority fee suggestion ({e}), using 1 gwei")
            priority_fee = ONE_GWEI

        return FeeData(
            gas_price=gas_price,
            max_fee_per_gas=base_fee * 2 + priority_fee,
            max_priority_fee_per_gas=priority_fee
        )

    async def call(self, to: str, data: str, block_identifier: Any = "latest", from_: Optional[str] = None) -> bytes:
        """Execute a read-only call"""
        tx = {"to": Web3.to_checksum_address(to), "data": data}
        if from_:
            tx["from"] = from_
        try:
            return bytes(await run_sync(self.web3.eth.call, tx, block_identifier))
        except ContractLogicError:
            raise
        except Exception as e:
            raise SubmissionError(f"eth_call to {to} failed: {e}", to_address=to, cause=e)

    def contract(self, address: str, name: str = "pToken") -> "BoundContract":
        return BoundContract(client=self, address=Address(address).value, name=name)


@dataclass
class BoundContract:
    """Deployed contract handle: address plus the client used to reach it"""
    client: ChainClient
    address: str
    name: str = "pToken"

    async def call(self, signature: str, args: Sequence[Any], output_types: Sequence[str]) -> Tuple[Any, ...]:
        """Encode a view call, execute it and decode the result"""
        data = encode(signature, args)
        try:
            result = await self.client.call(self.address, data)
        except ContractLogicError as e:
            reason = revert_reason_from_exception(e)
            raise RevertedError(f"Call to {signature} on {self} reverted: {reason}", reason=reason, cause=e)
        return decode_output(output_types, result)

    async def balance_of(self, holder: str) -> int:
        (balance,) = await self.call("balanceOf(address)", [holder], ["uint256"])
        return balance

    def __str__(self) -> str:
        return f"{self.name}@{self.address}"
