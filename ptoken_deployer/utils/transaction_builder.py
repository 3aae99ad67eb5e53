"""
Transaction builder for the pToken deployer

This module builds, signs and broadcasts transactions for a single local
signer and waits for their receipts.

Design Notes:
- Supports both EIP-1559 and legacy transaction types
- Pads gas estimates; a revert during estimation is reported before broadcast
- Broadcasts exactly once per call, never retries
- Receipt wait is unbounded unless a timeout is configured
- Uses run_in_executor for synchronous Web3 calls to avoid blocking
"""

import asyncio
import functools
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import ContractLogicError, TransactionNotFound
from web3.types import TxParams, Wei

from .common import to_hex
from .exceptions import ErrorCodes, RevertedError, SubmissionError

LOG = logging.getLogger(__name__)

T = TypeVar('T')

# Shared thread pool for Web3 sync calls
_web3_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="web3_sync_")

ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")
MIN_GAS_LIMIT = 21000


async def run_sync(func: Callable[..., T], *args, **kwargs) -> T:
    """
    Run a synchronous function in a thread pool to avoid blocking the event loop.

    Args:
        func: Synchronous function to run
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func
    """
    loop = asyncio.get_running_loop()
    partial_func = functools.partial(func, *args, **kwargs)
    return await loop.run_in_executor(_web3_executor, partial_func)


def decode_revert_reason(data: Any) -> Optional[str]:
    """Decode an Error(string) revert payload, None for anything else"""
    if isinstance(data, str):
        try:
            data = bytes.fromhex(data[2:] if data.startswith("0x") else data)
        except ValueError:
            return None
    if not isinstance(data, (bytes, bytearray)) or bytes(data[:4]) != ERROR_STRING_SELECTOR:
        return None
    try:
        return abi_decode(["string"], bytes(data[4:]))[0]
    except DecodingError:
        return None


def revert_reason_from_exception(error: BaseException) -> Optional[str]:
    """Best-effort revert reason from a web3 ContractLogicError"""
    reason = decode_revert_reason(getattr(error, "data", None))
    if reason:
        return reason

    message = getattr(error, "message", None) or str(error)
    marker = "execution reverted"
    if marker in message:
        reason = message.split(marker, 1)[1].lstrip(":").strip()
        return reason or None
    return message or None


@dataclass
class TransactionOptions:
    """Options for transaction construction"""
    gas_limit: Optional[int] = None
    max_fee_per_gas: Optional[int] = None  # For EIP-1559
    max_priority_fee_per_gas: Optional[int] = None  # For EIP-1559
    gas_price: Optional[int] = None  # For legacy transactions
    nonce: Optional[int] = None
    value: int = 0
    chain_id: Optional[int] = None
    tx_type: Optional[int] = None  # 0 for legacy, 2 for EIP-1559


@dataclass
class TransactionReceipt:
    """Normalized receipt of a mined transaction"""
    tx_hash: str
    status: int
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    contract_address: Optional[str] = None
    logs: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == 1

    @classmethod
    def from_web3(cls, receipt: Any) -> "TransactionReceipt":
        return cls(
            tx_hash=to_hex(receipt["transactionHash"]),
            status=int(receipt["status"]),
            block_number=receipt.get("blockNumber"),
            gas_used=receipt.get("gasUsed"),
            contract_address=receipt.get("contractAddress"),
            logs=[dict(log) for log in receipt.get("logs", [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transactionHash": self.tx_hash,
            "status": self.status,
            "blockNumber": self.block_number,
            "gasUsed": self.gas_used,
            "contractAddress": self.contract_address,
            "logs": len(self.logs),
        }


@dataclass
class TransactionResult:
    """Result of a transaction"""
    tx_hash: str
    tx_receipt: Optional[TransactionReceipt] = None
    success: bool = False
    timestamp: Optional[datetime] = None


class TransactionBuilder:
    """
    Builds, signs and sends transactions for one local account.
    """

    def __init__(
        self,
        web3: Web3,
        account: LocalAccount,
        default_options: Optional[TransactionOptions] = None,
        gas_limit_padding: float = 1.2,
        receipt_timeout: Optional[float] = None,
        poll_latency: float = 1.0
    ):
        """
        Initialize transaction builder.

        Args:
            web3: Web3 instance for blockchain interaction
            account: Account to sign transactions with
            default_options: Default transaction options
            gas_limit_padding: Multiplier applied to gas estimates
            receipt_timeout: Seconds to wait for a receipt, None waits forever
            poll_latency: Receipt polling interval in seconds
        """
        self.web3 = web3
        self.account = account
        self.default_options = default_options or TransactionOptions()
        self.gas_limit_padding = gas_limit_padding
        self.receipt_timeout = receipt_timeout
        self.poll_latency = poll_latency

    async def get_nonce(self) -> int:
        """Pending transaction count of the signer"""
        address = self.account.address
        try:
            return await run_sync(self.web3.eth.get_transaction_count, address, 'pending')
        except Exception as e:
            raise SubmissionError(
                f"Failed to get nonce for {address}: {e}",
                from_address=address,
                cause=e
            )

    async def estimate_gas(self, transaction: TxParams) -> int:
        """
        Estimate gas required for a transaction.

        Raises:
            RevertedError: The node reports the call would revert
            SubmissionError: Estimation failed for any other reason
        """
        tx_copy = dict(transaction)
        tx_copy.setdefault('from', self.account.address)
        for key in ('gas', 'maxFeePerGas', 'maxPriorityFeePerGas', 'gasPrice', 'nonce', 'chainId'):
            tx_copy.pop(key, None)

        try:
            gas_estimate = await run_sync(self.web3.eth.estimate_gas, tx_copy)
        except ContractLogicError as e:
            reason = revert_reason_from_exception(e)
            raise RevertedError(
                f"Transaction would revert: {reason or 'no reason given'}",
                reason=reason,
                cause=e
            )
        except Exception as e:
            raise SubmissionError(
                f"Gas estimation failed: {e}",
                from_address=self.account.address,
                to_address=transaction.get('to'),
                cause=e
            )

        gas_limit = max(int(gas_estimate * self.gas_limit_padding), MIN_GAS_LIMIT)
        LOG.debug(f"Gas estimate: {gas_estimate} -> {gas_limit} (with padding)")
        return gas_limit

    def _merge_options(self, options: Optional[TransactionOptions]) -> TransactionOptions:
        opts = self.default_options
        if not options:
            return opts
        return TransactionOptions(
            gas_limit=options.gas_limit or opts.gas_limit,
            max_fee_per_gas=options.max_fee_per_gas or opts.max_fee_per_gas,
            max_priority_fee_per_gas=options.max_priority_fee_per_gas or opts.max_priority_fee_per_gas,
            gas_price=options.gas_price or opts.gas_price,
            nonce=options.nonce if options.nonce is not None else opts.nonce,
            value=options.value or opts.value,
            chain_id=options.chain_id or opts.chain_id,
            tx_type=options.tx_type if options.tx_type is not None else opts.tx_type
        )

    async def build_transaction(
        self,
        to: Optional[str],
        data: Optional[str] = None,
        options: Optional[TransactionOptions] = None
    ) -> TxParams:
        """
        Build a transaction with explicit fees.

        Args:
            to: Recipient address, None for contract creation
            data: Transaction data (calldata or init code)
            options: Transaction options to override defaults

        Returns:
            Complete transaction dictionary
        """
        opts = self._merge_options(options)

        tx: TxParams = {
            'from': self.account.address,
            'value': Wei(opts.value),
            'data': data or '0x'
        }
        if to is not None:
            tx['to'] = to

        if opts.chain_id:
            tx['chainId'] = opts.chain_id
        else:
            tx['chainId'] = await run_sync(lambda: self.web3.eth.chain_id)

        tx['nonce'] = opts.nonce if opts.nonce is not None else await self.get_nonce()

        if opts.tx_type == 2 or (opts.tx_type is None and opts.max_fee_per_gas):
            tx['maxFeePerGas'] = Wei(opts.max_fee_per_gas)
            if opts.max_priority_fee_per_gas is not None:
                tx['maxPriorityFeePerGas'] = Wei(opts.max_priority_fee_per_gas)
            tx['type'] = 2
        else:
            if opts.gas_price:
                tx['gasPrice'] = Wei(opts.gas_price)
            else:
                tx['gasPrice'] = await run_sync(lambda: self.web3.eth.gas_price)

        tx['gas'] = opts.gas_limit or await self.estimate_gas(tx)
        return tx

    def sign_transaction(self, transaction: TxParams) -> bytes:
        """Sign a transaction with the account's private key"""
        signable = {k: v for k, v in transaction.items() if k != 'from'}
        try:
            signed_tx = self.account.sign_transaction(signable)
        except Exception as e:
            raise SubmissionError(
                f"Failed to sign transaction: {e}",
                from_address=self.account.address,
                cause=e
            )
        # Support both old and new eth-account API
        return getattr(signed_tx, 'raw_transaction', None) or getattr(signed_tx, 'rawTransaction')

    async def send_transaction(self, transaction: TxParams, wait_for_receipt: bool = True) -> TransactionResult:
        """
        Sign and broadcast a transaction, then optionally wait for inclusion.

        Raises:
            SubmissionError: Broadcast failed or the receipt wait timed out
        """
        raw_tx = self.sign_transaction(transaction)

        try:
            tx_hash = await run_sync(self.web3.eth.send_raw_transaction, raw_tx)
        except Exception as e:
            raise SubmissionError(
                f"Failed to send transaction: {e}",
                from_address=self.account.address,
                to_address=transaction.get('to'),
                cause=e
            )

        result = TransactionResult(tx_hash=to_hex(tx_hash), timestamp=datetime.now())
        LOG.info(f"Transaction sent: {result.tx_hash}")

        if wait_for_receipt:
            receipt = await self.wait_for_receipt(tx_hash)
            result.tx_receipt = receipt
            result.success = receipt.success
            if result.success:
                LOG.info(f"Transaction confirmed in block {receipt.block_number}: {result.tx_hash}")
            else:
                LOG.error(f"Transaction failed: {result.tx_hash}")

        return result

    async def wait_for_receipt(self, tx_hash) -> TransactionReceipt:
        """Poll for a receipt until it exists or the configured timeout expires"""
        start_time = time.time()
        tx_hash_hex = to_hex(tx_hash)

        while True:
            try:
                receipt = await run_sync(self.web3.eth.get_transaction_receipt, tx_hash)
                if receipt is not None:
                    return TransactionReceipt.from_web3(receipt)
            except TransactionNotFound:
                pass

            if self.receipt_timeout is not None and time.time() - start_time > self.receipt_timeout:
                raise SubmissionError(
                    f"Transaction receipt timeout after {self.receipt_timeout}s",
                    tx_hash=tx_hash_hex,
                    code=ErrorCodes.RECEIPT_TIMEOUT
                )

            await asyncio.sleep(self.poll_latency)

    async def build_and_send_tx(
        self,
        to: Optional[str],
        data: Optional[str] = None,
        options: Optional[TransactionOptions] = None,
        wait_for_receipt: bool = True
    ) -> TransactionResult:
        """Build a transaction and send it in one call"""
        tx = await self.build_transaction(to=to, data=data, options=options)
        return await self.send_transaction(tx, wait_for_receipt=wait_for_receipt)
