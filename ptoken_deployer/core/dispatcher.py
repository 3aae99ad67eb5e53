"""
Contract call dispatcher

Encodes a state-changing call, resolves fees, broadcasts a single transaction
and waits for it to be included.

Design Notes:
- With no gas price override the network fee suggestion is queried first,
  so the cost of every transaction is explicit
- Exactly one broadcast per dispatch, no retry of an unconfirmed transaction
- A reverted receipt is replayed with eth_call at its block to recover the
  revert reason
"""

import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

from web3.exceptions import ContractLogicError

from .abi_encoder import FunctionSignature, encode
from .client.chain_client import BoundContract, ChainClient
from ..utils.exceptions import RevertedError, SubmissionError, ValidationError
from ..utils.transaction_builder import (
    TransactionOptions,
    TransactionReceipt,
    revert_reason_from_exception,
)

LOG = logging.getLogger(__name__)


async def resolve_fee_options(client: ChainClient, gas_price: Optional[int]) -> TransactionOptions:
    """Fee options for a dispatch: the override, else the network suggestion"""
    if gas_price is not None:
        if isinstance(gas_price, bool) or not isinstance(gas_price, int) or gas_price <= 0:
            raise ValidationError(f"Gas price must be a positive integer in wei, got {gas_price!r}")
        LOG.info(f"Using gas price override: {gas_price} wei")
        return TransactionOptions(gas_price=gas_price, tx_type=0)

    fee_data = await client.get_fee_data()
    LOG.info(f"Using suggested fees: {fee_data}")
    return fee_data.to_options()


async def _replay_revert_reason(contract: BoundContract, call_data: str, receipt: TransactionReceipt) -> Optional[str]:
    try:
        await contract.client.call(
            contract.address,
            call_data,
            block_identifier=receipt.block_number,
            from_=contract.client.address
        )
    except ContractLogicError as e:
        return revert_reason_from_exception(e)
    except SubmissionError as e:
        LOG.warning(f"Could not replay reverted transaction {receipt.tx_hash}: {e}")
    return None


async def dispatch(
    signature: str,
    args: Sequence[Any],
    gas_price: Optional[int],
    contract: BoundContract
) -> TransactionReceipt:
    """
    Call a state-changing function and wait for one confirmation.

    Args:
        signature: Function signature, e.g. "grantMinterRole(address)"
        args: Ordered arguments for the signature
        gas_price: Legacy gas price override in wei, None to use suggested fees
        contract: Bound contract to call

    Returns:
        Receipt of the mined transaction

    Raises:
        EncodingError: Arguments do not fit the signature
        RevertedError: The call reverted, before or after broadcast
        SubmissionError: The transaction could not be broadcast or confirmed
    """
    sig = FunctionSignature.parse(signature)
    call_data = encode(sig, args)
    options = await resolve_fee_options(contract.client, gas_price)

    LOG.info(f"Calling {sig.canonical} on {contract}...")
    result = await contract.client.tx_builder.build_and_send_tx(
        to=contract.address,
        data=call_data,
        options=options
    )
    receipt = result.tx_receipt

    if not receipt.success:
        reason = await _replay_revert_reason(contract, call_data, receipt)
        raise RevertedError(
            f"{sig.canonical} reverted in transaction {receipt.tx_hash}: {reason or 'no reason given'}",
            reason=reason,
            tx_hash=receipt.tx_hash
        )

    return receipt


def dispatch_stage(
    signature: str,
    args: Sequence[Any],
    gas_price: Optional[int] = None
) -> Callable[[BoundContract], Awaitable[TransactionReceipt]]:
    """Dispatch with everything but the contract bound, for use as a pipeline stage"""

    async def _dispatch(contract: BoundContract) -> TransactionReceipt:
        return await dispatch(signature, args, gas_price, contract)

    _dispatch.__name__ = f"dispatch[{signature}]"
    return _dispatch
