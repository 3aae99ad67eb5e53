"""
Pre-flight guards run in front of the dispatcher

Each guard passes its input through unchanged (or normalized) and raises
before anything that costs gas is constructed.
"""

import logging
from typing import Any, Awaitable, Callable

from .abi_encoder import Uint256
from .client.chain_client import BoundContract
from ..utils.common import add_hex_prefix, is_hex_string
from ..utils.exceptions import EncodingError, InsufficientBalanceError, ValidationError

LOG = logging.getLogger(__name__)


def check_is_hex(value: Any) -> str:
    """
    Validate user supplied hex data.

    Returns:
        Lowercase 0x-prefixed form, so "dead" and "0xDEAD" normalize equally

    Raises:
        ValidationError: value is not even-length hex
    """
    if value is None:
        value = "0x"
    if not is_hex_string(value):
        raise ValidationError(f"Not valid hex: {value!r}", details={"value": value})
    return add_hex_prefix(value).lower()


def check_amount(amount: Any) -> int:
    """Validate a token amount in its most granular unit"""
    try:
        return Uint256(amount).value
    except EncodingError as e:
        raise ValidationError(f"Invalid amount {amount!r}: must be a non-negative integer", cause=e)


def check_token_balance_is_sufficient(amount: Any) -> Callable[[BoundContract], Awaitable[BoundContract]]:
    """Build a stage that fails unless the signer holds at least amount tokens"""

    async def _check_token_balance(contract: BoundContract) -> BoundContract:
        required = check_amount(amount)
        holder = contract.client.address
        LOG.info(f"Checking {holder} holds at least {required} of {contract}...")
        balance = await contract.balance_of(holder)
        if balance < required:
            raise InsufficientBalanceError(
                f"Insufficient balance of {contract.name}: {holder} holds {balance}, needs {required}",
                balance=balance,
                amount=required
            )
        LOG.info(f"Balance {balance} is sufficient")
        return contract

    return _check_token_balance
