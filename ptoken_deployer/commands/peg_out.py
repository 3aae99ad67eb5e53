from typing import Any

from .context import CommandContext
from ..core.dispatcher import dispatch_stage
from ..core.guards import check_is_hex, check_token_balance_is_sufficient
from ..core.pipeline import Pipeline
from ..core.reporter import SUCCESS_MARK
from ..utils.transaction_builder import TransactionReceipt

REDEEM_SIGNATURE = "redeem(uint256,bytes,string,bytes4)"
DEFAULT_DESTINATION_CHAIN_ID = "0x00000000"


async def peg_out(
    ctx: CommandContext,
    deployed_address: str,
    amount: Any,
    recipient: str,
    user_data: str = "0x",
    destination_chain_id: str = DEFAULT_DESTINATION_CHAIN_ID
) -> TransactionReceipt:
    """
    Redeem amount pTokens to recipient on the destination chain.

    The hex check and the balance check both run before anything is signed,
    an invalid user data string never reaches the network.
    """
    user_data = check_is_hex(user_data)
    pipeline = (
        Pipeline("pegOut")
        .then(check_token_balance_is_sufficient(amount))
        .then(dispatch_stage(
            REDEEM_SIGNATURE,
            [amount, user_data, recipient, destination_chain_id],
            ctx.gas_price
        ))
    )
    receipt = await pipeline.run(ctx.contract(deployed_address))
    ctx.reporter.info(f"{SUCCESS_MARK} Success! Transaction receipt:", receipt)
    return receipt
