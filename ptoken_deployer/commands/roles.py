"""Minter role administration and minting"""

from .context import CommandContext
from ..core.dispatcher import dispatch
from ..core.reporter import SUCCESS_MARK
from ..utils.transaction_builder import TransactionReceipt

GRANT_MINTER_ROLE_SIGNATURE = "grantMinterRole(address)"
REVOKE_MINTER_ROLE_SIGNATURE = "revokeMinterRole(address)"
MINT_SIGNATURE = "mint(address,uint256)"


async def grant_minter_role(ctx: CommandContext, deployed_address: str, eth_address: str) -> TransactionReceipt:
    ctx.reporter.info(f"{SUCCESS_MARK} Granting minter role to {eth_address}...")
    receipt = await dispatch(GRANT_MINTER_ROLE_SIGNATURE, [eth_address], ctx.gas_price, ctx.contract(deployed_address))
    ctx.reporter.info(f"{SUCCESS_MARK} Success! Transaction receipt:", receipt)
    return receipt


async def revoke_minter_role(ctx: CommandContext, deployed_address: str, eth_address: str) -> TransactionReceipt:
    ctx.reporter.info(f"{SUCCESS_MARK} Revoking minter role from {eth_address}...")
    receipt = await dispatch(REVOKE_MINTER_ROLE_SIGNATURE, [eth_address], ctx.gas_price, ctx.contract(deployed_address))
    ctx.reporter.info(f"{SUCCESS_MARK} Success! Transaction receipt:", receipt)
    return receipt


async def mint(ctx: CommandContext, deployed_address: str, recipient: str, amount: str) -> TransactionReceipt:
    ctx.reporter.info(f"{SUCCESS_MARK} Minting {amount} to {recipient}...")
    receipt = await dispatch(MINT_SIGNATURE, [recipient, amount], ctx.gas_price, ctx.contract(deployed_address))
    ctx.reporter.info(f"{SUCCESS_MARK} Success! Transaction receipt:", receipt)
    return receipt
