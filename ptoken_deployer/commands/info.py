"""Read-only commands"""

from typing import Dict

from .context import CommandContext
from ..core.abi_encoder import Address
from ..core.client.chain_client import FeeData
from ..core.reporter import SUCCESS_MARK
from ..utils.common import format_wei


async def show_suggested_fees(ctx: CommandContext) -> FeeData:
    fee_data = await ctx.client.get_fee_data()
    rows = [
        (label, value if value is not None else "n/a", format_wei(value))
        for label, value in (
            ("gasPrice", fee_data.gas_price),
            ("maxFeePerGas", fee_data.max_fee_per_gas),
            ("maxPriorityFeePerGas", fee_data.max_priority_fee_per_gas),
        )
    ]
    ctx.reporter.table(rows, headers=["fee", "wei", "gwei"])
    return fee_data


async def show_existing_contracts(ctx: CommandContext) -> Dict[str, str]:
    existing = ctx.config.existing_contracts
    if not existing:
        ctx.reporter.info("No existing pToken logic contracts configured (see existing_contracts)")
        return existing
    ctx.reporter.table(sorted(existing.items()), headers=["network", "pToken logic contract"])
    return existing


async def get_balance_of(ctx: CommandContext, deployed_address: str, eth_address: str) -> int:
    holder = Address(eth_address).value
    contract = ctx.contract(deployed_address)
    balance = await contract.balance_of(holder)
    ctx.reporter.info(f"{SUCCESS_MARK} Balance of {holder} in {contract}: {balance}")
    return balance
