"""Offline encoding commands, stdout carries only the encoded value"""

from .context import CommandContext
from ..core.init_args import (
    DEFAULT_ORIGIN_CHAIN_ID,
    get_encoded_init_args as encode_init_args,
    get_encoded_proxy_constructor_args as encode_proxy_args,
)


async def get_encoded_init_args(
    ctx: CommandContext,
    token_name: str,
    token_symbol: str,
    admin_address: str,
    origin_chain_id: str = DEFAULT_ORIGIN_CHAIN_ID
) -> str:
    encoded = encode_init_args(token_name, token_symbol, admin_address, origin_chain_id)
    ctx.reporter.info(encoded)
    return encoded


async def get_encoded_proxy_constructor_args(
    ctx: CommandContext,
    token_name: str,
    token_symbol: str,
    logic_address: str,
    admin_address: str,
    proxy_admin_address: str,
    origin_chain_id: str = DEFAULT_ORIGIN_CHAIN_ID
) -> str:
    encoded = encode_proxy_args(
        token_name,
        token_symbol,
        logic_address,
        admin_address,
        proxy_admin_address,
        origin_chain_id
    )
    ctx.reporter.info(encoded)
    return encoded
