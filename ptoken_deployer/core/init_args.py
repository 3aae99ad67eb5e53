"""
Initializer and proxy constructor argument encoding

The upgradeable pToken is deployed behind a proxy whose constructor takes the
logic contract address, the proxy admin address and the call data of the
logic contract's initializer. This module produces both encodings.
"""

import logging

from .abi_encoder import encode, encode_arguments
from ..utils.common import strip_hex_prefix, to_hex

LOG = logging.getLogger(__name__)

INITIALIZE_FRAGMENT = (
    "function initialize(string tokenName, string tokenSymbol, "
    "address defaultAdmin, bytes4 originChainId)"
)
PROXY_CONSTRUCTOR_TYPES = ("address", "address", "bytes")

DEFAULT_ORIGIN_CHAIN_ID = "0x00000000"


def get_encoded_init_args(
    token_name: str,
    token_symbol: str,
    admin_address: str,
    origin_chain_id: str = DEFAULT_ORIGIN_CHAIN_ID,
) -> str:
    """Return the 0x-prefixed call data of initialize(string,string,address,bytes4)"""
    LOG.info("Encoding pToken initialization arguments...")
    return encode(INITIALIZE_FRAGMENT, [token_name, token_symbol, admin_address, origin_chain_id])


def encode_proxy_constructor_args(logic_address: str, proxy_admin_address: str, init_call_data: str) -> str:
    """Return the 0x-prefixed ABI encoding of (address,address,bytes)"""
    return to_hex(
        encode_arguments(PROXY_CONSTRUCTOR_TYPES, [logic_address, proxy_admin_address, init_call_data])
    )


def get_encoded_proxy_constructor_args(
    token_name: str,
    token_symbol: str,
    logic_address: str,
    admin_address: str,
    proxy_admin_address: str,
    origin_chain_id: str = DEFAULT_ORIGIN_CHAIN_ID,
) -> str:
    """
    Encode the proxy constructor arguments for a freshly initialized pToken.

    The initializer is encoded first and its call data becomes the third
    constructor argument. The result has no 0x prefix so it can be pasted
    into a block explorer's constructor arguments field.
    """
    init_call_data = get_encoded_init_args(token_name, token_symbol, admin_address, origin_chain_id)
    return strip_hex_prefix(
        encode_proxy_constructor_args(logic_address, proxy_admin_address, init_call_data)
    )
