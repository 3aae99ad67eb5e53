"""
ABI encoder for the fixed set of pToken function signatures

This module turns a function signature and an ordered list of arguments into
call data (4-byte selector followed by ABI packed arguments).

Design Notes:
- Arguments are a closed set of typed wrappers (Address, Uint256, Bytes,
  Bytes4, String); each validates and normalizes its raw value on construction
- Raw values are coerced through the wrapper named by the signature, so
  callers can pass CLI strings, ints or bytes interchangeably
- Head/tail packing is delegated to eth_abi, selectors to eth_utils.keccak
- Any violation surfaces as EncodingError before a transaction is built
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple, Type, Union

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError, EncodingError as AbiEncodingError
from eth_utils import (
    is_checksum_address,
    is_checksum_formatted_address,
    is_hex_address,
    keccak,
    to_checksum_address,
)

from ..utils.common import is_hex_string, strip_hex_prefix, to_hex
from ..utils.exceptions import EncodingError

LOG = logging.getLogger(__name__)

UINT256_MAX = 2**256 - 1

_SIGNATURE_RE = re.compile(r"^\s*(?:function\s+)?([A-Za-z_$][A-Za-z0-9_$]*)\s*\((.*)\)\s*$", re.S)
_TYPE_ALIASES = {"uint": "uint256"}
_INTEGER_RE = re.compile(r"0[xX][0-9a-fA-F]+|[0-9]+", re.ASCII)


class TypedArgument:
    """A raw value tagged with the ABI type it must satisfy"""

    abi_type: str = ""

    def __init__(self, value: Any):
        self.raw = value
        self.value = self.coerce(value)

    def coerce(self, value: Any) -> Any:
        raise NotImplementedError

    def _fail(self, reason: str) -> EncodingError:
        return EncodingError(f"Invalid {self.abi_type} value {self.raw!r}: {reason}")

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, TypedArgument)
            and self.abi_type == other.abi_type
            and self.value == other.value
        )

    def __hash__(self) -> int:
        return hash((self.abi_type, self.value))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.value!r})"


class Address(TypedArgument):
    abi_type = "address"

    def coerce(self, value: Any) -> str:
        if isinstance(value, (bytes, bytearray)) and len(value) == 20:
            return to_checksum_address(bytes(value))
        if not isinstance(value, str):
            raise self._fail("expected a hex string")
        if not is_hex_address(value):
            raise self._fail("not a 20 byte hex address")
        # all-lowercase and all-uppercase carry no checksum
        if is_checksum_formatted_address(value) and not is_checksum_address(value):
            raise self._fail("mixed case address with an invalid EIP-55 checksum")
        return to_checksum_address(value)


class Uint256(TypedArgument):
    abi_type = "uint256"

    def coerce(self, value: Any) -> int:
        if isinstance(value, bool):
            raise self._fail("booleans are not numbers")
        if isinstance(value, str):
            if not _INTEGER_RE.fullmatch(value):
                raise self._fail("not a decimal or hex integer")
            value = int(value, 16) if value[:2] in ("0x", "0X") else int(value, 10)
        if not isinstance(value, int):
            raise self._fail("expected an integer")
        if value < 0:
            raise self._fail("underflows uint256")
        if value > UINT256_MAX:
            raise self._fail("overflows uint256")
        return value


class Bytes(TypedArgument):
    abi_type = "bytes"
    size = None

    def coerce(self, value: Any) -> bytes:
        if isinstance(value, (bytes, bytearray)):
            data = bytes(value)
        elif isinstance(value, str):
            if not is_hex_string(value):
                raise self._fail("not an even-length hex string")
            data = bytes.fromhex(strip_hex_prefix(value))
        else:
            raise self._fail("expected bytes or a hex string")
        if self.size is not None and len(data) != self.size:
            raise self._fail(f"expected exactly {self.size} bytes, got {len(data)}")
        return data


class Bytes4(Bytes):
    abi_type = "bytes4"
    size = 4


class String(TypedArgument):
    abi_type = "string"

    def coerce(self, value: Any) -> str:
        if not isinstance(value, str):
            raise self._fail("expected text")
        return value


ARGUMENT_TYPES: Dict[str, Type[TypedArgument]] = {
    cls.abi_type: cls for cls in (Address, Uint256, Bytes, Bytes4, String)
}


def typed_argument(abi_type: str, value: Any) -> TypedArgument:
    """Wrap a raw value in the TypedArgument for abi_type"""
    if isinstance(value, TypedArgument):
        if value.abi_type != abi_type:
            raise EncodingError(f"Argument {value!r} declared as {value.abi_type}, expected {abi_type}")
        return value
    try:
        return ARGUMENT_TYPES[abi_type](value)
    except KeyError:
        raise EncodingError(f"Unsupported ABI type: {abi_type}")


@dataclass(frozen=True)
class FunctionSignature:
    """Function name plus ordered parameter types"""
    name: str
    types: Tuple[str, ...]

    @classmethod
    def parse(cls, text: Union[str, "FunctionSignature"]) -> "FunctionSignature":
        """
        Parse a canonical signature or a human-readable fragment.

        Both "redeem(uint256,string,bytes4)" and
        "function redeem(uint256 amount, string underlyingAssetRecipient, bytes4 destinationChainId)"
        parse to the same signature.
        """
        if isinstance(text, FunctionSignature):
            return text
        if not isinstance(text, str):
            raise EncodingError(f"Malformed function signature: {text!r}")

        match = _SIGNATURE_RE.match(text)
        if not match:
            raise EncodingError(f"Malformed function signature: {text!r}", signature=text)

        name, params = match.group(1), match.group(2).strip()
        types: List[str] = []
        if params:
            for param in params.split(","):
                tokens = param.split()
                if not tokens:
                    raise EncodingError(f"Empty parameter in signature: {text!r}", signature=text)
                abi_type = _TYPE_ALIASES.get(tokens[0], tokens[0])
                if abi_type not in ARGUMENT_TYPES:
                    raise EncodingError(f"Unsupported ABI type '{tokens[0]}' in signature: {text!r}", signature=text)
                types.append(abi_type)

        return cls(name=name, types=tuple(types))

    @property
    def canonical(self) -> str:
        return f"{self.name}({','.join(self.types)})"

    @property
    def selector(self) -> bytes:
        return keccak(text=self.canonical)[:4]

    def __str__(self) -> str:
        return self.canonical


def function_selector(signature: Union[str, FunctionSignature]) -> str:
    """Return the 0x-prefixed 4-byte selector of a signature"""
    return to_hex(FunctionSignature.parse(signature).selector)


def coerce_arguments(types: Sequence[str], args: Sequence[Any]) -> List[TypedArgument]:
    """Wrap raw arguments positionally according to types"""
    if len(types) != len(args):
        raise EncodingError(f"Argument count mismatch: expected {len(types)}, got {len(args)}")
    return [typed_argument(abi_type, arg) for abi_type, arg in zip(types, args)]


def encode_arguments(types: Sequence[str], args: Sequence[Any]) -> bytes:
    """ABI pack arguments as a tuple of types, without selector"""
    typed = coerce_arguments(types, args)
    try:
        return abi_encode(list(types), [arg.value for arg in typed])
    except (AbiEncodingError, TypeError, ValueError) as e:
        raise EncodingError(f"Failed to encode arguments for {list(types)}: {e}", cause=e)


def encode(signature: Union[str, FunctionSignature], args: Sequence[Any]) -> str:
    """
    Encode a function call.

    Args:
        signature: Function signature, e.g. "redeem(uint256,bytes,string,bytes4)"
        args: Ordered arguments, raw or TypedArgument

    Returns:
        0x-prefixed call data

    Raises:
        EncodingError: Malformed signature or argument outside its type's domain
    """
    sig = FunctionSignature.parse(signature)
    try:
        packed = encode_arguments(sig.types, args)
    except EncodingError as e:
        e.details.setdefault("signature", sig.canonical)
        raise
    call_data = to_hex(sig.selector + packed)
    LOG.debug(f"Encoded {sig.canonical}: {call_data[:74]}...")
    return call_data


def decode_call_data(signature: Union[str, FunctionSignature], call_data: Union[str, bytes]) -> Tuple[Any, ...]:
    """Check the selector of call data and decode its arguments"""
    sig = FunctionSignature.parse(signature)
    if isinstance(call_data, str):
        if not is_hex_string(call_data):
            raise EncodingError(f"Call data is not hex: {call_data!r}", signature=sig.canonical)
        call_data = bytes.fromhex(strip_hex_prefix(call_data))

    if call_data[:4] != sig.selector:
        raise EncodingError(
            f"Selector mismatch: call data starts with {to_hex(call_data[:4])}, "
            f"{sig.canonical} is {to_hex(sig.selector)}",
            signature=sig.canonical
        )
    try:
        return tuple(abi_decode(list(sig.types), call_data[4:]))
    except DecodingError as e:
        raise EncodingError(f"Failed to decode call data for {sig.canonical}: {e}", cause=e)


def decode_output(types: Sequence[str], data: Union[str, bytes]) -> Tuple[Any, ...]:
    """Decode the return data of a read-only call"""
    if isinstance(data, str):
        data = bytes.fromhex(strip_hex_prefix(data))
    try:
        return tuple(abi_decode(list(types), bytes(data)))
    except DecodingError as e:
        raise EncodingError(f"Failed to decode output as {list(types)}: {e}", cause=e)
