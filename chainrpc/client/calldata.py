"""
Contract call data encoding for static arguments.

Covers the argument types read-only view calls typically take: address,
uint/int (256-bit two's complement), bool and pre-encoded 32-byte words.
Dynamic types (string, bytes, arrays) are not supported; callers needing
them pass fully encoded ``data`` through ReadState.raw().
"""

import re

from chainrpc.core.config.constants import BLOCK_TAGS

_SELECTOR_RE = re.compile(r"^0x[0-9a-fA-F]{8}$")
_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_WORD_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
_QUANTITY_RE = re.compile(r"^0x[0-9a-fA-F]+$")

WORD_BITS = 256
_UINT_MAX = 2**WORD_BITS - 1
_INT_MIN = -(2 ** (WORD_BITS - 1))


def validate_selector(selector: str) -> str:
    if not isinstance(selector, str) or not _SELECTOR_RE.match(selector):
        raise ValueError(f"Function selector must be 0x followed by 8 hex digits, got {selector!r}")
    return selector.lower()


def is_address(value: object) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def validate_block(block: object) -> None:
    """Reject anything that is not a block number, hex quantity, block hash or tag."""
    if isinstance(block, bool) or not isinstance(block, (int, str)):
        raise TypeError(f"Block must be an int or a tag string, got {block!r}")
    if isinstance(block, int):
        if block < 0:
            raise ValueError(f"Block number must be non-negative, got {block}")
    elif block not in BLOCK_TAGS and not _QUANTITY_RE.match(block):
        raise ValueError(f"Unknown block tag {block!r}")


def encode_word(value: object) -> str:
    """Encode one static argument as 64 hex digits (no 0x prefix)."""
    if isinstance(value, bool):
        return f"{int(value):064x}"
    if isinstance(value, int):
        if value > _UINT_MAX or value < _INT_MIN:
            raise ValueError(f"Integer {value} does not fit in 256 bits")
        return f"{value % (1 << WORD_BITS):064x}"
    if is_address(value):
        return value[2:].lower().rjust(64, "0")
    if isinstance(value, str) and _WORD_RE.match(value):
        return value[2:].lower()
    if isinstance(value, bytes | bytearray):
        if len(value) > 32:
            raise ValueError("bytes arguments are limited to 32 bytes")
        return bytes(value).hex().ljust(64, "0")
    raise ValueError(f"Unsupported argument type for call encoding: {type(value).__name__}")


def encode_call(selector: str, args: tuple = ()) -> str:
    """Selector followed by one 32-byte word per argument."""
    return validate_selector(selector) + "".join(encode_word(arg) for arg in args)


def decode_uint(data: str, index: int = 0) -> int:
    """
    Read the ``index``-th 32-byte word of call return data as an unsigned int.

    Example:
        balance = decode_uint(await client.read_state(token, "0x70a08231", (owner,)))
    """
    body = data[2:] if data.startswith("0x") else data
    start = index * 64
    word = body[start:start + 64]
    if len(word) != 64:
        raise ValueError(f"Return data has no word at index {index}")
    return int(word, 16)


def decode_address(data: str, index: int = 0) -> str:
    return "0x" + f"{decode_uint(data, index):064x}"[-40:]
