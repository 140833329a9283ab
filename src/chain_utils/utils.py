"""Utility functions for the chain-utils access layer."""

from collections.abc import Mapping, Sequence
from typing import Any

from eth_typing import HexStr
from hexbytes import HexBytes

from .exceptions import ChainUtilsFault, ValidationError

DEFAULT_FORMAT_DEPTH = 20


def to_hex(value: bytes | bytearray | str) -> HexStr:
    """Return ``value`` as a lower-case ``0x``-prefixed hex string."""
    if isinstance(value, str):
        lower = value.lower()
        if not lower.startswith("0x"):
            lower = f"0x{lower}"
        try:
            bytes.fromhex(lower[2:])
        except ValueError:
            raise ValidationError("Value is not valid hex", field="value", value=value)
        return HexStr(lower)

    return HexStr(HexBytes(value).to_0x_hex())


def is_hex(value: Any) -> bool:
    """Return True when ``value`` is a ``0x``-prefixed even-length hex string."""
    if not isinstance(value, str) or not value.startswith(("0x", "0X")):
        return False

    try:
        bytes.fromhex(value[2:])
    except ValueError:
        return False
    return True


def as_fault(reason: BaseException, message: str) -> Exception:
    """Return ``reason`` unchanged if it is an ``Exception``, otherwise wrap it.

    Cancellation and other ``BaseException`` results of a gathered task are
    converted so batch and fan-out results only ever hold ``Exception`` values.
    """
    if isinstance(reason, Exception):
        return reason

    fault = ChainUtilsFault(message, {"reason": type(reason).__name__})
    fault.__cause__ = reason
    return fault


def _format_decoded_value(value: Any, max_depth: int, depth: int = 0) -> str:
    if depth >= max_depth:
        return "[MaxDepth]"

    if value is None:
        return "None"

    if isinstance(value, bool):
        return str(value)

    if isinstance(value, int):
        return str(value)

    if isinstance(value, str):
        return f'"{value}"'

    if isinstance(value, bytes | bytearray):
        return HexBytes(value).to_0x_hex()

    if isinstance(value, Mapping):
        entries = sorted((str(key), item) for key, item in value.items())
        rendered = ", ".join(
            f"{key}: {_format_decoded_value(item, max_depth, depth + 1)}" for key, item in entries
        )
        return f"{{ {rendered} }}"

    if isinstance(value, Sequence):
        return f"[{', '.join(_format_decoded_value(item, max_depth, depth + 1) for item in value)}]"

    return str(value)


def format_decoded_error_args(
    args: Sequence[Any] | None, max_depth: int = DEFAULT_FORMAT_DEPTH
) -> str:
    """Render decoded custom-error arguments as `` (arg1, arg2)``."""
    if not args:
        return ""

    return f" ({', '.join(_format_decoded_value(arg, max_depth) for arg in args)})"
