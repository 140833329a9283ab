"""ABI lookup and codec helpers built on eth-abi."""

from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
from typing import Any

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_typing import HexStr
from eth_utils.abi import collapse_if_tuple
from web3 import Web3

from .exceptions import ValidationError
from .types import Abi


def _input_types(entry: dict[str, Any]) -> list[str]:
    return [collapse_if_tuple(dict(item)) for item in entry.get("inputs", [])]


def _output_types(entry: dict[str, Any]) -> list[str]:
    return [collapse_if_tuple(dict(item)) for item in entry.get("outputs", [])]


def signature(entry: dict[str, Any]) -> str:
    """Return the canonical ``name(type,...)`` signature of an ABI entry."""

    return f"{entry['name']}({','.join(_input_types(entry))})"


@lru_cache(maxsize=1024)
def selector(text_signature: str) -> bytes:
    """Return the 4-byte selector for a canonical signature."""

    return bytes(Web3.keccak(text=text_signature)[:4])


def find_function(abi: Abi, function_name: str, args: Sequence[Any]) -> dict[str, Any]:
    """Return the ABI entry for ``function_name`` that accepts ``len(args)`` arguments."""

    candidates = [
        entry
        for entry in abi
        if entry.get("type", "function") == "function" and entry.get("name") == function_name
    ]
    if not candidates:
        raise ValidationError(
            f"Function '{function_name}' not found in ABI",
            field="function_name",
            value=function_name,
        )

    for entry in candidates:
        if len(entry.get("inputs", [])) == len(args):
            return entry

    raise ValidationError(
        f"No overload of '{function_name}' accepts {len(args)} arguments",
        field="args",
        value=list(args),
    )


def encode_function_call(abi: Abi, function_name: str, args: Sequence[Any]) -> HexStr:
    """Encode selector and arguments for ``function_name``."""

    entry = find_function(abi, function_name, args)
    encoded_args = abi_encode(_input_types(entry), list(args))
    return HexStr(f"0x{(selector(signature(entry)) + encoded_args).hex()}")


def decode_function_result(
    abi: Abi, function_name: str, args: Sequence[Any], data: bytes
) -> Any:
    """Decode return data; single outputs are unwrapped, no outputs decode to ``None``."""

    entry = find_function(abi, function_name, args)
    output_types = _output_types(entry)
    if not output_types:
        return None

    decoded = abi_decode(output_types, bytes(data))
    if len(decoded) == 1:
        return decoded[0]
    return tuple(decoded)


def find_error(abi: Abi, error_selector: bytes) -> dict[str, Any] | None:
    """Return the custom error entry whose selector matches ``error_selector``."""

    for entry in abi:
        if entry.get("type") != "error":
            continue
        if selector(signature(entry)) == error_selector:
            return entry
    return None


def decode_error_args(entry: dict[str, Any], payload: bytes) -> tuple[Any, ...]:
    """Decode the arguments of a custom error (payload without selector)."""

    return tuple(abi_decode(_input_types(entry), payload))
