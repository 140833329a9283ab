"""Revert-data decoders and cause-chain extraction.

Decoders follow a chain-of-responsibility contract: ``decode`` returns a
typed fault when it recognises the payload and ``None`` otherwise, so they can
be stacked inside a :class:`CompositeErrorDecoder`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from typing import NoReturn

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_typing import HexStr
from web3.exceptions import ContractLogicError

from .abi import decode_error_args, find_error
from .constants import ERROR_STRING_SELECTOR, PANIC_REASONS, PANIC_SELECTOR
from .exceptions import (
    DEFAULT_MAX_CAUSE_DEPTH,
    ChainUtilsFault,
    ContractReverted,
    PanicReverted,
    iter_causes,
)
from .types import Abi
from .utils import format_decoded_error_args, is_hex

logger = logging.getLogger(__name__)


class ErrorDecoder(ABC):
    """Decode raw revert data into a typed fault, or ``None`` when unrecognised."""

    @abstractmethod
    def decode(self, raw_data: HexStr) -> ChainUtilsFault | None:
        pass


class CompositeErrorDecoder(ErrorDecoder):
    """Try each decoder in registration order; the first non-``None`` result wins."""

    def __init__(self, decoders: Sequence[ErrorDecoder]):
        self.decoders = tuple(decoders)

    def decode(self, raw_data: HexStr) -> ChainUtilsFault | None:
        for decoder in self.decoders:
            result = decoder.decode(raw_data)
            if result is not None:
                return result
        return None


class RevertStringDecoder(ErrorDecoder):
    """Decode the Solidity built-ins ``Error(string)`` and ``Panic(uint256)``."""

    def decode(self, raw_data: HexStr) -> ChainUtilsFault | None:
        lower = raw_data.lower()
        try:
            if lower.startswith(ERROR_STRING_SELECTOR):
                (message,) = abi_decode(["string"], bytes.fromhex(lower[10:]))
                return ContractReverted(raw_data=raw_data, decoded_message=message)

            if lower.startswith(PANIC_SELECTOR):
                (code,) = abi_decode(["uint256"], bytes.fromhex(lower[10:]))
                reason = PANIC_REASONS.get(code, "unknown panic code")
                return PanicReverted(code, reason, raw_data=raw_data)
        except (DecodingError, ValueError):
            logger.debug("Malformed built-in revert payload %s", raw_data)
        return None


class AbiErrorDecoder(ErrorDecoder):
    """Decode custom errors declared in a contract ABI."""

    def __init__(self, abi: Abi):
        self.abi = abi

    def decode(self, raw_data: HexStr) -> ChainUtilsFault | None:
        if len(raw_data) < 10 or not is_hex(raw_data):
            return None

        payload = bytes.fromhex(raw_data[2:])
        entry = find_error(self.abi, payload[:4])
        if entry is None:
            return None

        try:
            args = decode_error_args(entry, payload[4:])
        except (DecodingError, ValueError):
            return None

        return ContractReverted(
            raw_data=raw_data,
            decoded_message=f"{entry['name']}{format_decoded_error_args(args)}",
        )


class SelectorErrorDecoder(ErrorDecoder):
    """Map 4-byte selectors, or whole raw payloads, to fault factories.

    An exact payload key takes precedence over its selector. Each factory
    receives the full raw payload and may itself return ``None`` to pass the
    payload on.
    """

    def __init__(self, factories: Mapping[str, Callable[[HexStr], ChainUtilsFault | None]]):
        self.factories = {key.lower(): factory for key, factory in factories.items()}

    def decode(self, raw_data: HexStr) -> ChainUtilsFault | None:
        lower = raw_data.lower()
        factory = self.factories.get(lower) or self.factories.get(lower[:10])
        if factory is None:
            return None
        return factory(raw_data)


def _revert_payload(error: BaseException) -> HexStr | None:
    if isinstance(error, ContractLogicError) and is_hex(error.data):
        return HexStr(error.data)
    if isinstance(error, ContractReverted) and is_hex(error.raw_data):
        return HexStr(error.raw_data)
    return None


def extract_revert_data(
    error: BaseException, *, max_depth: int = DEFAULT_MAX_CAUSE_DEPTH
) -> HexStr | None:
    """Return the first raw revert payload found while walking ``error``'s causes."""

    for cause in iter_causes(error, max_depth=max_depth):
        payload = _revert_payload(cause)
        if payload is not None:
            return payload
    return None


def raise_decoded_revert(error: BaseException, decoder: ErrorDecoder | None) -> NoReturn:
    """Raise the typed fault for ``error`` if ``decoder`` recognises it, else ``error``."""

    if decoder is not None:
        raw_data = extract_revert_data(error)
        if raw_data is not None:
            decoded = decoder.decode(raw_data)
            if decoded is not None:
                logger.debug("Decoded revert %s as %s", raw_data, type(decoded).__name__)
                raise decoded from error
    raise error
