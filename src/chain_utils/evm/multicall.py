"""Multicall3 ``aggregate3`` encoding and result decoding."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from eth_typing import HexStr
from web3 import Web3

from ..abi import decode_function_result, encode_function_call, selector
from ..constants import AGGREGATE3_OUTPUT_TYPES, AGGREGATE3_SIGNATURE
from ..exceptions import ContractReverted
from ..types import Abi, BatchCall, CallFailure, CallOutcome, CallSuccess
from ..utils import to_hex

logger = logging.getLogger(__name__)


def encode_aggregate3(abi: Abi, calls: Sequence[BatchCall], *, allow_failure: bool) -> HexStr:
    """Encode an ``aggregate3`` call covering ``calls``."""

    call_structs = [
        (
            Web3.to_checksum_address(call.address),
            allow_failure,
            bytes.fromhex(encode_function_call(abi, call.function_name, call.args)[2:]),
        )
        for call in calls
    ]
    encoded = abi_encode(["(address,bool,bytes)[]"], [call_structs])
    return HexStr(f"0x{(selector(AGGREGATE3_SIGNATURE) + encoded).hex()}")


def decode_aggregate3(
    abi: Abi, calls: Sequence[BatchCall], raw_result: bytes
) -> list[CallOutcome[Any]]:
    """Decode ``aggregate3`` return data into one outcome per call, in call order."""

    (entries,) = abi_decode(AGGREGATE3_OUTPUT_TYPES, bytes(raw_result))
    if len(entries) != len(calls):
        raise ValueError(
            f"aggregate3 returned {len(entries)} results for {len(calls)} calls"
        )

    outcomes: list[CallOutcome[Any]] = []
    for call, (success, return_data) in zip(calls, entries):
        raw_data = to_hex(return_data)
        if not success:
            outcomes.append(CallFailure(ContractReverted(raw_data=raw_data)))
            continue

        if not return_data:
            outcomes.append(
                CallFailure(
                    ContractReverted(
                        raw_data=raw_data,
                        decoded_message=f"Call to {call.address} returned no data",
                    )
                )
            )
            continue

        try:
            value = decode_function_result(abi, call.function_name, call.args, return_data)
        except (DecodingError, ValueError) as exc:
            logger.debug("Failed to decode %s result: %s", call.function_name, exc)
            outcomes.append(
                CallFailure(
                    ContractReverted(
                        raw_data=raw_data,
                        decoded_message=f"Failed to decode {call.function_name} return data",
                        details={"error": str(exc)},
                    )
                )
            )
            continue

        outcomes.append(CallSuccess(value))

    return outcomes


def chunk_calls(calls: Sequence[BatchCall], batch_size: int | None) -> list[list[BatchCall]]:
    """Split ``calls`` into consecutive chunks of at most ``batch_size``."""

    if not batch_size:
        return [list(calls)]
    return [list(calls[start : start + batch_size]) for start in range(0, len(calls), batch_size)]
