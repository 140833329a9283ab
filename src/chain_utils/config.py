"""Configuration containers for chain-utils clients."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from web3 import Web3

from .exceptions import ValidationError
from .types import Abi

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .base import Signer
    from .decoders import ErrorDecoder

DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_RECEIPT_TIMEOUT = 120.0
DEFAULT_RECEIPT_POLL_LATENCY = 0.5


@dataclass(frozen=True)
class ChainTransportConfig:
    """Connection settings for one chain, used when no endpoint is supplied directly."""

    chain_id: int
    rpc_url: str
    multicall_address: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    receipt_poll_latency: float = DEFAULT_RECEIPT_POLL_LATENCY

    def with_defaults(self) -> ChainTransportConfig:
        """Return a validated copy with a trimmed URL and checksummed multicall address."""

        if self.chain_id <= 0:
            raise ValidationError(
                "Chain ID must be a positive integer", field="chain_id", value=self.chain_id
            )
        if not self.rpc_url:
            raise ValidationError("RPC URL is required", field="rpc_url", value=self.rpc_url)

        multicall_address = self.multicall_address
        if multicall_address is not None:
            try:
                multicall_address = Web3.to_checksum_address(multicall_address)
            except ValueError as exc:
                raise ValidationError(
                    "Invalid multicall address",
                    field="multicall_address",
                    value=self.multicall_address,
                    details={"error": str(exc)},
                ) from exc

        return ChainTransportConfig(
            chain_id=self.chain_id,
            rpc_url=self.rpc_url.rstrip("/"),
            multicall_address=multicall_address,
            request_timeout=self.request_timeout,
            receipt_timeout=self.receipt_timeout,
            receipt_poll_latency=self.receipt_poll_latency,
        )


@dataclass(frozen=True)
class MultichainContractOptions:
    """Settings shared by every per-chain contract client of a multichain contract."""

    abi: Abi
    error_decoder: ErrorDecoder | None = None
    multicall_batch_size: int | None = None
    signers: Mapping[int, Signer] = field(default_factory=dict)


def validate_batch_size(batch_size: int | None) -> int | None:
    """Validate a multicall batch-size hint.

    ``None`` requests a single aggregated call, ``0`` disables aggregation and
    a positive value chunks the aggregated call.
    """

    if batch_size is not None and batch_size < 0:
        raise ValidationError(
            "Multicall batch size cannot be negative",
            field="multicall_batch_size",
            value=batch_size,
        )
    return batch_size
