"""Type definitions and data models for the chain-utils access layer."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

from eth_typing import HexStr

from .exceptions import MulticallPartialFailure

T = TypeVar("T")

ChainId = int
Address = str  # 0x-prefixed contract or account address
Abi = Sequence[dict[str, Any]]


@dataclass(frozen=True)
class BatchCall:
    """One read-only call inside a batch."""

    address: Address
    function_name: str
    args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class CrossChainCall:
    """A read-only call addressed to a specific chain."""

    chain_id: ChainId
    address: Address
    function_name: str
    args: tuple[Any, ...] = ()

    def as_batch_call(self) -> BatchCall:
        return BatchCall(address=self.address, function_name=self.function_name, args=self.args)


@dataclass(frozen=True)
class CallSuccess(Generic[T]):
    """Successful outcome for one call in a batch."""

    value: T
    status: Literal["success"] = field(default="success", init=False)

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class CallFailure:
    """Failed outcome for one call in a batch."""

    error: Exception
    status: Literal["failure"] = field(default="failure", init=False)

    @property
    def ok(self) -> bool:
        return False


CallOutcome = CallSuccess[T] | CallFailure


@dataclass(frozen=True)
class BatchResult(Generic[T]):
    """Per-call outcomes for a batch executed on one chain.

    ``results[i]`` is the outcome of ``calls[i]``.
    """

    chain_id: ChainId
    results: list[CallOutcome[T]]
    calls: list[BatchCall] = field(default_factory=list)

    @property
    def failures(self) -> list[tuple[BatchCall, Exception]]:
        """Return ``(call, error)`` pairs for every failed call, in input order."""

        return [
            (call, outcome.error)
            for call, outcome in zip(self.calls, self.results)
            if isinstance(outcome, CallFailure)
        ]

    @property
    def failed_count(self) -> int:
        return sum(1 for outcome in self.results if not outcome.ok)

    @property
    def values(self) -> list[T | None]:
        """Return success values index-aligned with the input, ``None`` for failures."""

        return [
            outcome.value if isinstance(outcome, CallSuccess) else None
            for outcome in self.results
        ]

    def raise_on_failure(self) -> None:
        if self.failed_count:
            raise MulticallPartialFailure(self.chain_id, self.results)


@dataclass(frozen=True)
class ChainFailure:
    """A chain whose operation failed as a whole during a fan-out."""

    chain_id: ChainId
    error: Exception


@dataclass(frozen=True)
class CrossChainBatchResult(Generic[T]):
    """Aggregated output for an operation fanned out across chains."""

    results_by_chain: dict[ChainId, T] = field(default_factory=dict)
    failed_chains: list[ChainFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> list[ChainId]:
        return list(self.results_by_chain)

    @property
    def chain_ids(self) -> list[ChainId]:
        return self.succeeded + [failure.chain_id for failure in self.failed_chains]

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_chains)


@dataclass(frozen=True)
class FeeEstimate:
    """Fee fields for a transaction; EIP-1559 when available, otherwise legacy."""

    max_fee_per_gas: int | None = None
    max_priority_fee_per_gas: int | None = None
    gas_price: int | None = None

    @property
    def is_eip1559(self) -> bool:
        return self.max_fee_per_gas is not None


@dataclass(frozen=True)
class TransactionRequest:
    """Unsigned transaction fields assembled by ``prepare``."""

    to: Address
    data: HexStr
    gas: int
    nonce: int | None = None
    max_fee_per_gas: int | None = None
    max_priority_fee_per_gas: int | None = None
    gas_price: int | None = None
    value: int = 0

    def as_dict(self, chain_id: ChainId) -> dict[str, Any]:
        """Return the request as a transaction dict consumable by eth-account."""

        tx: dict[str, Any] = {
            "to": self.to,
            "data": self.data,
            "gas": self.gas,
            "value": self.value,
            "chainId": chain_id,
        }
        if self.nonce is not None:
            tx["nonce"] = self.nonce
        if self.max_fee_per_gas is not None:
            tx["maxFeePerGas"] = self.max_fee_per_gas
            tx["maxPriorityFeePerGas"] = self.max_priority_fee_per_gas or 0
        elif self.gas_price is not None:
            tx["gasPrice"] = self.gas_price
        return tx


@dataclass(eq=False)
class PreparedTransaction:
    """Simulated transaction with gas and fee fields, ready to be signed once."""

    request: TransactionRequest
    gas_estimate: int
    chain_id: ChainId
    signed: bool = field(default=False, init=False, repr=False)


@dataclass(eq=False)
class SignedTransaction:
    """Serialized signed transaction, ready to be broadcast once."""

    serialized: HexStr
    chain_id: ChainId
    sent: bool = field(default=False, init=False, repr=False)


@dataclass(frozen=True)
class WriteOptions:
    """Options for ``execute``."""

    wait_for_receipt: bool = False
