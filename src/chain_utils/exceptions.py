"""Exception hierarchy for the chain-utils access layer."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .types import CallOutcome

DEFAULT_MAX_CAUSE_DEPTH = 20


def iter_causes(
    error: BaseException, *, max_depth: int = DEFAULT_MAX_CAUSE_DEPTH
) -> Iterator[BaseException]:
    """Yield ``error`` followed by its causes, outermost first.

    Explicit causes (``raise ... from``) take precedence over the implicit
    ``__context__``. The walk stops at ``max_depth`` entries or on a cycle.
    """

    seen: set[int] = set()
    current: BaseException | None = error
    depth = 0
    while current is not None and depth < max_depth and id(current) not in seen:
        seen.add(id(current))
        yield current
        depth += 1
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


class ChainUtilsFault(Exception):
    """Base exception for all chain-utils errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({rendered})"

    def walk(
        self, predicate: Callable[[BaseException], bool] | None = None
    ) -> BaseException | None:
        """Return the first error in the cause chain matching ``predicate``.

        Without a predicate the deepest reachable cause is returned.
        """

        last: BaseException = self
        for error in iter_causes(self):
            if predicate is None:
                last = error
            elif predicate(error):
                return error
        return last if predicate is None else None


class ValidationError(ChainUtilsFault):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class DuplicateChainId(ValidationError):
    """Raised when two chain inputs resolve to the same chain id."""

    def __init__(self, chain_id: int):
        super().__init__(
            "Duplicate chain ID in multichain client inputs",
            field="chain_id",
            value=chain_id,
            details={"chain_id": chain_id},
        )
        self.chain_id = chain_id


class UnsupportedChain(ChainUtilsFault):
    """Raised when a chain id is not configured."""

    def __init__(self, chain_id: int, available_chain_ids: Sequence[int] | None = None):
        details: dict[str, Any] = {}
        if available_chain_ids is not None:
            details["available_chain_ids"] = list(available_chain_ids)
        super().__init__(f"Chain {chain_id} is not supported", details)
        self.chain_id = chain_id
        self.available_chain_ids = (
            list(available_chain_ids) if available_chain_ids is not None else None
        )


class RpcFailure(ChainUtilsFault):
    """Raised when an RPC endpoint cannot serve a request."""

    def __init__(
        self,
        message: str,
        chain_id: int,
        rpc_url: str | None = None,
        details: dict | None = None,
    ):
        merged: dict[str, Any] = {"chain_id": chain_id}
        if rpc_url:
            merged["rpc_url"] = rpc_url
        merged.update(details or {})
        super().__init__(message, merged)
        self.chain_id = chain_id
        self.rpc_url = rpc_url


class MulticallNotSupported(ChainUtilsFault):
    """Raised when an aggregated call is requested on a chain without Multicall3."""

    def __init__(self, chain_id: int):
        super().__init__(f"Multicall is not supported on chain {chain_id}")
        self.chain_id = chain_id


class MulticallBatchFailure(ChainUtilsFault):
    """Raised when the aggregated call fails as a whole, before per-call results exist."""

    def __init__(self, chain_id: int, batch_size: int, details: dict | None = None):
        merged: dict[str, Any] = {"chain_id": chain_id, "batch_size": batch_size}
        merged.update(details or {})
        super().__init__(
            f"Multicall batch of {batch_size} calls failed on chain {chain_id}", merged
        )
        self.chain_id = chain_id
        self.batch_size = batch_size


class MulticallPartialFailure(ChainUtilsFault):
    """Summary of a batch in which one or more individual calls failed."""

    def __init__(self, chain_id: int, results: Sequence[CallOutcome[Any]]):
        total_count = len(results)
        failed_count = sum(1 for item in results if not item.ok)
        super().__init__(
            f"Multicall on chain {chain_id} had {failed_count}/{total_count} failures",
            {"chain_id": chain_id, "failed": f"{failed_count}/{total_count}"},
        )
        self.chain_id = chain_id
        self.results = list(results)
        self.failed_count = failed_count
        self.total_count = total_count


class ChainMismatch(ChainUtilsFault):
    """Raised when a payload was built for a different chain than the client."""

    def __init__(self, expected: int, actual: int, label: str = "Payload"):
        super().__init__(
            f"{label} chain ID does not match client chain ID",
            {"expected_chain_id": expected, "actual_chain_id": actual},
        )
        self.expected = expected
        self.actual = actual
        self.label = label


class SignerRequired(ChainUtilsFault):
    """Raised when a write operation needs a signer and none is bound."""

    def __init__(self) -> None:
        super().__init__("Signer is required for write operations")


class AccountRequired(ChainUtilsFault):
    """Raised when the bound signer does not expose an account."""

    def __init__(self) -> None:
        super().__init__("Signer must have an account for signing")


class TransactionConsumed(ChainUtilsFault):
    """Raised when a prepared or signed transaction is used a second time."""

    def __init__(self, stage: str, chain_id: int):
        super().__init__(
            f"Transaction has already been {stage}", {"stage": stage, "chain_id": chain_id}
        )
        self.stage = stage
        self.chain_id = chain_id


class ContractReverted(ChainUtilsFault):
    """Raised when a contract call reverts."""

    def __init__(
        self,
        raw_data: str | None = None,
        decoded_message: str | None = None,
        details: dict | None = None,
    ):
        merged: dict[str, Any] = {}
        if raw_data:
            merged["raw_data"] = raw_data
        merged.update(details or {})
        super().__init__(decoded_message or "Contract reverted", merged)
        self.raw_data = raw_data
        self.decoded_message = decoded_message


class PanicReverted(ContractReverted):
    """Raised when a contract hits a Solidity ``Panic(uint256)``."""

    def __init__(self, code: int, reason: str, raw_data: str | None = None):
        super().__init__(
            raw_data=raw_data,
            decoded_message=f"Panic(0x{code:02x}): {reason}",
            details={"code": code},
        )
        self.code = code
        self.reason = reason
