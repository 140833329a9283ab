"""Single and batched contract reads on one chain."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from ..base import ChainEndpoint
from ..decoders import ErrorDecoder, extract_revert_data
from ..exceptions import ContractReverted, MulticallBatchFailure
from ..types import (
    Abi,
    Address,
    BatchCall,
    BatchResult,
    CallFailure,
    CallOutcome,
    CallSuccess,
)
from ..utils import as_fault

logger = logging.getLogger(__name__)


class ContractReader:
    """Read capability of a contract binding."""

    def __init__(
        self,
        abi: Abi,
        endpoint: ChainEndpoint,
        *,
        error_decoder: ErrorDecoder | None = None,
        multicall_batch_size: int | None = None,
    ) -> None:
        self._abi = abi
        self._endpoint = endpoint
        self._error_decoder = error_decoder
        self._multicall_batch_size = multicall_batch_size

    @property
    def chain_id(self) -> int:
        return self._endpoint.chain_id

    @property
    def uses_multicall(self) -> bool:
        return self._endpoint.supports_multicall and self._multicall_batch_size != 0

    async def read(
        self, address: Address, function_name: str, args: Sequence[Any] = ()
    ) -> Any:
        return await self._endpoint.call(self._abi, address, function_name, list(args))

    async def read_batch(self, calls: Sequence[BatchCall]) -> BatchResult[Any]:
        calls = list(calls)
        if not calls:
            return BatchResult(chain_id=self.chain_id, results=[], calls=[])

        if self.uses_multicall:
            results = await self._read_batch_multicall(calls)
        else:
            results = await self._read_batch_concurrent(calls)

        return BatchResult(chain_id=self.chain_id, results=results, calls=calls)

    async def _read_batch_multicall(self, calls: list[BatchCall]) -> list[CallOutcome[Any]]:
        logger.debug("Reading %d calls via multicall on chain %s", len(calls), self.chain_id)
        try:
            outcomes = await self._endpoint.multicall(
                self._abi,
                calls,
                allow_failure=True,
                batch_size=self._multicall_batch_size,
            )
        except Exception as exc:
            logger.warning("Multicall batch failed on chain %s: %s", self.chain_id, exc)
            raise MulticallBatchFailure(
                self.chain_id, len(calls), details={"error": str(exc)}
            ) from exc

        if len(outcomes) != len(calls):
            raise MulticallBatchFailure(
                self.chain_id,
                len(calls),
                details={"error": f"expected {len(calls)} results, got {len(outcomes)}"},
            )

        return [self._decode_failure(outcome) for outcome in outcomes]

    async def _read_batch_concurrent(self, calls: list[BatchCall]) -> list[CallOutcome[Any]]:
        logger.debug("Reading %d calls concurrently on chain %s", len(calls), self.chain_id)
        settled = await asyncio.gather(
            *(self.read(call.address, call.function_name, call.args) for call in calls),
            return_exceptions=True,
        )

        results: list[CallOutcome[Any]] = []
        for call, item in zip(calls, settled):
            if isinstance(item, BaseException):
                error = as_fault(item, f"Read of {call.function_name} did not complete")
                results.append(CallFailure(self._decode_error(error)))
            else:
                results.append(CallSuccess(item))
        return results

    def _decode_failure(self, outcome: CallOutcome[Any]) -> CallOutcome[Any]:
        if not isinstance(outcome, CallFailure) or type(outcome.error) is not ContractReverted:
            return outcome
        return CallFailure(self._decode_error(outcome.error))

    def _decode_error(self, error: Exception) -> Exception:
        """Replace ``error`` with the decoder's typed fault for its revert payload, if any."""

        if self._error_decoder is None:
            return error

        raw_data = extract_revert_data(error)
        if raw_data is None:
            return error

        decoded = self._error_decoder.decode(raw_data)
        if decoded is None:
            return error
        decoded.__cause__ = error
        return decoded
