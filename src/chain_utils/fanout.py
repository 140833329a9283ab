"""Concurrent per-chain dispatch with failure isolation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from .types import ChainFailure, ChainId, CrossChainBatchResult, CrossChainCall
from .utils import as_fault

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_across_chains(
    chain_ids: Iterable[ChainId],
    operation: Callable[[ChainId], Awaitable[T]],
) -> CrossChainBatchResult[T]:
    """Run ``operation`` for every chain concurrently and partition the outcomes.

    Every dispatch is awaited to completion; one chain's failure never cancels
    its siblings. Duplicate chain ids are dispatched once.
    """

    targets = list(dict.fromkeys(chain_ids))
    if not targets:
        return CrossChainBatchResult()

    async def _run(chain_id: ChainId) -> T:
        return await operation(chain_id)

    settled = await asyncio.gather(
        *(_run(chain_id) for chain_id in targets), return_exceptions=True
    )

    results_by_chain: dict[ChainId, T] = {}
    failed_chains: list[ChainFailure] = []
    for chain_id, outcome in zip(targets, settled):
        if isinstance(outcome, BaseException):
            error = as_fault(outcome, f"Operation on chain {chain_id} did not complete")
            failed_chains.append(ChainFailure(chain_id=chain_id, error=error))
        else:
            results_by_chain[chain_id] = outcome

    if failed_chains:
        logger.warning(
            "Cross-chain operation failed on %d/%d chains: %s",
            len(failed_chains),
            len(targets),
            [failure.chain_id for failure in failed_chains],
        )

    return CrossChainBatchResult(results_by_chain=results_by_chain, failed_chains=failed_chains)


def group_by_chain(calls: Iterable[CrossChainCall]) -> dict[ChainId, list[CrossChainCall]]:
    """Group calls by chain id, keeping each chain's relative call order."""

    grouped: dict[ChainId, list[CrossChainCall]] = {}
    for call in calls:
        grouped.setdefault(call.chain_id, []).append(call)
    return grouped
