"""One contract ABI bound across many chains, with cross-chain fan-out."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from types import MappingProxyType
from typing import Any, TypeVar

from ..base import ChainEndpoint, Signer
from ..config import ChainTransportConfig, MultichainContractOptions
from ..exceptions import ChainMismatch, UnsupportedChain
from ..fanout import gather_across_chains, group_by_chain
from ..types import Address, BatchCall, BatchResult, CrossChainBatchResult, CrossChainCall
from .contract import ContractClient
from .multichain import ChainInput, MultichainClient, resolve_endpoint

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _build_contract_client(
    options: MultichainContractOptions,
    endpoint: ChainEndpoint,
    signer: Signer | None = None,
) -> ContractClient:
    return ContractClient(
        options.abi,
        endpoint,
        signer=signer if signer is not None else options.signers.get(endpoint.chain_id),
        error_decoder=options.error_decoder,
        multicall_batch_size=options.multicall_batch_size,
    )


class MultichainContract:
    """Hold one ``ContractClient`` per configured chain and fan operations out."""

    def __init__(
        self,
        multichain_client: MultichainClient,
        clients: Mapping[int, ContractClient],
        options: MultichainContractOptions,
    ) -> None:
        for chain_id, client in clients.items():
            if client.chain_id != chain_id:
                raise ChainMismatch(chain_id, client.chain_id, label="Contract client")
        self.multichain_client = multichain_client
        self.options = options
        self._clients: Mapping[int, ContractClient] = MappingProxyType(dict(clients))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_client(
        cls, options: MultichainContractOptions, multichain_client: MultichainClient
    ) -> MultichainContract:
        clients = {
            chain_id: _build_contract_client(options, multichain_client.get_endpoint(chain_id))
            for chain_id in multichain_client.chain_ids
        }
        return cls(multichain_client, clients, options)

    @classmethod
    def from_endpoints(
        cls, options: MultichainContractOptions, endpoints: Iterable[ChainEndpoint]
    ) -> MultichainContract:
        return cls.from_client(options, MultichainClient.from_inputs(endpoints))

    @classmethod
    def from_configs(
        cls, options: MultichainContractOptions, configs: Iterable[ChainTransportConfig]
    ) -> MultichainContract:
        return cls.from_client(options, MultichainClient.from_inputs(configs))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    @property
    def chain_ids(self) -> tuple[int, ...]:
        return self.multichain_client.chain_ids

    def get_client(self, chain_id: int) -> ContractClient:
        client = self._clients.get(chain_id)
        if client is None:
            raise UnsupportedChain(chain_id, available_chain_ids=self.chain_ids)
        return client

    def has_chain(self, chain_id: int) -> bool:
        return self.multichain_client.has_chain(chain_id)

    def with_chain(
        self, chain_input: ChainInput, signer: Signer | None = None
    ) -> MultichainContract:
        endpoint = resolve_endpoint(chain_input)
        multichain_client = self.multichain_client.with_chain(endpoint)
        clients = dict(self._clients)
        clients[endpoint.chain_id] = _build_contract_client(self.options, endpoint, signer)
        return MultichainContract(multichain_client, clients, self.options)

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------
    async def fan_out(
        self,
        operation: Callable[[ContractClient], Awaitable[T]],
        chain_ids: Iterable[int] | None = None,
    ) -> CrossChainBatchResult[T]:
        """Run ``operation`` with each chain's client concurrently."""

        targets = self.chain_ids if chain_ids is None else chain_ids

        async def _dispatch(chain_id: int) -> T:
            return await operation(self.get_client(chain_id))

        return await gather_across_chains(targets, _dispatch)

    async def read_on_chains(
        self,
        address: Address,
        function_name: str,
        args: Sequence[Any] = (),
        chain_ids: Iterable[int] | None = None,
    ) -> CrossChainBatchResult[Any]:
        return await self.fan_out(
            lambda client: client.read(address, function_name, args), chain_ids
        )

    async def read_each(self, calls: Mapping[int, BatchCall]) -> CrossChainBatchResult[Any]:
        async def _dispatch(chain_id: int) -> Any:
            call = calls[chain_id]
            return await self.get_client(chain_id).read(call.address, call.function_name, call.args)

        return await gather_across_chains(calls, _dispatch)

    async def read_batch_on_chains(
        self, calls: Sequence[BatchCall], chain_ids: Iterable[int] | None = None
    ) -> CrossChainBatchResult[BatchResult[Any]]:
        return await self.fan_out(lambda client: client.read_batch(calls), chain_ids)

    async def read_across_chains(
        self, calls: Sequence[CrossChainCall]
    ) -> CrossChainBatchResult[BatchResult[Any]]:
        """Group ``calls`` by chain and run one batched read per chain."""

        grouped = group_by_chain(calls)

        async def _dispatch(chain_id: int) -> BatchResult[Any]:
            chain_calls = [call.as_batch_call() for call in grouped[chain_id]]
            return await self.get_client(chain_id).read_batch(chain_calls)

        return await gather_across_chains(grouped, _dispatch)
