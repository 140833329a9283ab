"""Immutable registry of chain endpoints keyed by chain id."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Union

from ..base import ChainEndpoint
from ..config import ChainTransportConfig
from ..evm.connections import Web3ChainEndpoint
from ..exceptions import ChainMismatch, DuplicateChainId, UnsupportedChain, ValidationError

logger = logging.getLogger(__name__)

ChainInput = Union[ChainEndpoint, ChainTransportConfig]


def resolve_endpoint(chain_input: ChainInput) -> ChainEndpoint:
    """Return the endpoint for a chain input, building one from a transport config."""

    if isinstance(chain_input, ChainEndpoint):
        return chain_input
    if isinstance(chain_input, ChainTransportConfig):
        return Web3ChainEndpoint.from_config(chain_input)
    raise ValidationError(
        "Chain input must be a ChainEndpoint or ChainTransportConfig",
        field="chain_input",
        value=type(chain_input).__name__,
    )


class MultichainClient:
    """Read-only mapping of chain id to ``ChainEndpoint``.

    ``with_chain`` never mutates the receiver; it returns a new registry.
    """

    def __init__(self, endpoints: Mapping[int, ChainEndpoint]):
        for chain_id, endpoint in endpoints.items():
            if endpoint.chain_id != chain_id:
                raise ChainMismatch(chain_id, endpoint.chain_id, label="Endpoint")
        self._endpoints: Mapping[int, ChainEndpoint] = MappingProxyType(dict(endpoints))
        self.chain_ids: tuple[int, ...] = tuple(self._endpoints)

    @classmethod
    def from_inputs(cls, inputs: Iterable[ChainInput]) -> MultichainClient:
        endpoints: dict[int, ChainEndpoint] = {}
        for chain_input in inputs:
            endpoint = resolve_endpoint(chain_input)
            if endpoint.chain_id in endpoints:
                raise DuplicateChainId(endpoint.chain_id)
            endpoints[endpoint.chain_id] = endpoint

        logger.debug("Configured multichain client for chains %s", list(endpoints))
        return cls(endpoints)

    def get_endpoint(self, chain_id: int) -> ChainEndpoint:
        endpoint = self._endpoints.get(chain_id)
        if endpoint is None:
            raise UnsupportedChain(chain_id, available_chain_ids=self.chain_ids)
        return endpoint

    def has_chain(self, chain_id: int) -> bool:
        return chain_id in self._endpoints

    def with_chain(self, chain_input: ChainInput) -> MultichainClient:
        endpoint = resolve_endpoint(chain_input)
        endpoints = dict(self._endpoints)
        endpoints[endpoint.chain_id] = endpoint
        return MultichainClient(endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._endpoints


def create_multichain_client(inputs: Iterable[ChainInput]) -> MultichainClient:
    """Create a ``MultichainClient`` from endpoints and/or transport configs."""

    return MultichainClient.from_inputs(inputs)
