"""Single-chain and multichain contract clients."""

from .contract import ContractClient
from .multichain import ChainInput, MultichainClient, create_multichain_client
from .multichain_contract import MultichainContract

__all__ = [
    "ChainInput",
    "ContractClient",
    "MultichainClient",
    "MultichainContract",
    "create_multichain_client",
]
