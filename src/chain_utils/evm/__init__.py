"""web3.py-backed implementations of the chain-utils capabilities."""

from .connections import Web3ChainEndpoint
from .signer import LocalSigner

__all__ = ["LocalSigner", "Web3ChainEndpoint"]
