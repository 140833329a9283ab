"""Capability interfaces consumed by the contract clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from eth_typing import ChecksumAddress, HexStr
from web3.types import TxReceipt

from .types import Abi, Address, BatchCall, CallOutcome, FeeEstimate, TransactionRequest


class ChainEndpoint(ABC):
    """RPC handle bound to exactly one chain."""

    @property
    @abstractmethod
    def chain_id(self) -> int:
        pass

    @property
    @abstractmethod
    def supports_multicall(self) -> bool:
        pass

    @abstractmethod
    async def call(
        self, abi: Abi, address: Address, function_name: str, args: Sequence[Any]
    ) -> Any:
        pass

    @abstractmethod
    async def multicall(
        self,
        abi: Abi,
        calls: Sequence[BatchCall],
        *,
        allow_failure: bool = True,
        batch_size: int | None = None,
    ) -> list[CallOutcome[Any]]:
        pass

    @abstractmethod
    async def simulate(
        self,
        abi: Abi,
        address: Address,
        function_name: str,
        args: Sequence[Any],
        account: ChecksumAddress | None = None,
    ) -> Any:
        pass

    @abstractmethod
    def encode_call(self, abi: Abi, function_name: str, args: Sequence[Any]) -> HexStr:
        pass

    @abstractmethod
    async def estimate_gas(
        self, to: Address, data: HexStr, account: ChecksumAddress | None = None
    ) -> int:
        pass

    @abstractmethod
    async def estimate_fees(self) -> FeeEstimate:
        pass

    @abstractmethod
    async def get_nonce(self, account: ChecksumAddress) -> int:
        pass

    @abstractmethod
    async def send_raw_transaction(self, serialized: HexStr) -> HexStr:
        pass

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: HexStr) -> TxReceipt:
        pass


class Signer(ABC):
    """Signs transaction requests on behalf of one account."""

    @property
    @abstractmethod
    def account(self) -> ChecksumAddress | None:
        pass

    @abstractmethod
    async def sign_transaction(self, request: TransactionRequest, chain_id: int) -> HexStr:
        pass
