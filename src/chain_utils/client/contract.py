"""Single-chain contract client with batched reads and a write pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from eth_typing import HexStr
from web3.types import TxReceipt

from ..base import ChainEndpoint, Signer
from ..config import validate_batch_size
from ..decoders import ErrorDecoder
from ..types import (
    Abi,
    Address,
    BatchCall,
    BatchResult,
    PreparedTransaction,
    SignedTransaction,
    WriteOptions,
)
from .reader import ContractReader
from .transactions import TransactionPipeline


class ContractClient:
    """Bind one ABI to one chain endpoint.

    Reads run one-by-one or through Multicall3 when the endpoint supports it
    and ``multicall_batch_size`` is not ``0``. Writes follow
    ``prepare -> sign -> send`` and are only available with a signer.
    """

    def __init__(
        self,
        abi: Abi,
        endpoint: ChainEndpoint,
        *,
        signer: Signer | None = None,
        error_decoder: ErrorDecoder | None = None,
        multicall_batch_size: int | None = None,
    ) -> None:
        self.abi = abi
        self.endpoint = endpoint
        self.error_decoder = error_decoder
        self.multicall_batch_size = validate_batch_size(multicall_batch_size)
        self.reader = ContractReader(
            abi,
            endpoint,
            error_decoder=error_decoder,
            multicall_batch_size=self.multicall_batch_size,
        )
        self.transactions = TransactionPipeline(
            abi, endpoint, signer=signer, error_decoder=error_decoder
        )

    @property
    def chain_id(self) -> int:
        return self.endpoint.chain_id

    @property
    def supports_multicall(self) -> bool:
        return self.endpoint.supports_multicall

    @property
    def signer(self) -> Signer | None:
        return self.transactions.signer

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def read(self, address: Address, function_name: str, args: Sequence[Any] = ()) -> Any:
        return await self.reader.read(address, function_name, args)

    async def read_batch(self, calls: Sequence[BatchCall]) -> BatchResult[Any]:
        return await self.reader.read_batch(calls)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    async def prepare(
        self, address: Address, function_name: str, args: Sequence[Any] = ()
    ) -> PreparedTransaction:
        return await self.transactions.prepare(address, function_name, args)

    async def sign(self, prepared: PreparedTransaction) -> SignedTransaction:
        return await self.transactions.sign(prepared)

    async def send(self, signed: SignedTransaction) -> HexStr:
        return await self.transactions.send(signed)

    async def wait_for_receipt(self, tx_hash: HexStr) -> TxReceipt:
        return await self.transactions.wait_for_receipt(tx_hash)

    async def execute(
        self,
        address: Address,
        function_name: str,
        args: Sequence[Any] = (),
        options: WriteOptions | None = None,
    ) -> HexStr | TxReceipt:
        return await self.transactions.execute(address, function_name, args, options)
