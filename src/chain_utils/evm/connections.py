"""AsyncWeb3-backed chain endpoint."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

import aiohttp
from eth_typing import ChecksumAddress, HexStr
from hexbytes import HexBytes
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.types import TxParams, TxReceipt

from ..abi import decode_function_result, encode_function_call
from ..base import ChainEndpoint
from ..config import DEFAULT_RECEIPT_POLL_LATENCY, DEFAULT_RECEIPT_TIMEOUT, ChainTransportConfig
from ..exceptions import ChainMismatch, MulticallNotSupported, RpcFailure
from ..types import Abi, Address, BatchCall, CallOutcome, FeeEstimate
from .multicall import chunk_calls, decode_aggregate3, encode_aggregate3

logger = logging.getLogger(__name__)

BASE_FEE_MULTIPLIER = 2


class Web3ChainEndpoint(ChainEndpoint):
    """Chain endpoint that talks to a JSON-RPC node through ``AsyncWeb3``."""

    def __init__(
        self,
        web3: AsyncWeb3,
        chain_id: int,
        *,
        multicall_address: str | None = None,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
        receipt_poll_latency: float = DEFAULT_RECEIPT_POLL_LATENCY,
        rpc_url: str | None = None,
    ) -> None:
        self._web3 = web3
        self._chain_id = chain_id
        self._multicall_address = (
            Web3.to_checksum_address(multicall_address) if multicall_address else None
        )
        self._receipt_timeout = receipt_timeout
        self._receipt_poll_latency = receipt_poll_latency
        self.rpc_url = rpc_url

    @classmethod
    def from_config(cls, config: ChainTransportConfig) -> Web3ChainEndpoint:
        """Build an endpoint with its own HTTP provider from ``config``."""

        config = config.with_defaults()
        provider = AsyncHTTPProvider(
            config.rpc_url,
            request_kwargs={"timeout": aiohttp.ClientTimeout(total=config.request_timeout)},
        )
        return cls(
            AsyncWeb3(provider),
            config.chain_id,
            multicall_address=config.multicall_address,
            receipt_timeout=config.receipt_timeout,
            receipt_poll_latency=config.receipt_poll_latency,
            rpc_url=config.rpc_url,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def supports_multicall(self) -> bool:
        return self._multicall_address is not None

    @property
    def web3(self) -> AsyncWeb3:
        return self._web3

    @property
    def multicall_address(self) -> ChecksumAddress | None:
        return self._multicall_address

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def call(
        self, abi: Abi, address: Address, function_name: str, args: Sequence[Any]
    ) -> Any:
        data = encode_function_call(abi, function_name, args)
        result = await self._web3.eth.call(self._tx_params(address, data))
        return decode_function_result(abi, function_name, args, result)

    async def simulate(
        self,
        abi: Abi,
        address: Address,
        function_name: str,
        args: Sequence[Any],
        account: ChecksumAddress | None = None,
    ) -> Any:
        data = encode_function_call(abi, function_name, args)
        result = await self._web3.eth.call(self._tx_params(address, data, account))
        return decode_function_result(abi, function_name, args, result)

    async def multicall(
        self,
        abi: Abi,
        calls: Sequence[BatchCall],
        *,
        allow_failure: bool = True,
        batch_size: int | None = None,
    ) -> list[CallOutcome[Any]]:
        multicall_address = self._multicall_address
        if multicall_address is None:
            raise MulticallNotSupported(self._chain_id)

        chunks = chunk_calls(calls, batch_size)
        logger.debug(
            "Dispatching %d calls in %d aggregate3 request(s) on chain %s",
            len(calls),
            len(chunks),
            self._chain_id,
        )
        tasks = [
            asyncio.ensure_future(
                self._aggregate3(multicall_address, abi, chunk, allow_failure=allow_failure)
            )
            for chunk in chunks
        ]
        try:
            decoded = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
        return [outcome for chunk_outcomes in decoded for outcome in chunk_outcomes]

    def encode_call(self, abi: Abi, function_name: str, args: Sequence[Any]) -> HexStr:
        return encode_function_call(abi, function_name, args)

    # ------------------------------------------------------------------
    # Transaction support
    # ------------------------------------------------------------------
    async def estimate_gas(
        self, to: Address, data: HexStr, account: ChecksumAddress | None = None
    ) -> int:
        return int(await self._web3.eth.estimate_gas(self._tx_params(to, data, account)))

    async def estimate_fees(self) -> FeeEstimate:
        block = await self._web3.eth.get_block("latest")
        base_fee = block.get("baseFeePerGas")
        if base_fee is None:
            gas_price = await self._web3.eth.gas_price
            return FeeEstimate(gas_price=int(gas_price))

        priority_fee = int(await self._web3.eth.max_priority_fee)
        return FeeEstimate(
            max_fee_per_gas=int(base_fee) * BASE_FEE_MULTIPLIER + priority_fee,
            max_priority_fee_per_gas=priority_fee,
        )

    async def get_nonce(self, account: ChecksumAddress) -> int:
        return int(await self._web3.eth.get_transaction_count(account, "pending"))

    async def send_raw_transaction(self, serialized: HexStr) -> HexStr:
        tx_hash = await self._web3.eth.send_raw_transaction(serialized)
        return HexStr(HexBytes(tx_hash).to_0x_hex())

    async def wait_for_receipt(self, tx_hash: HexStr) -> TxReceipt:
        return await self._web3.eth.wait_for_transaction_receipt(
            HexBytes(tx_hash),
            timeout=self._receipt_timeout,
            poll_latency=self._receipt_poll_latency,
        )

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------
    async def verify_chain_id(self) -> None:
        """Check that the node serves the configured chain."""

        try:
            remote_chain_id = await self._web3.eth.chain_id
        except Exception as exc:
            raise RpcFailure(
                "Failed to fetch chain ID from RPC endpoint",
                chain_id=self._chain_id,
                rpc_url=self.rpc_url,
                details={"error": str(exc)},
            ) from exc

        if remote_chain_id != self._chain_id:
            raise ChainMismatch(self._chain_id, remote_chain_id, label="RPC endpoint")

        logger.info("Verified chain %s at %s", self._chain_id, self.rpc_url)

    # ------------------------------------------------------------------
    # Internal wiring
    # ------------------------------------------------------------------
    def _tx_params(
        self, to: Address, data: HexStr, account: ChecksumAddress | None = None
    ) -> TxParams:
        params: TxParams = {"to": Web3.to_checksum_address(to), "data": data}
        if account is not None:
            params["from"] = account
        return params

    async def _aggregate3(
        self,
        multicall_address: ChecksumAddress,
        abi: Abi,
        calls: Sequence[BatchCall],
        *,
        allow_failure: bool,
    ) -> list[CallOutcome[Any]]:
        data = encode_aggregate3(abi, calls, allow_failure=allow_failure)
        raw_result = await self._web3.eth.call(self._tx_params(multicall_address, data))
        return decode_aggregate3(abi, calls, raw_result)
