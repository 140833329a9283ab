"""Write-transaction pipeline: prepare, sign, send and confirm."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from eth_typing import ChecksumAddress, HexStr
from web3.types import TxReceipt

from ..base import ChainEndpoint, Signer
from ..decoders import ErrorDecoder, raise_decoded_revert
from ..exceptions import AccountRequired, ChainMismatch, SignerRequired, TransactionConsumed
from ..types import (
    Abi,
    Address,
    FeeEstimate,
    PreparedTransaction,
    SignedTransaction,
    TransactionRequest,
    WriteOptions,
)

logger = logging.getLogger(__name__)


class TransactionPipeline:
    """Drive one contract write through ``prepare -> sign -> send -> wait``.

    Prepared and signed values are single use: each is claimed when its stage
    starts and released again only if that stage fails.
    """

    def __init__(
        self,
        abi: Abi,
        endpoint: ChainEndpoint,
        *,
        signer: Signer | None = None,
        error_decoder: ErrorDecoder | None = None,
    ) -> None:
        self._abi = abi
        self._endpoint = endpoint
        self._signer = signer
        self._error_decoder = error_decoder

    @property
    def chain_id(self) -> int:
        return self._endpoint.chain_id

    @property
    def signer(self) -> Signer | None:
        return self._signer

    async def prepare(
        self, address: Address, function_name: str, args: Sequence[Any] = ()
    ) -> PreparedTransaction:
        resolved_args = list(args)
        account = self._signer_account()

        try:
            await self._endpoint.simulate(
                self._abi, address, function_name, resolved_args, account=account
            )
        except Exception as exc:
            logger.debug("Simulation of %s failed on chain %s", function_name, self.chain_id)
            raise_decoded_revert(exc, self._error_decoder)

        data = self._endpoint.encode_call(self._abi, function_name, resolved_args)

        try:
            gas_estimate, fees, nonce = await asyncio.gather(
                self._endpoint.estimate_gas(address, data, account=account),
                self._endpoint.estimate_fees(),
                self._fetch_nonce(account),
            )
        except Exception as exc:
            raise_decoded_revert(exc, self._error_decoder)

        return PreparedTransaction(
            request=_build_request(address, data, gas_estimate, nonce, fees),
            gas_estimate=gas_estimate,
            chain_id=self.chain_id,
        )

    async def sign(self, prepared: PreparedTransaction) -> SignedTransaction:
        self._assert_chain_consistency(prepared.chain_id, "Prepared transaction")

        signer = self._require_signer()
        if signer.account is None:
            raise AccountRequired()
        if prepared.signed:
            raise TransactionConsumed("signed", prepared.chain_id)

        # Claimed before awaiting so a concurrent sign of the same value is rejected.
        prepared.signed = True
        try:
            serialized = await signer.sign_transaction(prepared.request, prepared.chain_id)
        except BaseException:
            prepared.signed = False
            raise
        return SignedTransaction(serialized=serialized, chain_id=prepared.chain_id)

    async def send(self, signed: SignedTransaction) -> HexStr:
        self._assert_chain_consistency(signed.chain_id, "Signed transaction")
        if signed.sent:
            raise TransactionConsumed("sent", signed.chain_id)

        signed.sent = True
        try:
            tx_hash = await self._endpoint.send_raw_transaction(signed.serialized)
        except BaseException:
            signed.sent = False
            raise
        logger.info("Transaction sent on chain %s hash=%s", self.chain_id, tx_hash)
        return tx_hash

    async def wait_for_receipt(self, tx_hash: HexStr) -> TxReceipt:
        receipt = await self._endpoint.wait_for_receipt(tx_hash)
        logger.info(
            "Transaction confirmed on chain %s hash=%s block=%s",
            self.chain_id,
            tx_hash,
            receipt.get("blockNumber"),
        )
        return receipt

    async def execute(
        self,
        address: Address,
        function_name: str,
        args: Sequence[Any] = (),
        options: WriteOptions | None = None,
    ) -> HexStr | TxReceipt:
        prepared = await self.prepare(address, function_name, args)
        signed = await self.sign(prepared)
        tx_hash = await self.send(signed)

        if options is not None and options.wait_for_receipt:
            return await self.wait_for_receipt(tx_hash)
        return tx_hash

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _signer_account(self) -> ChecksumAddress | None:
        return self._signer.account if self._signer is not None else None

    async def _fetch_nonce(self, account: ChecksumAddress | None) -> int | None:
        if account is None:
            return None
        return await self._endpoint.get_nonce(account)

    def _require_signer(self) -> Signer:
        if self._signer is None:
            raise SignerRequired()
        return self._signer

    def _assert_chain_consistency(self, actual_chain_id: int, payload_label: str) -> None:
        if actual_chain_id != self.chain_id:
            raise ChainMismatch(self.chain_id, actual_chain_id, label=payload_label)


def _build_request(
    address: Address, data: HexStr, gas: int, nonce: int | None, fees: FeeEstimate
) -> TransactionRequest:
    return TransactionRequest(
        to=address,
        data=data,
        gas=gas,
        nonce=nonce,
        max_fee_per_gas=fees.max_fee_per_gas,
        max_priority_fee_per_gas=fees.max_priority_fee_per_gas,
        gas_price=fees.gas_price,
    )
