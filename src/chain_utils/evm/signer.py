"""Local private-key signer backed by eth-account."""

from __future__ import annotations

import logging
from typing import cast

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress, HexStr

from ..base import Signer
from ..exceptions import ValidationError
from ..types import TransactionRequest

logger = logging.getLogger(__name__)


class LocalSigner(Signer):
    """Sign transactions in-process with a ``LocalAccount``."""

    def __init__(self, account: LocalAccount):
        self._account = account

    @classmethod
    def from_key(cls, private_key: str) -> LocalSigner:
        try:
            account = cast(LocalAccount, Account.from_key(private_key))
        except Exception as exc:
            raise ValidationError(
                "Failed to derive signer account from provided private key",
                field="private_key",
                details={"error": str(exc)},
            ) from exc
        return cls(account)

    @property
    def account(self) -> ChecksumAddress:
        return self._account.address

    async def sign_transaction(self, request: TransactionRequest, chain_id: int) -> HexStr:
        signed = self._account.sign_transaction(request.as_dict(chain_id))
        logger.debug("Signed transaction for %s on chain %s", self.account, chain_id)
        return HexStr(signed.raw_transaction.to_0x_hex())
