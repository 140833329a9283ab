"""Example: Send an ERC-20 transfer through the prepare/sign/send pipeline."""

from __future__ import annotations

import asyncio
import logging
import os

from dotenv import load_dotenv

from chain_utils import (
    AbiErrorDecoder,
    ChainTransportConfig,
    CompositeErrorDecoder,
    ContractClient,
    ContractReverted,
    LocalSigner,
    RevertStringDecoder,
    Web3ChainEndpoint,
    WriteOptions,
)

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

ERC20_ABI = [
    {
        "type": "function",
        "name": "transfer",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "error",
        "name": "ERC20InsufficientBalance",
        "inputs": [
            {"name": "sender", "type": "address"},
            {"name": "balance", "type": "uint256"},
            {"name": "needed", "type": "uint256"},
        ],
    },
]

AMOUNT = 1_000_000  # 1 token with 6 decimals


async def main() -> None:
    """Transfer tokens on a testnet and wait for the receipt."""

    private_key = os.getenv("PRIVATE_KEY")
    if not private_key:
        raise ValueError("PRIVATE_KEY not found in environment variables")
    token_address = os.getenv("TOKEN_ADDRESS")
    if not token_address:
        raise ValueError("TOKEN_ADDRESS not found in environment variables")
    recipient = os.getenv("RECIPIENT_ADDRESS")
    if not recipient:
        raise ValueError("RECIPIENT_ADDRESS not found in environment variables")

    endpoint = Web3ChainEndpoint.from_config(
        ChainTransportConfig(
            chain_id=int(os.getenv("CHAIN_ID", "11155111")),
            rpc_url=os.getenv("RPC_URL", "https://sepolia.drpc.org"),
        )
    )
    await endpoint.verify_chain_id()

    client = ContractClient(
        ERC20_ABI,
        endpoint,
        signer=LocalSigner.from_key(private_key),
        error_decoder=CompositeErrorDecoder(
            [RevertStringDecoder(), AbiErrorDecoder(ERC20_ABI)]
        ),
    )

    try:
        receipt = await client.execute(
            token_address,
            "transfer",
            [recipient, AMOUNT],
            WriteOptions(wait_for_receipt=True),
        )
    except ContractReverted as exc:
        print(f"Transfer reverted: {exc.message}")
        return

    print(f"Transfer confirmed in block {receipt['blockNumber']}")


if __name__ == "__main__":
    asyncio.run(main())
