"""Example: Read an ERC-20 balance on several chains at once."""

from __future__ import annotations

import asyncio
import logging
import os

from dotenv import load_dotenv

from chain_utils import (
    MULTICALL3_ADDRESS,
    BatchCall,
    ChainTransportConfig,
    CompositeErrorDecoder,
    MultichainContract,
    MultichainContractOptions,
    RevertStringDecoder,
)

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

ERC20_ABI = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]

# USDC deployments
USDC_BY_CHAIN = {
    1: "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    10: "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85",
    8453: "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
}


async def main() -> None:
    """Fetch USDC balance and decimals for one holder on every configured chain."""

    holder = os.getenv("HOLDER_ADDRESS")
    if not holder:
        raise ValueError("HOLDER_ADDRESS not found in environment variables")

    configs = [
        ChainTransportConfig(
            chain_id=1,
            rpc_url=os.getenv("MAINNET_RPC", "https://ethereum-rpc.publicnode.com"),
            multicall_address=MULTICALL3_ADDRESS,
        ),
        ChainTransportConfig(
            chain_id=10,
            rpc_url=os.getenv("OPTIMISM_RPC", "https://mainnet.optimism.io"),
            multicall_address=MULTICALL3_ADDRESS,
        ),
        ChainTransportConfig(
            chain_id=8453,
            rpc_url=os.getenv("BASE_RPC", "https://mainnet.base.org"),
        ),
    ]

    contract = MultichainContract.from_configs(
        MultichainContractOptions(
            abi=ERC20_ABI,
            error_decoder=CompositeErrorDecoder([RevertStringDecoder()]),
        ),
        configs,
    )

    async def read_usdc(client):
        token = USDC_BY_CHAIN[client.chain_id]
        return await client.read_batch(
            [BatchCall(token, "balanceOf", (holder,)), BatchCall(token, "decimals")]
        )

    result = await contract.fan_out(read_usdc)

    for chain_id, batch in result.results_by_chain.items():
        balance, decimals = batch.values
        if balance is None or decimals is None:
            print(f"chain {chain_id}: partial failure {batch.failures}")
            continue
        print(f"chain {chain_id}: {balance / 10**decimals:,.2f} USDC")

    for failure in result.failed_chains:
        print(f"chain {failure.chain_id}: failed ({failure.error})")


if __name__ == "__main__":
    asyncio.run(main())
