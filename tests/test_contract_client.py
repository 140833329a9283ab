from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import pytest
from eth_typing import HexStr
from fakes import ERC20_ABI, HOLDER, SENDER, TOKEN_A, TOKEN_B, DummyEndpoint, DummySigner
from web3.exceptions import ContractLogicError

from chain_utils.client.contract import ContractClient
from chain_utils.decoders import CompositeErrorDecoder, ErrorDecoder, SelectorErrorDecoder
from chain_utils.exceptions import (
    AccountRequired,
    ChainMismatch,
    ChainUtilsFault,
    ContractReverted,
    MulticallBatchFailure,
    SignerRequired,
    TransactionConsumed,
    ValidationError,
)
from chain_utils.types import (
    BatchCall,
    CallFailure,
    CallSuccess,
    FeeEstimate,
    PreparedTransaction,
    SignedTransaction,
    TransactionRequest,
    WriteOptions,
)


class InsufficientBalance(ContractReverted):
    def __init__(self, raw_data: str):
        super().__init__(raw_data=raw_data, decoded_message="InsufficientBalance")


def _insufficient_balance_decoder() -> ErrorDecoder:
    return SelectorErrorDecoder({"0xdeadbeef": InsufficientBalance})


def _balances(address: str, function_name: str, args: Sequence[Any]) -> Any:
    if function_name == "totalSupply":
        raise RuntimeError("rpc down")
    return 500


def _prepared(chain_id: int) -> PreparedTransaction:
    return PreparedTransaction(
        request=TransactionRequest(to=TOKEN_A, data=HexStr("0x"), gas=21_000),
        gas_estimate=21_000,
        chain_id=chain_id,
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_read_returns_endpoint_value() -> None:
    endpoint = DummyEndpoint(1, call_handler=lambda address, name, args: 42)
    client = ContractClient(ERC20_ABI, endpoint)

    assert await client.read(TOKEN_A, "balanceOf", [HOLDER]) == 42
    assert endpoint.calls == [(TOKEN_A, "balanceOf", (HOLDER,))]


@pytest.mark.asyncio
async def test_read_propagates_transport_error_unchanged() -> None:
    error = RuntimeError("connection reset")

    def _fail(address: str, name: str, args: Sequence[Any]) -> Any:
        raise error

    client = ContractClient(ERC20_ABI, DummyEndpoint(1, call_handler=_fail))

    with pytest.raises(RuntimeError) as excinfo:
        await client.read(TOKEN_A, "totalSupply")

    assert excinfo.value is error


@pytest.mark.asyncio
async def test_read_batch_empty_issues_no_rpc() -> None:
    endpoint = DummyEndpoint(1, supports_multicall=True)
    client = ContractClient(ERC20_ABI, endpoint)

    result = await client.read_batch([])

    assert result.chain_id == 1
    assert result.results == []
    assert endpoint.calls == []
    assert endpoint.multicalls == []


@pytest.mark.asyncio
async def test_read_batch_sequential_captures_per_call_failure() -> None:
    endpoint = DummyEndpoint(1, supports_multicall=False, call_handler=_balances)
    client = ContractClient(ERC20_ABI, endpoint)
    calls = [
        BatchCall(TOKEN_A, "balanceOf", (HOLDER,)),
        BatchCall(TOKEN_B, "totalSupply"),
    ]

    result = await client.read_batch(calls)

    assert result.chain_id == 1
    assert result.results[0] == CallSuccess(500)
    failure = result.results[1]
    assert isinstance(failure, CallFailure)
    assert isinstance(failure.error, RuntimeError)
    assert str(failure.error) == "rpc down"
    assert endpoint.multicalls == []
    assert result.failures == [(calls[1], failure.error)]


@pytest.mark.asyncio
async def test_read_batch_sequential_preserves_order_when_completion_is_reversed() -> None:
    class SlowFirstEndpoint(DummyEndpoint):
        async def call(self, abi, address, function_name, args):  # type: ignore[override]
            await asyncio.sleep(0.01 * (3 - args[0]))
            return args[0] * 10

    client = ContractClient(ERC20_ABI, SlowFirstEndpoint(5))
    calls = [BatchCall(TOKEN_A, "balanceOf", (index,)) for index in range(3)]

    result = await client.read_batch(calls)

    assert result.values == [0, 10, 20]
    assert result.calls == calls


@pytest.mark.asyncio
async def test_read_batch_uses_single_multicall_when_supported() -> None:
    outcomes = [CallSuccess(1), CallFailure(ContractReverted(raw_data="0x")), CallSuccess(3)]
    endpoint = DummyEndpoint(10, supports_multicall=True, multicall_result=outcomes)
    client = ContractClient(ERC20_ABI, endpoint, multicall_batch_size=50)
    calls = [BatchCall(TOKEN_A, "totalSupply") for _ in range(3)]

    result = await client.read_batch(calls)

    assert result.results == outcomes
    assert endpoint.calls == []
    assert len(endpoint.multicalls) == 1
    sent_calls, allow_failure, batch_size = endpoint.multicalls[0]
    assert sent_calls == calls
    assert allow_failure is True
    assert batch_size == 50


@pytest.mark.asyncio
async def test_zero_batch_size_disables_multicall() -> None:
    endpoint = DummyEndpoint(
        1, supports_multicall=True, call_handler=lambda address, name, args: 9
    )
    client = ContractClient(ERC20_ABI, endpoint, multicall_batch_size=0)

    result = await client.read_batch([BatchCall(TOKEN_A, "totalSupply")])

    assert result.values == [9]
    assert endpoint.multicalls == []
    assert len(endpoint.calls) == 1


def test_negative_batch_size_rejected() -> None:
    with pytest.raises(ValidationError):
        ContractClient(ERC20_ABI, DummyEndpoint(1), multicall_batch_size=-1)


@pytest.mark.asyncio
async def test_multicall_transport_failure_raises_batch_failure() -> None:
    transport_error = ConnectionError("socket closed")
    endpoint = DummyEndpoint(137, supports_multicall=True, multicall_result=transport_error)
    client = ContractClient(ERC20_ABI, endpoint)

    with pytest.raises(MulticallBatchFailure) as excinfo:
        await client.read_batch([BatchCall(TOKEN_A, "totalSupply")] * 4)

    err = excinfo.value
    assert err.chain_id == 137
    assert err.batch_size == 4
    assert err.__cause__ is transport_error


@pytest.mark.asyncio
async def test_multicall_result_length_mismatch_raises_batch_failure() -> None:
    endpoint = DummyEndpoint(1, supports_multicall=True, multicall_result=[CallSuccess(1)])
    client = ContractClient(ERC20_ABI, endpoint)

    with pytest.raises(MulticallBatchFailure):
        await client.read_batch([BatchCall(TOKEN_A, "totalSupply")] * 2)


@pytest.mark.asyncio
async def test_multicall_item_revert_is_decoded() -> None:
    outcomes = [CallFailure(ContractReverted(raw_data="0xdeadbeef"))]
    endpoint = DummyEndpoint(1, supports_multicall=True, multicall_result=outcomes)
    client = ContractClient(
        ERC20_ABI, endpoint, error_decoder=_insufficient_balance_decoder()
    )

    result = await client.read_batch([BatchCall(TOKEN_A, "totalSupply")])

    failure = result.results[0]
    assert isinstance(failure, CallFailure)
    assert isinstance(failure.error, InsufficientBalance)


# ---------------------------------------------------------------------------
# prepare
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_prepare_assembles_transaction() -> None:
    endpoint = DummyEndpoint(
        1,
        gas=55_000,
        fees=FeeEstimate(max_fee_per_gas=100, max_priority_fee_per_gas=3),
        nonce=12,
    )
    client = ContractClient(ERC20_ABI, endpoint, signer=DummySigner())

    prepared = await client.prepare(TOKEN_A, "transfer", [HOLDER, 5])

    assert prepared.chain_id == 1
    assert prepared.gas_estimate == 55_000
    assert prepared.request.to == TOKEN_A
    assert prepared.request.data == HexStr("0x" + b"transfer".hex())
    assert prepared.request.nonce == 12
    assert prepared.request.max_fee_per_gas == 100
    assert prepared.request.max_priority_fee_per_gas == 3
    assert endpoint.simulations == [(TOKEN_A, "transfer", (HOLDER, 5), SENDER)]
    assert endpoint.nonce_requests == [SENDER]


@pytest.mark.asyncio
async def test_prepare_without_signer_skips_nonce() -> None:
    endpoint = DummyEndpoint(1)
    client = ContractClient(ERC20_ABI, endpoint)

    prepared = await client.prepare(TOKEN_A, "transfer", [HOLDER, 5])

    assert prepared.request.nonce is None
    assert endpoint.nonce_requests == []


@pytest.mark.asyncio
async def test_prepare_raises_decoded_revert_from_cause_chain() -> None:
    revert = ContractLogicError("execution reverted", data="0xdeadbeef")
    try:
        try:
            raise revert
        except ContractLogicError as inner:
            raise RuntimeError("simulation failed") from inner
    except RuntimeError as outer:
        simulate_error = outer

    endpoint = DummyEndpoint(1, simulate_error=simulate_error)
    decoder = CompositeErrorDecoder([_insufficient_balance_decoder()])
    client = ContractClient(ERC20_ABI, endpoint, error_decoder=decoder)

    with pytest.raises(InsufficientBalance) as excinfo:
        await client.prepare(TOKEN_A, "transfer", [HOLDER, 5])

    assert excinfo.value.raw_data == "0xdeadbeef"
    assert excinfo.value.__cause__ is simulate_error


@pytest.mark.asyncio
async def test_prepare_reraises_original_when_unrecognised() -> None:
    simulate_error = ContractLogicError("execution reverted", data="0x12345678")
    endpoint = DummyEndpoint(1, simulate_error=simulate_error)
    client = ContractClient(
        ERC20_ABI, endpoint, error_decoder=_insufficient_balance_decoder()
    )

    with pytest.raises(ContractLogicError) as excinfo:
        await client.prepare(TOKEN_A, "transfer", [HOLDER, 5])

    assert excinfo.value is simulate_error


@pytest.mark.asyncio
async def test_prepare_reraises_original_without_payload() -> None:
    simulate_error = RuntimeError("node unavailable")
    endpoint = DummyEndpoint(1, simulate_error=simulate_error)
    client = ContractClient(
        ERC20_ABI, endpoint, error_decoder=_insufficient_balance_decoder()
    )

    with pytest.raises(RuntimeError) as excinfo:
        await client.prepare(TOKEN_A, "transfer", [HOLDER, 5])

    assert excinfo.value is simulate_error


@pytest.mark.asyncio
async def test_prepare_decodes_gas_estimation_revert() -> None:
    gas_error = ContractLogicError("execution reverted", data="0xdeadbeef")
    endpoint = DummyEndpoint(1, gas_error=gas_error)
    client = ContractClient(
        ERC20_ABI, endpoint, error_decoder=_insufficient_balance_decoder()
    )

    with pytest.raises(InsufficientBalance):
        await client.prepare(TOKEN_A, "transfer", [HOLDER, 5])


# ---------------------------------------------------------------------------
# sign / send
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_sign_rejects_chain_mismatch_without_calling_signer() -> None:
    signer = DummySigner()
    client = ContractClient(ERC20_ABI, DummyEndpoint(1), signer=signer)

    with pytest.raises(ChainMismatch) as excinfo:
        await client.sign(_prepared(10))

    assert excinfo.value.expected == 1
    assert excinfo.value.actual == 10
    assert signer.requests == []


@pytest.mark.asyncio
async def test_sign_requires_signer() -> None:
    client = ContractClient(ERC20_ABI, DummyEndpoint(1))

    with pytest.raises(SignerRequired):
        await client.sign(_prepared(1))


@pytest.mark.asyncio
async def test_sign_requires_account() -> None:
    signer = DummySigner(account=None)
    client = ContractClient(ERC20_ABI, DummyEndpoint(1), signer=signer)

    with pytest.raises(AccountRequired):
        await client.sign(_prepared(1))

    assert signer.requests == []


@pytest.mark.asyncio
async def test_sign_returns_serialized_payload_once() -> None:
    signer = DummySigner()
    client = ContractClient(ERC20_ABI, DummyEndpoint(1), signer=signer)
    prepared = _prepared(1)

    signed = await client.sign(prepared)

    assert signed.serialized == "0x02f8"
    assert signed.chain_id == 1
    assert signer.requests == [(prepared.request, 1)]

    with pytest.raises(TransactionConsumed):
        await client.sign(prepared)


@pytest.mark.asyncio
async def test_send_rejects_chain_mismatch() -> None:
    endpoint = DummyEndpoint(1)
    client = ContractClient(ERC20_ABI, endpoint, signer=DummySigner())

    with pytest.raises(ChainMismatch):
        await client.send(SignedTransaction(serialized=HexStr("0x02"), chain_id=8453))

    assert endpoint.broadcasts == []


@pytest.mark.asyncio
async def test_send_broadcasts_once() -> None:
    endpoint = DummyEndpoint(1)
    client = ContractClient(ERC20_ABI, endpoint)
    signed = SignedTransaction(serialized=HexStr("0x02aa"), chain_id=1)

    tx_hash = await client.send(signed)

    assert tx_hash == "0x" + "ab" * 32
    assert endpoint.broadcasts == ["0x02aa"]
    with pytest.raises(TransactionConsumed):
        await client.send(signed)


# ---------------------------------------------------------------------------
# execute
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_execute_returns_hash_by_default() -> None:
    endpoint = DummyEndpoint(1)
    client = ContractClient(ERC20_ABI, endpoint, signer=DummySigner())

    result = await client.execute(TOKEN_A, "transfer", [HOLDER, 1])

    assert result == "0x" + "ab" * 32
    assert endpoint.receipt_requests == []


@pytest.mark.asyncio
async def test_execute_waits_for_receipt_when_requested() -> None:
    endpoint = DummyEndpoint(1)
    client = ContractClient(ERC20_ABI, endpoint, signer=DummySigner())

    receipt = await client.execute(
        TOKEN_A, "transfer", [HOLDER, 1], WriteOptions(wait_for_receipt=True)
    )

    assert isinstance(receipt, dict)
    assert receipt["blockNumber"] == 99
    assert endpoint.receipt_requests == ["0x" + "ab" * 32]


@pytest.mark.asyncio
async def test_execute_aborts_when_signer_missing() -> None:
    endpoint = DummyEndpoint(1)
    client = ContractClient(ERC20_ABI, endpoint)

    with pytest.raises(ChainUtilsFault):
        await client.execute(TOKEN_A, "transfer", [HOLDER, 1])

    assert endpoint.broadcasts == []


class SlowSigner(DummySigner):
    async def sign_transaction(self, request: TransactionRequest, chain_id: int) -> HexStr:
        await asyncio.sleep(0.01)
        return await super().sign_transaction(request, chain_id)


class FlakySigner(DummySigner):
    def __init__(self) -> None:
        super().__init__()
        self.failures_left = 1

    async def sign_transaction(self, request: TransactionRequest, chain_id: int) -> HexStr:
        if self.failures_left:
            self.failures_left -= 1
            raise ConnectionError("signing service unavailable")
        return await super().sign_transaction(request, chain_id)


@pytest.mark.asyncio
async def test_concurrent_sign_of_same_prepared_runs_signer_once() -> None:
    signer = SlowSigner()
    client = ContractClient(ERC20_ABI, DummyEndpoint(1), signer=signer)
    prepared = _prepared(1)

    outcomes = await asyncio.gather(
        client.sign(prepared), client.sign(prepared), return_exceptions=True
    )

    assert len(signer.requests) == 1
    assert sum(isinstance(item, SignedTransaction) for item in outcomes) == 1
    assert sum(isinstance(item, TransactionConsumed) for item in outcomes) == 1


@pytest.mark.asyncio
async def test_failed_sign_can_be_retried() -> None:
    signer = FlakySigner()
    client = ContractClient(ERC20_ABI, DummyEndpoint(1), signer=signer)
    prepared = _prepared(1)

    with pytest.raises(ConnectionError):
        await client.sign(prepared)
    assert not prepared.signed

    signed = await client.sign(prepared)

    assert signed.serialized == "0x02f8"
    assert prepared.signed


@pytest.mark.asyncio
async def test_concurrent_send_of_same_signed_broadcasts_once() -> None:
    class SlowBroadcastEndpoint(DummyEndpoint):
        async def send_raw_transaction(self, serialized: HexStr) -> HexStr:
            await asyncio.sleep(0.01)
            return await super().send_raw_transaction(serialized)

    endpoint = SlowBroadcastEndpoint(1)
    client = ContractClient(ERC20_ABI, endpoint)
    signed = SignedTransaction(serialized=HexStr("0x02aa"), chain_id=1)

    outcomes = await asyncio.gather(
        client.send(signed), client.send(signed), return_exceptions=True
    )

    assert endpoint.broadcasts == ["0x02aa"]
    assert outcomes.count("0x" + "ab" * 32) == 1
    assert sum(isinstance(item, TransactionConsumed) for item in outcomes) == 1


@pytest.mark.asyncio
async def test_failed_send_can_be_retried() -> None:
    class FlakyBroadcastEndpoint(DummyEndpoint):
        attempts = 0

        async def send_raw_transaction(self, serialized: HexStr) -> HexStr:
            self.attempts += 1
            if self.attempts == 1:
                raise ConnectionError("node unreachable")
            return await super().send_raw_transaction(serialized)

    client = ContractClient(ERC20_ABI, FlakyBroadcastEndpoint(1))
    signed = SignedTransaction(serialized=HexStr("0x02aa"), chain_id=1)

    with pytest.raises(ConnectionError):
        await client.send(signed)

    assert await client.send(signed) == "0x" + "ab" * 32
    assert signed.sent


@pytest.mark.asyncio
async def test_sequential_branch_decodes_reverts_like_multicall() -> None:
    def _revert(address: str, name: str, args: Sequence[Any]) -> Any:
        raise ContractLogicError("execution reverted", data="0xdeadbeef")

    client = ContractClient(
        ERC20_ABI,
        DummyEndpoint(1, call_handler=_revert),
        error_decoder=_insufficient_balance_decoder(),
    )

    result = await client.read_batch([BatchCall(TOKEN_A, "totalSupply")])

    failure = result.results[0]
    assert isinstance(failure, CallFailure)
    assert isinstance(failure.error, InsufficientBalance)
    assert isinstance(failure.error.__cause__, ContractLogicError)


@pytest.mark.asyncio
async def test_sequential_branch_keeps_unrecognised_revert() -> None:
    revert = ContractLogicError("execution reverted", data="0x12345678")

    def _revert(address: str, name: str, args: Sequence[Any]) -> Any:
        raise revert

    client = ContractClient(
        ERC20_ABI,
        DummyEndpoint(1, call_handler=_revert),
        error_decoder=_insufficient_balance_decoder(),
    )

    result = await client.read_batch([BatchCall(TOKEN_A, "totalSupply")])

    assert result.failures[0][1] is revert
