"""chain-utils - typed multichain contract access layer.

This library batches contract reads (through Multicall3 when available), runs
write transactions through a prepare/sign/send pipeline with typed revert
decoding, and fans both out across many chains with per-chain failure
isolation.
"""

from .base import ChainEndpoint, Signer
from .client import (
    ChainInput,
    ContractClient,
    MultichainClient,
    MultichainContract,
    create_multichain_client,
)
from .config import ChainTransportConfig, MultichainContractOptions
from .constants import MULTICALL3_ADDRESS, PanicCode
from .decoders import (
    AbiErrorDecoder,
    CompositeErrorDecoder,
    ErrorDecoder,
    RevertStringDecoder,
    SelectorErrorDecoder,
    extract_revert_data,
)
from .evm import LocalSigner, Web3ChainEndpoint
from .exceptions import (
    AccountRequired,
    ChainMismatch,
    ChainUtilsFault,
    ContractReverted,
    DuplicateChainId,
    MulticallBatchFailure,
    MulticallNotSupported,
    MulticallPartialFailure,
    PanicReverted,
    RpcFailure,
    SignerRequired,
    TransactionConsumed,
    UnsupportedChain,
    ValidationError,
)
from .types import (
    BatchCall,
    BatchResult,
    CallFailure,
    CallOutcome,
    CallSuccess,
    ChainFailure,
    CrossChainBatchResult,
    CrossChainCall,
    FeeEstimate,
    PreparedTransaction,
    SignedTransaction,
    TransactionRequest,
    WriteOptions,
)
from .utils import format_decoded_error_args

__version__ = "0.1.0"

__all__ = [
    # Clients
    "ContractClient",
    "MultichainClient",
    "MultichainContract",
    "create_multichain_client",
    # Capabilities
    "ChainEndpoint",
    "Signer",
    "Web3ChainEndpoint",
    "LocalSigner",
    # Configuration
    "ChainInput",
    "ChainTransportConfig",
    "MultichainContractOptions",
    "MULTICALL3_ADDRESS",
    "PanicCode",
    # Decoders
    "ErrorDecoder",
    "CompositeErrorDecoder",
    "RevertStringDecoder",
    "AbiErrorDecoder",
    "SelectorErrorDecoder",
    "extract_revert_data",
    # Types
    "BatchCall",
    "CrossChainCall",
    "CallSuccess",
    "CallFailure",
    "CallOutcome",
    "BatchResult",
    "ChainFailure",
    "CrossChainBatchResult",
    "FeeEstimate",
    "TransactionRequest",
    "PreparedTransaction",
    "SignedTransaction",
    "WriteOptions",
    # Exceptions
    "ChainUtilsFault",
    "ValidationError",
    "DuplicateChainId",
    "UnsupportedChain",
    "RpcFailure",
    "MulticallNotSupported",
    "MulticallBatchFailure",
    "MulticallPartialFailure",
    "ChainMismatch",
    "SignerRequired",
    "AccountRequired",
    "TransactionConsumed",
    "ContractReverted",
    "PanicReverted",
    # Utility functions
    "format_decoded_error_args",
]
