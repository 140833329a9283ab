"""Constants used across the chain-utils access layer."""

from enum import IntEnum

MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

AGGREGATE3_SIGNATURE = "aggregate3((address,bool,bytes)[])"
AGGREGATE3_OUTPUT_TYPES = ["(bool,bytes)[]"]

ERROR_STRING_SELECTOR = "0x08c379a0"  # Error(string)
PANIC_SELECTOR = "0x4e487b71"  # Panic(uint256)


class PanicCode(IntEnum):
    """Solidity panic codes emitted through ``Panic(uint256)``."""

    GENERIC = 0x00
    ASSERTION_FAILED = 0x01
    ARITHMETIC_OVERFLOW = 0x11
    DIVISION_BY_ZERO = 0x12
    INVALID_ENUM_VALUE = 0x21
    INVALID_STORAGE_ENCODING = 0x22
    EMPTY_ARRAY_POP = 0x31
    ARRAY_OUT_OF_BOUNDS = 0x32
    OUT_OF_MEMORY = 0x41
    UNINITIALIZED_FUNCTION = 0x51


PANIC_REASONS = {
    PanicCode.GENERIC: "generic compiler panic",
    PanicCode.ASSERTION_FAILED: "assertion failed",
    PanicCode.ARITHMETIC_OVERFLOW: "arithmetic overflow or underflow",
    PanicCode.DIVISION_BY_ZERO: "division or modulo by zero",
    PanicCode.INVALID_ENUM_VALUE: "invalid enum value",
    PanicCode.INVALID_STORAGE_ENCODING: "invalid storage byte array encoding",
    PanicCode.EMPTY_ARRAY_POP: "pop on empty array",
    PanicCode.ARRAY_OUT_OF_BOUNDS: "array index out of bounds",
    PanicCode.OUT_OF_MEMORY: "memory allocation overflow",
    PanicCode.UNINITIALIZED_FUNCTION: "call to zero-initialized function",
}
