"""Value conversions and literal decoding.

Reinterpretations and literal decoding go through a fixed eight byte
scratch buffer: the source is written with its own bit layout and read back
with the destination's. Every other conversion is a numeric one.
"""

import math

import numpy as np

from . import operations as ops
from .errors import DecodeError, TrapError, UnimplementedError, UnreachableError
from .numeric import (
    f32_nan_bits,
    is_float,
    round_f32,
    to_i32,
    to_i64,
    to_u32,
    to_u64,
    widen_f32_nan,
)
from .types import (
    FLOAT_TYPES,
    VALTYPE_F32,
    VALTYPE_F64,
    VALTYPE_I32,
    VALTYPE_I64,
    VALTYPE_V128,
    Number,
    ValType,
)


# Little-endian views of each value type
SIGNED_DTYPES = {
    VALTYPE_I32: "<i4",
    VALTYPE_I64: "<i8",
    VALTYPE_F32: "<f4",
    VALTYPE_F64: "<f8",
}
UNSIGNED_DTYPES = {VALTYPE_I32: "<u4", VALTYPE_I64: "<u8"}
F32_DTYPE = SIGNED_DTYPES[VALTYPE_F32]


class ScratchBuffer:
    """An eight byte buffer written and read through typed views."""

    SIZE = 8

    def __init__(self) -> None:
        self.data = np.zeros(self.SIZE, dtype=np.uint8)

    def load(self, raw: bytes) -> None:
        """Fill the buffer from raw bytes, zero-padding on the right."""
        if len(raw) > self.SIZE:
            raise DecodeError(f"Literal has {len(raw)} bytes, at most 8 supported")
        self.data[:] = 0
        self.data[: len(raw)] = np.frombuffer(bytes(raw), dtype=np.uint8)

    def write(self, value: Number, dtype: str) -> None:
        self.data[:] = 0
        if dtype == F32_DTYPE and math.isnan(value):
            value, dtype = f32_nan_bits(value), "<u4"
        view = self.data[: np.dtype(dtype).itemsize].view(dtype)
        with np.errstate(over="ignore"):
            view[0] = value

    def read(self, dtype: str) -> Number:
        if dtype == F32_DTYPE:
            bits = self.read("<u4")
            if bits & 0x7F800000 == 0x7F800000 and bits & 0x7FFFFF:
                return widen_f32_nan(bits)
        return self.data[: np.dtype(dtype).itemsize].view(dtype)[0].item()

    def tobytes(self) -> bytes:
        return self.data.tobytes()


def decode_literal(valtype: ValType, raw: bytes) -> Number:
    """Read a constant from its little-endian bytes according to its type."""
    if valtype == VALTYPE_V128:
        raise UnimplementedError("v128.const")
    dtype = SIGNED_DTYPES.get(valtype)
    if dtype is None:
        raise DecodeError(f"Unknown literal type: {valtype!r}")
    buffer = ScratchBuffer()
    buffer.load(raw)
    return buffer.read(dtype)


def encode_literal(valtype: ValType, value: Number) -> bytes:
    """Inverse of decode_literal, always producing eight bytes."""
    buffer = ScratchBuffer()
    if valtype in FLOAT_TYPES:
        buffer.write(float(value), SIGNED_DTYPES[valtype])
    elif valtype == VALTYPE_I32:
        buffer.write(to_u32(value), UNSIGNED_DTYPES[valtype])
    elif valtype == VALTYPE_I64:
        buffer.write(to_u64(value), UNSIGNED_DTYPES[valtype])
    else:
        raise UnimplementedError(f"{valtype}.const")
    return buffer.tobytes()


def reinterpret(value: Number, source: ValType, target: ValType) -> Number:
    """Reuse the bit pattern of ``value`` as a value of ``target`` type."""
    buffer = ScratchBuffer()
    if source == VALTYPE_I32:
        buffer.write(to_u32(value), UNSIGNED_DTYPES[source])
    elif source == VALTYPE_I64:
        buffer.write(to_u64(value), UNSIGNED_DTYPES[source])
    else:
        buffer.write(value, SIGNED_DTYPES[source])
    return buffer.read(SIGNED_DTYPES[target])


def truncate(value: float, bits: int, signed: bool) -> int:
    """Truncate a float toward zero into a signed or unsigned integer."""
    if math.isnan(value):
        raise TrapError("invalid conversion to integer")
    if math.isinf(value):
        raise TrapError("integer overflow")
    result = math.trunc(value)
    if signed:
        low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        low, high = 0, (1 << bits) - 1
    if not low <= result <= high:
        raise TrapError("integer overflow")
    return to_i64(result) if bits == 64 else to_i32(result)


def parse_conversion(op: str) -> tuple[ValType, str, ValType, bool]:
    """Split a conversion name into (target, verb, source, signed).

    >>> parse_conversion("i64.extend_i32_u")
    ('i64', 'extend', 'i32', False)
    """
    target, _, rest = op.partition(".")
    verb, source, *suffix = rest.split("_")
    return target, verb, source, suffix == ["s"]


def convert(op: str, value: Number) -> Number:
    """Apply a named conversion to a value."""
    if op not in ops.CONVERSION_OPERATIONS:
        raise UnreachableError(f"Unknown conversion: {op}")
    target, verb, source, signed = parse_conversion(op)
    if is_float(value) != (source in FLOAT_TYPES):
        raise UnreachableError(
            f"Cannot apply {op} to a {type(value).__name__} value"
        )

    if verb == "reinterpret":
        return reinterpret(value, source, target)
    if verb == "wrap":
        return to_i32(value)
    if verb == "extend":
        if signed:
            return to_i64(to_i32(value))
        return to_u32(value)
    if verb == "trunc":
        return truncate(value, 64 if target == VALTYPE_I64 else 32, signed)
    if verb == "convert":
        if source == VALTYPE_I64:
            number = to_i64(value) if signed else to_u64(value)
        else:
            number = to_i32(value) if signed else to_u32(value)
        if target == VALTYPE_F32:
            # Round once, straight from the integer
            integer = np.int64(number) if signed else np.uint64(number)
            return float(np.float32(integer))
        return float(number)
    if verb == "demote":
        return round_f32(value)
    if verb == "promote":
        return float(value)

    raise UnreachableError(f"Unknown conversion: {op}")
