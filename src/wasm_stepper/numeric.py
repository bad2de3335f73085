"""Numeric operation semantics for i32, i64, f32 and f64 values.

Integers are carried as Python ints in their signed form and floats as
Python floats; f32 results are rounded to single precision. The two
families never mix.
"""

import math

import numpy as np

from . import operations as ops
from .errors import TrapError, TypeMismatchError, UnimplementedError
from .types import (
    FLOAT_TYPES,
    INTEGER_TYPES,
    VALTYPE_F32,
    VALTYPE_I64,
    Number,
    ValType,
    zero_value,
)


# Masks for 32/64-bit values
MASK_32 = 0xFFFFFFFF
MASK_64 = 0xFFFFFFFFFFFFFFFF


def to_i32(value: int) -> int:
    """Convert to signed 32-bit integer."""
    value = value & MASK_32
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def to_u32(value: int) -> int:
    """Convert to unsigned 32-bit integer."""
    return value & MASK_32


def to_i64(value: int) -> int:
    """Convert to signed 64-bit integer."""
    value = value & MASK_64
    if value >= 0x8000000000000000:
        value -= 0x10000000000000000
    return value


def to_u64(value: int) -> int:
    """Convert to unsigned 64-bit integer."""
    return value & MASK_64


# f64 mantissa bits that have no f32 counterpart
F32_MANTISSA_SHIFT = 29
F32_QUIET_BIT = 0x400000


def float_bits(value: float) -> int:
    """The IEEE 754 bit pattern of a double."""
    return np.array([value], dtype="<f8").view("<u8")[0].item()


def float_from_bits(bits: int) -> float:
    return np.array([bits], dtype="<u8").view("<f8")[0].item()


def f32_nan_bits(value: float) -> int:
    """The f32 bit pattern of a NaN double, keeping sign and payload."""
    bits = float_bits(value)
    mantissa = (bits >> F32_MANTISSA_SHIFT) & 0x7FFFFF
    return ((bits >> 63) << 31) | 0x7F800000 | (mantissa or F32_QUIET_BIT)


def widen_f32_nan(bits: int) -> float:
    """The double holding an f32 NaN pattern without quieting it."""
    sign = (bits >> 31) & 1
    mantissa = bits & 0x7FFFFF
    return float_from_bits(
        (sign << 63) | (0x7FF << 52) | (mantissa << F32_MANTISSA_SHIFT)
    )


def round_f32(value: float) -> float:
    """Round a float to the nearest single-precision value.

    NaNs are narrowed bitwise since a hardware conversion would set the
    quiet bit.
    """
    if math.isnan(value):
        return widen_f32_nan(f32_nan_bits(value))
    with np.errstate(over="ignore"):
        return float(np.float32(value))


def is_float(value: Number) -> bool:
    return isinstance(value, float)


def evaluate(
    operation: str, valtype: ValType, first: Number, second: Number | None = None
) -> Number:
    """Apply a numeric operation to one or two operands.

    Unary operations ignore ``second``; when it is not given a zero of the
    matching representation is used. Comparisons produce 1 or 0.
    """
    if second is None:
        second = zero_value(valtype)
    if is_float(first) != is_float(second):
        raise TypeMismatchError(
            f"Types do not match: {type(first).__name__} and {type(second).__name__}"
        )
    if is_float(first) != (valtype in FLOAT_TYPES):
        raise TypeMismatchError(
            f"Types do not match: expected {valtype}, got {type(first).__name__}"
        )

    if valtype in INTEGER_TYPES:
        return _evaluate_integer(operation, valtype == VALTYPE_I64, first, second)
    if valtype in FLOAT_TYPES:
        result = _evaluate_float(operation, valtype, first, second)
        if valtype == VALTYPE_F32 and is_float(result):
            return round_f32(result)
        return result
    raise UnimplementedError(f"{valtype}.{operation}")


def count_leading_zeros_32(value: int) -> int:
    return 32 - to_u32(value).bit_length()


def count_leading_zeros_64(value: int) -> int:
    """Leading zeros of a 64-bit value from the clz of its two halves."""
    value = to_u64(value)
    high = value >> 32
    if high:
        return count_leading_zeros_32(high)
    return 32 + count_leading_zeros_32(value & MASK_32)


def count_trailing_zeros(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value == 0:
        return bits
    count = 0
    while (value & 1) == 0:
        count += 1
        value >>= 1
    return count


def population_count(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    count = 0
    while value:
        count += value & 1
        value >>= 1
    return count


def rotate_left(value: int, amount: int, bits: int) -> int:
    mask = (1 << bits) - 1
    shift = amount & (bits - 1)
    value &= mask
    return ((value << shift) | (value >> (bits - shift))) & mask


def rotate_right(value: int, amount: int, bits: int) -> int:
    mask = (1 << bits) - 1
    shift = amount & (bits - 1)
    value &= mask
    return ((value >> shift) | (value << (bits - shift))) & mask


def _evaluate_integer(op: str, is_64bit: bool, a: int, b: int) -> int:
    bits = 64 if is_64bit else 32
    signed = to_i64 if is_64bit else to_i32
    unsigned = to_u64 if is_64bit else to_u32

    # Arithmetic
    if op == ops.ADD:
        return signed(a + b)
    if op == ops.SUB:
        return signed(a - b)
    if op == ops.MUL:
        return signed(a * b)
    if op == ops.DIV_S:
        a, b = signed(a), signed(b)
        if b == 0:
            raise TrapError("integer divide by zero")
        if a == -(1 << (bits - 1)) and b == -1:
            raise TrapError("integer overflow")
        # Python division truncates toward negative infinity, we need toward zero
        result = abs(a) // abs(b)
        if (a < 0) != (b < 0):
            result = -result
        return signed(result)
    if op == ops.DIV_U:
        if unsigned(b) == 0:
            raise TrapError("integer divide by zero")
        return signed(unsigned(a) // unsigned(b))
    if op == ops.REM_S:
        a, b = signed(a), signed(b)
        if b == 0:
            raise TrapError("integer divide by zero")
        # Python's % differs from C's for negative numbers
        result = abs(a) % abs(b)
        if a < 0:
            result = -result
        return signed(result)
    if op == ops.REM_U:
        if unsigned(b) == 0:
            raise TrapError("integer divide by zero")
        return signed(unsigned(a) % unsigned(b))

    # Bitwise
    if op == ops.AND:
        return signed(unsigned(a) & unsigned(b))
    if op == ops.OR:
        return signed(unsigned(a) | unsigned(b))
    if op == ops.XOR:
        return signed(unsigned(a) ^ unsigned(b))
    if op == ops.SHL:
        return signed(unsigned(a) << (unsigned(b) & (bits - 1)))
    if op == ops.SHR_S:
        return signed(signed(a) >> (unsigned(b) & (bits - 1)))
    if op == ops.SHR_U:
        return signed(unsigned(a) >> (unsigned(b) & (bits - 1)))
    if op == ops.ROTL:
        return signed(rotate_left(a, unsigned(b), bits))
    if op == ops.ROTR:
        return signed(rotate_right(a, unsigned(b), bits))
    if op == ops.CLZ:
        if is_64bit:
            return count_leading_zeros_64(a)
        return count_leading_zeros_32(a)
    if op == ops.CTZ:
        return count_trailing_zeros(a, bits)
    if op == ops.POPCNT:
        return population_count(a, bits)

    # Comparison
    if op == ops.EQZ:
        return 1 if signed(a) == 0 else 0
    if op == ops.EQ:
        return 1 if signed(a) == signed(b) else 0
    if op == ops.NE:
        return 1 if signed(a) != signed(b) else 0
    if op == ops.LT_S:
        return 1 if signed(a) < signed(b) else 0
    if op == ops.LT_U:
        return 1 if unsigned(a) < unsigned(b) else 0
    if op == ops.GT_S:
        return 1 if signed(a) > signed(b) else 0
    if op == ops.GT_U:
        return 1 if unsigned(a) > unsigned(b) else 0
    if op == ops.LE_S:
        return 1 if signed(a) <= signed(b) else 0
    if op == ops.LE_U:
        return 1 if unsigned(a) <= unsigned(b) else 0
    if op == ops.GE_S:
        return 1 if signed(a) >= signed(b) else 0
    if op == ops.GE_U:
        return 1 if unsigned(a) >= unsigned(b) else 0

    raise UnimplementedError(f"i{bits}.{op}")


def _float_min(a: float, b: float) -> float:
    if math.isnan(a) or math.isnan(b):
        return math.nan
    if a == b == 0.0:
        # -0.0 is smaller than 0.0
        return a if np.signbit(a) else b
    return min(a, b)


def _float_max(a: float, b: float) -> float:
    if math.isnan(a) or math.isnan(b):
        return math.nan
    if a == b == 0.0:
        return b if np.signbit(a) else a
    return max(a, b)


def _evaluate_float(op: str, valtype: ValType, a: float, b: float) -> Number:
    op = ops.FLOAT_SPELLING.get(op, op)

    # Arithmetic
    if op == ops.ADD:
        return a + b
    if op == ops.SUB:
        return a - b
    if op == ops.MUL:
        return a * b
    if op == ops.DIV:
        with np.errstate(divide="ignore", invalid="ignore"):
            return float(np.float64(a) / np.float64(b))

    # Comparison
    if op == ops.EQ:
        return 1 if a == b else 0
    if op == ops.NE:
        return 1 if a != b else 0
    if op == ops.LT:
        return 1 if a < b else 0
    if op == ops.GT:
        return 1 if a > b else 0
    if op == ops.LE:
        return 1 if a <= b else 0
    if op == ops.GE:
        return 1 if a >= b else 0

    # Float
    if op == ops.ABS:
        return math.fabs(a)
    if op == ops.NEG:
        return -a
    if op == ops.CEIL:
        return float(np.ceil(a))
    if op == ops.FLOOR:
        return float(np.floor(a))
    if op == ops.TRUNC:
        return float(np.trunc(a))
    if op == ops.NEAREST:
        # Round half to even
        return float(np.rint(a))
    if op == ops.SQRT:
        with np.errstate(invalid="ignore"):
            return float(np.sqrt(a))
    if op == ops.MIN:
        return _float_min(a, b)
    if op == ops.MAX:
        return _float_max(a, b)
    if op == ops.COPYSIGN:
        return math.copysign(a, b)

    raise UnimplementedError(f"{valtype}.{op}")
