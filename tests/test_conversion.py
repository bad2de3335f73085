"""Tests for literal decoding and value conversions."""

import math

import pytest
from wasm_stepper import operations as ops
from wasm_stepper.conversion import (
    ScratchBuffer,
    convert,
    decode_literal,
    encode_literal,
    parse_conversion,
    reinterpret,
)
from wasm_stepper.errors import (
    DecodeError,
    TrapError,
    UnimplementedError,
    UnreachableError,
)
from wasm_stepper.numeric import round_f32, to_i64


class TestDecodeLiteral:
    """Test reading constants from little-endian bytes."""

    def test_i32_one(self):
        assert decode_literal("i32", bytes([1, 0, 0, 0])) == 1

    def test_i32_reads_only_low_bytes(self):
        assert decode_literal("i32", bytes([0xFF] * 4 + [0x12] * 4)) == -1

    def test_i64(self):
        raw = (1 << 40).to_bytes(8, "little")
        assert decode_literal("i64", raw) == 1 << 40
        assert decode_literal("i64", bytes([0xFF] * 8)) == -1

    def test_floats(self):
        assert decode_literal("f32", bytes([0x00, 0x00, 0xC0, 0x3F])) == 1.5
        assert decode_literal("f64", (0x4004000000000000).to_bytes(8, "little")) == 2.5

    def test_short_input_is_zero_padded(self):
        assert decode_literal("i64", bytes([2])) == 2

    def test_v128_is_unimplemented(self):
        with pytest.raises(UnimplementedError, match="v128"):
            decode_literal("v128", bytes(8))

    def test_unknown_type(self):
        with pytest.raises(DecodeError, match="Unknown literal type"):
            decode_literal("funcref", bytes(8))

    def test_too_many_bytes(self):
        with pytest.raises(DecodeError):
            decode_literal("i64", bytes(9))

    def test_encode_is_inverse(self):
        assert encode_literal("i32", -1) == bytes([0xFF] * 4 + [0] * 4)
        assert decode_literal("f64", encode_literal("f64", -0.5)) == -0.5


class TestScratchBuffer:
    def test_write_then_read_other_view(self):
        buffer = ScratchBuffer()
        buffer.write(1.0, "<f4")
        assert buffer.read("<u4") == 0x3F800000
        assert buffer.tobytes()[4:] == bytes(4)


class TestReinterpret:
    """Test bit-pattern reuse between integers and floats."""

    def test_float_to_int(self):
        assert convert(ops.I32_REINTERPRET_F32, 1.0) == 0x3F800000
        assert convert(ops.I64_REINTERPRET_F64, -2.0) == -0x4000000000000000

    def test_int_to_float(self):
        assert convert(ops.F32_REINTERPRET_I32, 0x3F800000) == 1.0
        assert convert(ops.F64_REINTERPRET_I64, 0x4004000000000000) == 2.5

    @pytest.mark.parametrize("bits", [0x7FA00000, 0x7FC00001, -0x005FFFFF])
    def test_f32_nan_round_trip_keeps_bits(self, bits):
        value = convert(ops.F32_REINTERPRET_I32, bits)
        assert math.isnan(value)
        assert convert(ops.I32_REINTERPRET_F32, value) == bits

    def test_f32_nan_literal_keeps_bits(self):
        raw = bytes([0x01, 0x00, 0xA0, 0x7F]) + bytes(4)
        assert encode_literal("f32", decode_literal("f32", raw)) == raw

    def test_demote_keeps_nan_payload(self):
        value = convert(ops.F64_REINTERPRET_I64, 0x7FF4000000000000)
        demoted = convert(ops.F32_DEMOTE_F64, value)
        assert convert(ops.I32_REINTERPRET_F32, demoted) == 0x7FA00000

    def test_f64_nan_round_trip_keeps_bits(self):
        value = convert(ops.F64_REINTERPRET_I64, 0x7FF0000000000001)
        assert convert(ops.I64_REINTERPRET_F64, value) == 0x7FF0000000000001

    def test_negative_int_keeps_bits(self):
        # 0xBF800000 is -1.0 as f32
        assert reinterpret(-0x40800000, "i32", "f32") == -1.0


class TestNumericConversions:
    """Test wrapping, extension, truncation and rounding conversions."""

    def test_wrap(self):
        assert convert(ops.I32_WRAP_I64, 0x1_FFFF_FFFF) == -1
        assert convert(ops.I32_WRAP_I64, 0x1_0000_0005) == 5

    def test_extend(self):
        assert convert(ops.I64_EXTEND_I32_S, -1) == -1
        assert convert(ops.I64_EXTEND_I32_U, -1) == 0xFFFFFFFF

    def test_truncate(self):
        assert convert(ops.I32_TRUNC_F64_S, -3.9) == -3
        assert convert(ops.I32_TRUNC_F32_U, 3.9) == 3
        assert convert(ops.I64_TRUNC_F64_S, 1e15) == 10**15

    def test_truncate_unsigned_i32_keeps_bits(self):
        assert convert(ops.I32_TRUNC_F64_U, 4294967295.0) == -1

    def test_truncate_nan_traps(self):
        with pytest.raises(TrapError, match="invalid conversion to integer"):
            convert(ops.I32_TRUNC_F64_S, math.nan)

    @pytest.mark.parametrize(
        "op,value",
        [
            (ops.I32_TRUNC_F64_S, 2147483648.0),
            (ops.I32_TRUNC_F64_U, -1.0),
            (ops.I64_TRUNC_F64_S, math.inf),
        ],
    )
    def test_truncate_out_of_range_traps(self, op, value):
        with pytest.raises(TrapError, match="integer overflow"):
            convert(op, value)

    def test_convert_integers_to_floats(self):
        assert convert(ops.F64_CONVERT_I32_S, -1) == -1.0
        assert convert(ops.F64_CONVERT_I32_U, -1) == 4294967295.0
        assert convert(ops.F32_CONVERT_I32_S, 16777217) == 16777216.0
        assert convert(ops.F64_CONVERT_I64_U, -1) == float(2**64 - 1)

    def test_i64_to_f32_rounds_once(self):
        # Rounding through f64 first would land on 2**60
        assert convert(ops.F32_CONVERT_I64_S, 2**60 + 2**36 + 1) == float(2**60 + 2**37)
        assert convert(ops.F32_CONVERT_I64_S, -(2**60 + 2**36 + 1)) == -float(
            2**60 + 2**37
        )

    def test_unsigned_i64_to_f32_rounds_once(self):
        value = to_i64(2**63 + 2**39 + 1)
        assert convert(ops.F32_CONVERT_I64_U, value) == float(2**63 + 2**40)

    def test_demote_and_promote(self):
        assert convert(ops.F32_DEMOTE_F64, 0.1) == round_f32(0.1)
        assert convert(ops.F64_PROMOTE_F32, 1.5) == 1.5

    def test_wrong_source_family(self):
        with pytest.raises(UnreachableError, match="Cannot apply"):
            convert(ops.I32_WRAP_I64, 1.0)
        with pytest.raises(UnreachableError):
            convert(ops.F32_DEMOTE_F64, 1)

    def test_unknown_conversion(self):
        with pytest.raises(UnreachableError, match="Unknown conversion"):
            convert("i32.frobnicate", 1)


class TestParseConversion:
    def test_parse(self):
        assert parse_conversion("i32.trunc_f64_s") == ("i32", "trunc", "f64", True)
        assert parse_conversion("f32.demote_f64") == ("f32", "demote", "f64", False)
