"""Operation names and their serialized encodings.

Operation names follow the WebAssembly text format mnemonics without the
type prefix (``add``, ``shr_u``, ``lt_s``...). The ``*_ENCODING`` tables map
the names used by the compiler's serialized output onto them.
"""

# Simple instructions
UNREACHABLE = "unreachable"
NOP = "nop"
RETURN = "return"
DROP = "drop"

SIMPLE_ENCODING = {
    "Unreachable": UNREACHABLE,
    "Nop": NOP,
    "Return": RETURN,
    "Drop": DROP,
}

# Block kinds
BLOCK = "block"
IF = "if"
LOOP = "loop"
ELSE = "else"
END = "end"

BLOCK_KIND_ENCODING = {
    "Block": BLOCK,
    "If": IF,
    "Loop": LOOP,
    "Else": ELSE,
    "End": END,
}

# Data instructions
LOCAL_GET = "local.get"
GLOBAL_GET = "global.get"
LOCAL_SET = "local.set"
GLOBAL_SET = "global.set"
LOCAL_TEE = "local.tee"
MEMORY_SIZE = "memory.size"
MEMORY_GROW = "memory.grow"

DATA_ENCODING = {
    "GetLocal": LOCAL_GET,
    "GetGlobal": GLOBAL_GET,
    "SetLocal": LOCAL_SET,
    "SetGlobal": GLOBAL_SET,
    "TeeLocal": LOCAL_TEE,
    "GetMemorySize": MEMORY_SIZE,
    "SetMemorySize": MEMORY_GROW,
}

# Arithmetic
ADD = "add"
SUB = "sub"
MUL = "mul"
DIV = "div"  # float division
DIV_S = "div_s"
DIV_U = "div_u"
REM_S = "rem_s"
REM_U = "rem_u"

ARITHMETIC_OPERATIONS = (ADD, SUB, MUL, DIV, DIV_S, DIV_U, REM_S, REM_U)

ARITHMETIC_ENCODING = {
    "Addition": ADD,
    "Subtraction": SUB,
    "Multiplication": MUL,
    "DivisionSigned": DIV_S,
    "DivisonSigned": DIV_S,
    "DivisionUnsigned": DIV_U,
    "DivisonUnsigned": DIV_U,
    "RemainderSigned": REM_S,
    "RemainderUnsigned": REM_U,
}

# Bitwise
AND = "and"
OR = "or"
XOR = "xor"
SHL = "shl"
SHR_S = "shr_s"
SHR_U = "shr_u"
ROTL = "rotl"
ROTR = "rotr"
CLZ = "clz"
CTZ = "ctz"
POPCNT = "popcnt"

BITWISE_UNARY = (CLZ, CTZ, POPCNT)
BITWISE_OPERATIONS = (AND, OR, XOR, SHL, SHR_S, SHR_U, ROTL, ROTR) + BITWISE_UNARY

BITWISE_ENCODING = {
    "CountLeadingZero": CLZ,
    "CountTrailingZero": CTZ,
    "CountNonZero": POPCNT,
    "And": AND,
    "Or": OR,
    "Xor": XOR,
    "ShiftLeft": SHL,
    "ShiftRightSigned": SHR_S,
    "ShiftRightUnsigned": SHR_U,
    "RotateLeft": ROTL,
    "RotateRight": ROTR,
}

# Comparison
EQZ = "eqz"
EQ = "eq"
NE = "ne"
LT_S = "lt_s"
LT_U = "lt_u"
GT_S = "gt_s"
GT_U = "gt_u"
LE_S = "le_s"
LE_U = "le_u"
GE_S = "ge_s"
GE_U = "ge_u"
# Float spellings
LT = "lt"
GT = "gt"
LE = "le"
GE = "ge"

COMPARISON_UNARY = (EQZ,)
COMPARISON_OPERATIONS = (
    EQZ, EQ, NE, LT_S, LT_U, GT_S, GT_U, LE_S, LE_U, GE_S, GE_U, LT, GT, LE, GE,
)

COMPARISON_ENCODING = {
    "EqualZero": EQZ,
    "Equal": EQ,
    "NotEqual": NE,
    "LessThanSigned": LT_S,
    "LessThenSigned": LT_S,
    "LessThanUnsigned": LT_U,
    "LessThenUnsigned": LT_U,
    "GreaterThanSigned": GT_S,
    "GreaterThenSigned": GT_S,
    "GreaterThanUnsigned": GT_U,
    "GreaterThenUnsigned": GT_U,
    "LessThanOrEqualToSigned": LE_S,
    "LessThenOrEqualToSigned": LE_S,
    "LessThanOrEqualToUnsigned": LE_U,
    "LessThenOrEqualToUnsigned": LE_U,
    "GreaterThanOrEqualToSigned": GE_S,
    "GreaterThenOrEqualToSigned": GE_S,
    "GreaterThanOrEqualToUnsigned": GE_U,
    "GreaterThenOrEqualToUnsigned": GE_U,
}

# Float
ABS = "abs"
NEG = "neg"
CEIL = "ceil"
FLOOR = "floor"
TRUNC = "trunc"
NEAREST = "nearest"
SQRT = "sqrt"
MIN = "min"
MAX = "max"
COPYSIGN = "copysign"

FLOAT_BINARY = (MIN, MAX, COPYSIGN)
FLOAT_OPERATIONS = (ABS, NEG, CEIL, FLOOR, TRUNC, NEAREST, SQRT) + FLOAT_BINARY

FLOAT_ENCODING = {
    "AbsoluteValue": ABS,
    "Negation": NEG,
    "Ceiling": CEIL,
    "Floor": FLOOR,
    "Truncate": TRUNC,
    "Nearest": NEAREST,
    "SquareRoot": SQRT,
    "Minimum": MIN,
    "Maximum": MAX,
    "CopySign": COPYSIGN,
}

# Float operands use the plain spelling of these operations
FLOAT_SPELLING = {DIV_S: DIV, LT_S: LT, GT_S: GT, LE_S: LE, GE_S: GE}

# Conversions
I32_WRAP_I64 = "i32.wrap_i64"
I32_TRUNC_F32_S = "i32.trunc_f32_s"
I32_TRUNC_F32_U = "i32.trunc_f32_u"
I32_TRUNC_F64_S = "i32.trunc_f64_s"
I32_TRUNC_F64_U = "i32.trunc_f64_u"
I64_TRUNC_F32_S = "i64.trunc_f32_s"
I64_TRUNC_F32_U = "i64.trunc_f32_u"
I64_TRUNC_F64_S = "i64.trunc_f64_s"
I64_TRUNC_F64_U = "i64.trunc_f64_u"
I64_EXTEND_I32_S = "i64.extend_i32_s"
I64_EXTEND_I32_U = "i64.extend_i32_u"
F32_CONVERT_I32_S = "f32.convert_i32_s"
F32_CONVERT_I32_U = "f32.convert_i32_u"
F32_CONVERT_I64_S = "f32.convert_i64_s"
F32_CONVERT_I64_U = "f32.convert_i64_u"
F64_CONVERT_I32_S = "f64.convert_i32_s"
F64_CONVERT_I32_U = "f64.convert_i32_u"
F64_CONVERT_I64_S = "f64.convert_i64_s"
F64_CONVERT_I64_U = "f64.convert_i64_u"
F32_DEMOTE_F64 = "f32.demote_f64"
F64_PROMOTE_F32 = "f64.promote_f32"
I32_REINTERPRET_F32 = "i32.reinterpret_f32"
I64_REINTERPRET_F64 = "i64.reinterpret_f64"
F32_REINTERPRET_I32 = "f32.reinterpret_i32"
F64_REINTERPRET_I64 = "f64.reinterpret_i64"

CONVERSION_ENCODING = {
    "WrapInt": I32_WRAP_I64,
    "SignedTruncF32ToI32": I32_TRUNC_F32_S,
    "UnsignedTruncF32ToI32": I32_TRUNC_F32_U,
    "SignedTruncF64ToI32": I32_TRUNC_F64_S,
    "UnsignedTruncF64ToI32": I32_TRUNC_F64_U,
    "SignedTruncF32ToI64": I64_TRUNC_F32_S,
    "UnsignedTruncF32ToI64": I64_TRUNC_F32_U,
    "SignedTruncF64ToI64": I64_TRUNC_F64_S,
    "UnsignedTruncF64ToI64": I64_TRUNC_F64_U,
    "SignedExtend": I64_EXTEND_I32_S,
    "UnsignedExtend": I64_EXTEND_I32_U,
    "SignedConvertI32ToF32": F32_CONVERT_I32_S,
    "UnsignedConvertI32ToF32": F32_CONVERT_I32_U,
    "SignedConvertI64ToF32": F32_CONVERT_I64_S,
    "UnsignedConvertI64ToF32": F32_CONVERT_I64_U,
    "SignedConvertI32ToF64": F64_CONVERT_I32_S,
    "UnsignedConvertI32ToF64": F64_CONVERT_I32_U,
    "SignedConvertI64ToF64": F64_CONVERT_I64_S,
    "UnsignedConvertI64ToF64": F64_CONVERT_I64_U,
    "DemoteFloat": F32_DEMOTE_F64,
    "PromoteFloat": F64_PROMOTE_F32,
    "Reinterpret32FToI": I32_REINTERPRET_F32,
    "Reinterpret64FToI": I64_REINTERPRET_F64,
    "Reinterpret32IToF": F32_REINTERPRET_I32,
    "Reinterpret64IToF": F64_REINTERPRET_I64,
}

CONVERSION_OPERATIONS = tuple(CONVERSION_ENCODING.values())
