"""Plain English descriptions of instructions for the step view."""

from . import operations as ops
from .conversion import parse_conversion
from .types import (
    Arithmetic,
    Bitwise,
    BlockStart,
    Branch,
    Call,
    Comparison,
    Const,
    Conversion,
    DataInstruction,
    FLOAT_TYPES,
    FloatInstruction,
    Instruction,
    MemoryInstruction,
    Number,
    SimpleInstruction,
    VALTYPE_V128,
)


OPERATION_NAMES = {
    ops.ADD: "Addition",
    ops.SUB: "Subtraction",
    ops.MUL: "Multiplication",
    ops.DIV: "Division",
    ops.DIV_S: "Signed division",
    ops.DIV_U: "Unsigned division",
    ops.REM_S: "Signed remainder",
    ops.REM_U: "Unsigned remainder",
    ops.AND: "Bitwise and",
    ops.OR: "Bitwise or",
    ops.XOR: "Bitwise xor",
    ops.SHL: "Shift left",
    ops.SHR_S: "Signed shift right",
    ops.SHR_U: "Unsigned shift right",
    ops.ROTL: "Rotate left",
    ops.ROTR: "Rotate right",
    ops.CLZ: "Count leading zero bits",
    ops.CTZ: "Count trailing zero bits",
    ops.POPCNT: "Count non-zero bits",
    ops.EQZ: "Equal to zero",
    ops.EQ: "Equal",
    ops.NE: "Not equal",
    ops.LT_S: "Signed less than",
    ops.LT_U: "Unsigned less than",
    ops.GT_S: "Signed greater than",
    ops.GT_U: "Unsigned greater than",
    ops.LE_S: "Signed less than or equal",
    ops.LE_U: "Unsigned less than or equal",
    ops.GE_S: "Signed greater than or equal",
    ops.GE_U: "Unsigned greater than or equal",
    ops.LT: "Less than",
    ops.GT: "Greater than",
    ops.LE: "Less than or equal",
    ops.GE: "Greater than or equal",
    ops.ABS: "Absolute value",
    ops.NEG: "Negation",
    ops.CEIL: "Ceiling",
    ops.FLOOR: "Floor",
    ops.TRUNC: "Truncation",
    ops.NEAREST: "Round to nearest",
    ops.SQRT: "Square root",
    ops.MIN: "Minimum",
    ops.MAX: "Maximum",
    ops.COPYSIGN: "Copy sign",
}

_SIMPLE = {
    ops.UNREACHABLE: "Unreachable",
    ops.NOP: "Do nothing",
    ops.DROP: "Drop the current top value of the stack",
    ops.RETURN: "Return immediately",
}

_DATA = {
    ops.LOCAL_GET: "Get local value '{}' and push it onto the stack",
    ops.GLOBAL_GET: "Get global value '{}' and push it onto the stack",
    ops.LOCAL_SET: "Set local value '{}' to the current value on the stack",
    ops.GLOBAL_SET: "Set global value '{}' to the current value on the stack",
    ops.LOCAL_TEE: (
        "Set local value '{}' to the current value on the stack "
        "and push it back onto the stack"
    ),
    ops.MEMORY_SIZE: "Push the size of memory '{}' onto the stack",
    ops.MEMORY_GROW: (
        "Grow memory '{}' by the value on the stack and push the old size "
        "(or -1 on failure)"
    ),
}


def _label(label: str) -> str:
    return f" {label}" if label else ""


def describe_instruction(instr: Instruction) -> str:
    """Describe what an instruction does, without runtime values."""
    if isinstance(instr, SimpleInstruction):
        return _SIMPLE.get(instr.kind, instr.kind)

    if isinstance(instr, BlockStart):
        if instr.kind == ops.IF:
            return (
                f"Start new if{_label(instr.label)}: run the then arm if the value "
                "on the stack is not zero, else skip to else"
            )
        if instr.kind == ops.LOOP:
            return f"Start new loop{_label(instr.label)}"
        if instr.kind == ops.BLOCK:
            return f"Start new block{_label(instr.label)}"
        if instr.kind == ops.ELSE:
            return f"Else{_label(instr.label)}: skip to the end of the if"
        if instr.kind == ops.END:
            return f"End of block{_label(instr.label)}"
        return str(instr)

    if isinstance(instr, Branch):
        if instr.is_table:
            labels = ", ".join(instr.other_labels)
            return (
                f"Jump to one of [{labels}] chosen by the value on the stack, "
                f"defaulting to {instr.default_label}"
            )
        if instr.is_conditional:
            return f"Jump to {instr.default_label} if the value on the stack is not zero"
        return f"Jump to {instr.default_label}"

    if isinstance(instr, Call):
        return f"Call function {instr.index}"

    if isinstance(instr, DataInstruction):
        template = _DATA.get(instr.kind)
        return template.format(instr.location) if template else str(instr)

    if isinstance(instr, MemoryInstruction):
        if instr.is_storing:
            return f"Store {instr.byte_count} bytes of {instr.value_type} into memory"
        return f"Load {instr.byte_count} bytes from memory as {instr.value_type}"

    if isinstance(instr, Const):
        if instr.value_type == VALTYPE_V128:
            return "Push a v128 value to the stack"
        return f"Push value {instr.value} of type {instr.value_type} to the stack"

    if isinstance(instr, (Comparison, Arithmetic, Bitwise, FloatInstruction)):
        kind = instr.kind
        if instr.value_type in FLOAT_TYPES:
            kind = ops.FLOAT_SPELLING.get(kind, kind)
        return f"{OPERATION_NAMES.get(kind, kind)} for {instr.value_type}"

    if isinstance(instr, Conversion) and instr.op in ops.CONVERSION_OPERATIONS:
        target, verb, source, signed = parse_conversion(instr.op)
        if verb == "reinterpret":
            bits = "64-bit" if target in ("i64", "f64") else "32-bit"
            what = "int as a float" if source.startswith("i") else "float as an int"
            return f"Reinterpret the {bits} {what}"
        if verb in ("trunc", "convert", "extend"):
            sign = "keeping sign" if signed else "ignoring sign"
            return f"Cast from {source} to {target}, {sign}"
        return f"Cast from {source} to {target}"

    return str(instr)


def describe_result(
    instr: Instruction, operands: list[Number], result: Number
) -> str:
    """Describe a numeric step with its operands and pushed result."""
    base = describe_instruction(instr)
    values = " and ".join(str(value) for value in operands)
    return f"{base}: {values} gives {result}, pushed onto the stack"
