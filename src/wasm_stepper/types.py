"""Data model for serialized function bodies and execution traces."""

from dataclasses import dataclass, field
from typing import Any

from . import operations as ops


# Value type constants
VALTYPE_I32 = "i32"
VALTYPE_I64 = "i64"
VALTYPE_F32 = "f32"
VALTYPE_F64 = "f64"
VALTYPE_V128 = "v128"

# Serialized encoding of value types
VALTYPE_ENCODING = {
    "I32": VALTYPE_I32,
    "I64": VALTYPE_I64,
    "F32": VALTYPE_F32,
    "F64": VALTYPE_F64,
    "V128": VALTYPE_V128,
}

INTEGER_TYPES = (VALTYPE_I32, VALTYPE_I64)
FLOAT_TYPES = (VALTYPE_F32, VALTYPE_F64)

ValType = str  # One of the VALTYPE_* constants
Number = int | float


def zero_value(valtype: ValType) -> Number:
    """The zero of a value type's representation."""
    if valtype in FLOAT_TYPES:
        return 0.0
    return 0


def is_zero(value: Number) -> bool:
    return value == 0


@dataclass(frozen=True)
class Signature:
    """Input and output types of a function or block."""

    inputs: tuple[tuple[str | None, ValType], ...] = ()
    outputs: tuple[ValType, ...] = ()

    def __repr__(self) -> str:
        params = ", ".join(t for _, t in self.inputs)
        results = ", ".join(self.outputs)
        return f"({params}) -> ({results})"


# Instructions


@dataclass(frozen=True)
class Instruction:
    """Base class of the serialized instruction categories."""


@dataclass(frozen=True)
class SimpleInstruction(Instruction):
    kind: str  # unreachable | nop | return | drop

    def __str__(self) -> str:
        return self.kind


@dataclass(frozen=True)
class BlockStart(Instruction):
    kind: str  # block | if | loop | else | end
    label: str = ""
    signature: Signature | None = None

    def __str__(self) -> str:
        if self.label:
            return f"{self.kind} ${self.label}"
        return self.kind


@dataclass(frozen=True)
class Branch(Instruction):
    default_label: str
    other_labels: tuple[str, ...] = ()
    is_conditional: bool = False

    @property
    def is_table(self) -> bool:
        return len(self.other_labels) > 0

    def __str__(self) -> str:
        if self.is_table:
            labels = " ".join(self.other_labels + (self.default_label,))
            return f"br_table {labels}"
        if self.is_conditional:
            return f"br_if {self.default_label}"
        return f"br {self.default_label}"


@dataclass(frozen=True)
class Call(Instruction):
    index: str
    signature: Signature | None = None

    def __str__(self) -> str:
        return f"call {self.index}"


@dataclass(frozen=True)
class DataInstruction(Instruction):
    kind: str  # local.get | global.get | local.set | global.set | local.tee | memory.*
    location: str

    def __str__(self) -> str:
        return f"{self.kind} {self.location}"


@dataclass(frozen=True)
class MemoryInstruction(Instruction):
    is_storing: bool
    location: str = "0"
    value_type: ValType = VALTYPE_I32
    byte_count: int = 4
    offset: int = 0
    alignment: int = 4

    def __str__(self) -> str:
        op = "store" if self.is_storing else "load"
        width = 8 if self.value_type in (VALTYPE_I64, VALTYPE_F64) else 4
        if self.byte_count < width:
            op += str(self.byte_count * 8)
        text = f"{self.value_type}.{op}"
        if self.offset:
            text += f" offset={self.offset}"
        return text


@dataclass(frozen=True)
class Const(Instruction):
    value_type: ValType
    raw_bytes: bytes = bytes(8)

    @classmethod
    def of(cls, value_type: ValType, value: Number) -> "Const":
        from .conversion import encode_literal

        return cls(value_type, encode_literal(value_type, value))

    @property
    def value(self) -> Number:
        from .conversion import decode_literal

        return decode_literal(self.value_type, self.raw_bytes)

    def __str__(self) -> str:
        if self.value_type == VALTYPE_V128:
            return f"v128.const 0x{self.raw_bytes.hex()}"
        return f"{self.value_type}.const {self.value}"


def _mnemonic(kind: str, valtype: ValType) -> str:
    if valtype in FLOAT_TYPES:
        kind = ops.FLOAT_SPELLING.get(kind, kind)
    return f"{valtype}.{kind}"


@dataclass(frozen=True)
class Comparison(Instruction):
    kind: str
    value_type: ValType

    def __str__(self) -> str:
        return _mnemonic(self.kind, self.value_type)


@dataclass(frozen=True)
class Arithmetic(Instruction):
    kind: str
    value_type: ValType

    def __str__(self) -> str:
        return _mnemonic(self.kind, self.value_type)


@dataclass(frozen=True)
class Bitwise(Instruction):
    kind: str
    is_64bit: bool = False

    @property
    def value_type(self) -> ValType:
        return VALTYPE_I64 if self.is_64bit else VALTYPE_I32

    def __str__(self) -> str:
        return f"{self.value_type}.{self.kind}"


@dataclass(frozen=True)
class FloatInstruction(Instruction):
    kind: str
    is_64bit: bool = False

    @property
    def value_type(self) -> ValType:
        return VALTYPE_F64 if self.is_64bit else VALTYPE_F32

    def __str__(self) -> str:
        return f"{self.value_type}.{self.kind}"


@dataclass(frozen=True)
class Conversion(Instruction):
    op: str  # One of the conversion names in operations

    def __str__(self) -> str:
        return self.op


@dataclass(frozen=True)
class UnknownInstruction(Instruction):
    """An instruction the compiler passed through as plain text."""

    text: str

    def __str__(self) -> str:
        return self.text


# Block structure

BLOCK_TOP_LEVEL = "top_level"
BLOCK_BLOCK = "block"
BLOCK_LOOP = "loop"
BLOCK_CONDITIONAL = "conditional"


@dataclass(frozen=True)
class BlockNode:
    """A nested block in the flattened instruction array.

    ``start`` is the index of the opening instruction and ``end`` the index
    of the matching ``end`` instruction. ``children`` maps the array index at
    which control enters a child block to that child's index in the arena.
    """

    kind: str
    start: int
    end: int
    depth: int = 0
    label: str = ""
    parent_index: int | None = None
    children: dict[int, int] = field(default_factory=dict)
    else_start_index: int | None = None  # Conditionals only

    @property
    def is_conditional(self) -> bool:
        return self.kind == BLOCK_CONDITIONAL

    @property
    def is_loop(self) -> bool:
        return self.kind == BLOCK_LOOP


@dataclass(frozen=True)
class InstructionTree:
    """Flat instruction array plus the arena of blocks; root[0] spans it all."""

    array: list[Instruction]
    root: list[BlockNode]

    def __len__(self) -> int:
        return len(self.array)


@dataclass(frozen=True)
class FunctionDescriptor:
    signature: Signature
    locals: tuple[tuple[str | None, ValType], ...]
    body: InstructionTree
    name: str | None = None


@dataclass(frozen=True)
class GlobalDescriptor:
    name: str | None
    value_type: ValType
    mutable: bool
    init: Const


@dataclass(frozen=True)
class MemoryDescriptor:
    name: str | None
    min_pages: int = 1


# Execution results


@dataclass(frozen=True)
class Continuation:
    """Where the navigator goes after a step (None means fall through)."""

    kind: str  # return | else | end | block
    label: int | str | None = None

    @classmethod
    def block(cls, label: int | str) -> "Continuation":
        return cls(ops.BLOCK, label)

    def __repr__(self) -> str:
        if self.kind == ops.BLOCK:
            return f"Continuation.block({self.label!r})"
        return f"Continuation({self.kind})"


CONTINUE_RETURN = Continuation(ops.RETURN)
CONTINUE_ELSE = Continuation(ops.ELSE)
CONTINUE_END = Continuation(ops.END)


@dataclass
class StepResult:
    """Outcome of executing one instruction."""

    instruction: Instruction
    locals_snapshot: list[Number]
    action: str
    continuation: Continuation | None = None


@dataclass
class TraceEntry:
    """One executed instruction with the stack before and after it."""

    result: StepResult
    previous_stack: list[Number]
    current_stack: list[Number]

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.result.action,
            "previous_stack": list(self.previous_stack),
            "current_stack": list(self.current_stack),
            "locals_snapshot": list(self.result.locals_snapshot),
        }
