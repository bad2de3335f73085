"""Decoder for the compiler's serialized (JSON-compatible) output."""

from typing import Any

from . import operations as ops
from .blocks import build_instruction_tree, check_tree
from .errors import DecodeError
from .types import (
    BLOCK_BLOCK,
    BLOCK_CONDITIONAL,
    BLOCK_LOOP,
    BLOCK_TOP_LEVEL,
    VALTYPE_ENCODING,
    Arithmetic,
    Bitwise,
    BlockNode,
    BlockStart,
    Branch,
    Call,
    Comparison,
    Const,
    Conversion,
    DataInstruction,
    FloatInstruction,
    FunctionDescriptor,
    GlobalDescriptor,
    Instruction,
    InstructionTree,
    MemoryDescriptor,
    MemoryInstruction,
    Signature,
    SimpleInstruction,
    UnknownInstruction,
    ValType,
)


# Byte counts of the memory access widths
BYTE_KIND_ENCODING = {
    "Bits8": 1,
    "Bits16": 2,
    "Bits32": 4,
    "Bits64": 8,
}

# Block node kinds without a payload
NODE_KIND_ENCODING = {
    "TopLevel": BLOCK_TOP_LEVEL,
    "Block": BLOCK_BLOCK,
    "Loop": BLOCK_LOOP,
}


def _lookup(table: dict[str, Any], key: Any, what: str) -> Any:
    try:
        return table[key]
    except (KeyError, TypeError):
        raise DecodeError(f"Unknown {what}: {key!r}") from None


def _field(data: dict[str, Any], name: str, what: str) -> Any:
    try:
        return data[name]
    except (KeyError, TypeError):
        raise DecodeError(f"{what} is missing field {name!r}") from None


def decode_valtype(text: str) -> ValType:
    return _lookup(VALTYPE_ENCODING, text, "value type")


def decode_signature(inout: dict[str, Any] | None) -> Signature | None:
    """Decode a block or function input/output description."""
    if inout is None:
        return None
    inputs = tuple(
        (name, decode_valtype(typ)) for name, typ in inout.get("input", [])
    )
    outputs = tuple(decode_valtype(typ) for typ in inout.get("output", []))
    return Signature(inputs, outputs)


def decode_literal_bytes(value: Any) -> bytes:
    """Reassemble the eight little-endian bytes of a serialized number.

    Accepts ``{"lower_bits": u32, "upper_bits": u32}``, ``{"bytes": [...]}``
    or a plain list of bytes.
    """
    if isinstance(value, dict) and "lower_bits" in value:
        lower = value["lower_bits"]
        upper = value.get("upper_bits", 0)
        for half in (lower, upper):
            if not isinstance(half, int) or not 0 <= half <= 0xFFFFFFFF:
                raise DecodeError(f"Literal half is not an unsigned 32-bit integer: {half!r}")
        return lower.to_bytes(4, "little") + upper.to_bytes(4, "little")

    if isinstance(value, dict):
        value = _field(value, "bytes", "Literal")
    if isinstance(value, (list, tuple, bytes)):
        if len(value) > 8:
            raise DecodeError(f"Literal has {len(value)} bytes, at most 8 supported")
        try:
            raw = bytes(value)
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"Invalid literal bytes: {value!r}") from exc
        return raw.ljust(8, b"\x00")

    raise DecodeError(f"Invalid literal: {value!r}")


def decode_const(data: dict[str, Any]) -> Const:
    typ = decode_valtype(_field(data, "typ", "Const"))
    return Const(typ, decode_literal_bytes(_field(data, "value", "Const")))


def decode_instruction(data: dict[str, Any]) -> Instruction:
    """Decode one externally tagged instruction such as ``{"Simple": "Nop"}``."""
    if not isinstance(data, dict) or len(data) != 1:
        raise DecodeError(f"Instruction must be an object with one tag: {data!r}")
    ((tag, body),) = data.items()

    if tag == "Simple":
        return SimpleInstruction(_lookup(ops.SIMPLE_ENCODING, body, "simple instruction"))

    if tag == "Block":
        return BlockStart(
            kind=_lookup(ops.BLOCK_KIND_ENCODING, _field(body, "kind", tag), "block kind"),
            label=body.get("label") or "",
            signature=decode_signature(body.get("inout")),
        )

    if tag == "Branch":
        return Branch(
            default_label=str(_field(body, "default_label", tag)),
            other_labels=tuple(str(label) for label in body.get("other_labels", [])),
            is_conditional=bool(body.get("is_conditional", False)),
        )

    if tag == "Call":
        return Call(
            index=str(_field(body, "index", tag)),
            signature=decode_signature(body.get("inout")),
        )

    if tag == "Data":
        return DataInstruction(
            kind=_lookup(ops.DATA_ENCODING, _field(body, "kind", tag), "data instruction"),
            location=str(_field(body, "location", tag)),
        )

    if tag == "Memory":
        return MemoryInstruction(
            is_storing=bool(_field(body, "is_storing", tag)),
            location=str(body.get("location", "0")),
            value_type=decode_valtype(_field(body, "typ", tag)),
            byte_count=_lookup(BYTE_KIND_ENCODING, _field(body, "count", tag), "byte count"),
            offset=int(body.get("offset", 0)),
            alignment=_lookup(BYTE_KIND_ENCODING, body.get("alignment", "Bits32"), "alignment"),
        )

    if tag == "Const":
        return decode_const(body)

    if tag == "Comparison":
        return Comparison(
            kind=_lookup(ops.COMPARISON_ENCODING, _field(body, "kind", tag), "comparison"),
            value_type=decode_valtype(_field(body, "typ", tag)),
        )

    if tag == "Arithmetic":
        return Arithmetic(
            kind=_lookup(ops.ARITHMETIC_ENCODING, _field(body, "kind", tag), "arithmetic operation"),
            value_type=decode_valtype(_field(body, "typ", tag)),
        )

    if tag == "Bitwise":
        return Bitwise(
            kind=_lookup(ops.BITWISE_ENCODING, _field(body, "kind", tag), "bitwise operation"),
            is_64bit=bool(body.get("is_64_bit", False)),
        )

    if tag == "Float":
        return FloatInstruction(
            kind=_lookup(ops.FLOAT_ENCODING, _field(body, "kind", tag), "float operation"),
            is_64bit=bool(body.get("is_64_bit", False)),
        )

    if tag in ("Cast", "Conversion"):
        return Conversion(_lookup(ops.CONVERSION_ENCODING, body, "conversion"))

    if tag == "DefaultString":
        return UnknownInstruction(str(body))

    raise DecodeError(f"Unknown instruction tag: {tag!r}")


def decode_block_node(data: dict[str, Any]) -> BlockNode:
    kind = _field(data, "kind", "Block node")
    else_start = None
    if isinstance(kind, dict) and "Conditional" in kind:
        else_start = int(kind["Conditional"])
        kind = BLOCK_CONDITIONAL
    else:
        kind = _lookup(NODE_KIND_ENCODING, kind, "block node kind")

    try:
        children = {
            int(entry): int(child) for entry, child in data.get("children", {}).items()
        }
    except (AttributeError, TypeError, ValueError) as exc:
        raise DecodeError(f"Invalid block children: {data.get('children')!r}") from exc

    parent = data.get("parent_index")
    return BlockNode(
        kind=kind,
        start=int(_field(data, "start", "Block node")),
        end=int(_field(data, "end", "Block node")),
        depth=int(data.get("depth", 0)),
        label=data.get("label") or "",
        parent_index=None if parent is None else int(parent),
        children=children,
        else_start_index=else_start,
    )


def decode_tree(data: dict[str, Any] | list[Any]) -> InstructionTree:
    """Decode an instruction tree.

    A bare list, or an object without ``root``, is treated as a flat array
    whose block arena is rebuilt from its block instructions.
    """
    if isinstance(data, list):
        data = {"array": data}
    array = [decode_instruction(item) for item in _field(data, "array", "Instruction tree")]
    if data.get("root") is None:
        return build_instruction_tree(array)

    tree = InstructionTree(
        array=array, root=[decode_block_node(node) for node in data["root"]]
    )
    check_tree(tree)
    return tree


def decode_function(data: dict[str, Any]) -> FunctionDescriptor:
    signature = decode_signature(data.get("signature")) or Signature()
    locals_ = tuple(
        (name, decode_valtype(typ)) for name, typ in data.get("locals", [])
    )
    return FunctionDescriptor(
        signature=signature,
        locals=locals_,
        body=decode_tree(_field(data, "body", "Function")),
        name=data.get("name"),
    )


def decode_global(data: dict[str, Any]) -> GlobalDescriptor:
    value_type = decode_valtype(_field(data, "typ", "Global"))
    init = _field(data, "init", "Global")
    if isinstance(init, dict) and "Const" in init:
        const = decode_const(init["Const"])
    elif isinstance(init, dict) and "typ" in init:
        const = decode_const(init)
    else:
        const = Const(value_type, decode_literal_bytes(init))
    if const.value_type != value_type:
        raise DecodeError(
            f"Global initializer has type {const.value_type}, expected {value_type}"
        )
    return GlobalDescriptor(
        name=data.get("name"),
        value_type=value_type,
        mutable=bool(data.get("is_mutable", False)),
        init=const,
    )


def decode_memory(data: dict[str, Any]) -> MemoryDescriptor:
    min_pages = int(data.get("min_pages", 1))
    if min_pages < 0:
        raise DecodeError(f"Memory cannot have {min_pages} pages")
    return MemoryDescriptor(name=data.get("name"), min_pages=min_pages)
