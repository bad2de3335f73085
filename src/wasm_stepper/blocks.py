"""Building and checking the block arena of an instruction array."""

from typing import Any

from . import operations as ops
from .errors import DecodeError
from .types import (
    BLOCK_BLOCK,
    BLOCK_CONDITIONAL,
    BLOCK_LOOP,
    BLOCK_TOP_LEVEL,
    BlockNode,
    BlockStart,
    Instruction,
    InstructionTree,
)


_NODE_KINDS = {
    ops.BLOCK: BLOCK_BLOCK,
    ops.LOOP: BLOCK_LOOP,
    ops.IF: BLOCK_CONDITIONAL,
}


def build_instruction_tree(array: list[Instruction]) -> InstructionTree:
    """Match block, loop, if, else and end instructions into a block arena.

    The array holds the body of one function without its closing ``end``.
    """
    # Nodes are built as dicts and frozen once their end is known
    nodes: list[dict[str, Any]] = [
        {
            "kind": BLOCK_TOP_LEVEL,
            "start": 0,
            "end": len(array),
            "depth": 0,
            "label": "",
            "parent_index": None,
            "children": {},
            "else_start_index": None,
        }
    ]
    open_blocks = [0]

    for ip, instr in enumerate(array):
        if not isinstance(instr, BlockStart):
            continue
        if instr.kind in _NODE_KINDS:
            parent = open_blocks[-1]
            nodes[parent]["children"][ip] = len(nodes)
            nodes.append(
                {
                    "kind": _NODE_KINDS[instr.kind],
                    "start": ip,
                    "end": None,
                    "depth": len(open_blocks),
                    "label": instr.label,
                    "parent_index": parent,
                    "children": {},
                    "else_start_index": None,
                }
            )
            open_blocks.append(len(nodes) - 1)
        elif instr.kind == ops.ELSE:
            node = nodes[open_blocks[-1]]
            if node["kind"] != BLOCK_CONDITIONAL or node["else_start_index"] is not None:
                raise DecodeError(f"Unexpected else at index {ip}")
            node["else_start_index"] = ip + 1
        elif instr.kind == ops.END:
            if len(open_blocks) == 1:
                raise DecodeError(f"Unmatched end at index {ip}")
            node = nodes[open_blocks.pop()]
            node["end"] = ip
            if node["kind"] == BLOCK_CONDITIONAL and node["else_start_index"] is None:
                node["else_start_index"] = ip

    if len(open_blocks) > 1:
        start = nodes[open_blocks[-1]]["start"]
        raise DecodeError(f"Block starting at index {start} is never closed")

    root = [BlockNode(**node) for node in nodes]
    return InstructionTree(array=list(array), root=root)


def check_tree(tree: InstructionTree) -> None:
    """Raise DecodeError unless the block arena is consistent with the array."""
    if not tree.root:
        raise DecodeError("Instruction tree has no root block")

    top = tree.root[0]
    if top.kind != BLOCK_TOP_LEVEL or top.depth != 0 or top.parent_index is not None:
        raise DecodeError("First block must be the top level block")
    if top.start != 0 or top.end != len(tree.array):
        raise DecodeError(
            f"Top level block spans {top.start}-{top.end}, "
            f"expected 0-{len(tree.array)}"
        )

    for index, node in enumerate(tree.root):
        if index > 0:
            parent_index = node.parent_index
            if parent_index is None or not 0 <= parent_index < len(tree.root):
                raise DecodeError(f"Block {index} has no valid parent")
            parent = tree.root[parent_index]
            if parent.children.get(node.start) != index:
                raise DecodeError(
                    f"Block {index} is not registered with its parent at {node.start}"
                )
            if node.depth != parent.depth + 1:
                raise DecodeError(f"Block {index} has depth {node.depth}")
            if not parent.start <= node.start < node.end <= parent.end:
                raise DecodeError(
                    f"Block {index} spans {node.start}-{node.end} outside its parent"
                )
        if node.is_conditional:
            else_start = node.else_start_index
            if else_start is None or not node.start < else_start <= node.end:
                raise DecodeError(f"Conditional block {index} has no valid else start")
        for entry, child in node.children.items():
            if not 0 < child < len(tree.root):
                raise DecodeError(f"Block {index} refers to missing child {child}")
            if tree.root[child].parent_index != index or tree.root[child].start != entry:
                raise DecodeError(f"Block {index} child at {entry} is inconsistent")
