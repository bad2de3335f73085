"""Tests for building and checking the block arena."""

import pytest
from wasm_stepper import operations as ops
from wasm_stepper.blocks import build_instruction_tree, check_tree
from wasm_stepper.errors import DecodeError
from wasm_stepper.types import (
    BLOCK_CONDITIONAL,
    BLOCK_LOOP,
    BLOCK_TOP_LEVEL,
    BlockNode,
    BlockStart,
    Const,
    InstructionTree,
    SimpleInstruction,
)


def nop():
    return SimpleInstruction(ops.NOP)


def block(kind, label=""):
    return BlockStart(kind, label)


class TestBuild:
    """Test matching block instructions into nodes."""

    def test_flat_body(self):
        tree = build_instruction_tree([nop(), nop()])
        assert len(tree.root) == 1
        root = tree.root[0]
        assert (root.kind, root.start, root.end, root.depth) == (BLOCK_TOP_LEVEL, 0, 2, 0)
        assert root.parent_index is None
        assert root.children == {}

    def test_if_else(self):
        array = [
            Const.of("i32", 0),
            block(ops.IF, "l"),
            nop(),
            block(ops.ELSE),
            nop(),
            block(ops.END),
        ]
        tree = build_instruction_tree(array)
        assert tree.root[0].children == {1: 1}
        node = tree.root[1]
        assert node.kind == BLOCK_CONDITIONAL
        assert (node.start, node.end, node.else_start_index) == (1, 5, 4)
        assert node.label == "l"
        assert node.depth == 1

    def test_if_without_else(self):
        tree = build_instruction_tree([block(ops.IF), nop(), block(ops.END)])
        assert tree.root[1].else_start_index == 2

    def test_nested(self):
        array = [
            block(ops.BLOCK, "outer"),
            block(ops.LOOP, "inner"),
            block(ops.END),
            block(ops.END),
        ]
        tree = build_instruction_tree(array)
        outer, inner = tree.root[1], tree.root[2]
        assert (outer.start, outer.end) == (0, 3)
        assert (inner.start, inner.end) == (1, 2)
        assert inner.kind == BLOCK_LOOP
        assert inner.parent_index == 1
        assert inner.depth == 2
        assert outer.children == {1: 2}
        check_tree(tree)

    def test_unmatched_end(self):
        with pytest.raises(DecodeError, match="Unmatched end at index 1"):
            build_instruction_tree([nop(), block(ops.END)])

    def test_unclosed_block(self):
        with pytest.raises(DecodeError, match="never closed"):
            build_instruction_tree([block(ops.BLOCK), nop()])

    def test_else_outside_if(self):
        with pytest.raises(DecodeError, match="Unexpected else"):
            build_instruction_tree([block(ops.BLOCK), block(ops.ELSE), block(ops.END)])


class TestCheck:
    """Test rejecting inconsistent arenas."""

    def test_empty_arena(self):
        with pytest.raises(DecodeError, match="no root"):
            check_tree(InstructionTree([nop()], []))

    def test_root_must_span_array(self):
        tree = InstructionTree([nop(), nop()], [BlockNode(BLOCK_TOP_LEVEL, 0, 1)])
        with pytest.raises(DecodeError, match="expected 0-2"):
            check_tree(tree)

    def test_child_must_be_registered(self):
        array = [block(ops.BLOCK), block(ops.END)]
        root = [
            BlockNode(BLOCK_TOP_LEVEL, 0, 2),
            BlockNode("block", 0, 1, depth=1, parent_index=0),
        ]
        with pytest.raises(DecodeError, match="not registered"):
            check_tree(InstructionTree(array, root))

    def test_conditional_needs_else_start(self):
        array = [block(ops.IF), block(ops.END)]
        root = [
            BlockNode(BLOCK_TOP_LEVEL, 0, 2, children={0: 1}),
            BlockNode(BLOCK_CONDITIONAL, 0, 1, depth=1, parent_index=0),
        ]
        with pytest.raises(DecodeError, match="else start"):
            check_tree(InstructionTree(array, root))
