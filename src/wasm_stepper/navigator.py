"""Control flow over a flattened instruction array.

The navigator keeps two pieces of state: a cursor into the flat array and
the index of the block the cursor is currently in. Each step it moves out
of a finished block or into a newly entered one, executes the instruction
under the cursor and then moves the cursor according to the continuation
the instruction returned.
"""

import logging

from . import operations as ops
from .errors import NameResolutionError, UnimplementedError
from .executor import ExecutionState, execute_instruction
from .types import BlockNode, InstructionTree, StepResult

logger = logging.getLogger(__name__)


class ControlFlowNavigator:
    """Walks an InstructionTree one instruction at a time."""

    def __init__(self, tree: InstructionTree) -> None:
        self.tree = tree
        self.reset()

    def reset(self) -> None:
        self.current_index = 0
        self.cursor = self.tree.root[0].start
        self.finished = False

    @property
    def current(self) -> BlockNode:
        return self.tree.root[self.current_index]

    @property
    def done(self) -> bool:
        return self.finished or self.cursor >= len(self.tree.array)

    def step(self, state: ExecutionState) -> StepResult | None:
        """Execute the next instruction, or return None once the run is over."""
        if self.done:
            return None

        current = self.current
        if self.cursor == current.end and current.parent_index is not None:
            logger.debug(
                "Leaving %s block at %d (depth %d)",
                current.kind,
                self.cursor,
                current.depth,
            )
            self.current_index = current.parent_index
            current = self.current

        child = current.children.get(self.cursor)
        if child is not None:
            self.current_index = child
            current = self.current
            logger.debug(
                "Entering %s block %r at %d (depth %d)",
                current.kind,
                current.label,
                self.cursor,
                current.depth,
            )

        result = execute_instruction(self.tree.array[self.cursor], state)
        self._advance(result)
        return result

    def _advance(self, result: StepResult) -> None:
        continuation = result.continuation
        if continuation is None:
            self.cursor += 1
            return

        current = self.current
        if continuation.kind == ops.RETURN:
            self.finished = True
        elif continuation.kind == ops.ELSE:
            if not current.is_conditional:
                raise UnimplementedError(f"else outside of an if (in {current.kind})")
            self.cursor = current.else_start_index
        elif continuation.kind == ops.END:
            if not current.is_conditional:
                raise UnimplementedError(
                    f"end of an else arm outside of an if (in {current.kind})"
                )
            self.cursor = current.end
        else:
            target_index = self.resolve(continuation.label)
            target = self.tree.root[target_index]
            self.current_index = target_index
            self.cursor = target.start if target.is_loop else target.end
            logger.debug(
                "Branch to %s block %r, continuing at %d",
                target.kind,
                target.label,
                self.cursor,
            )

    def resolve(self, label: int | str) -> int:
        """Find the arena index of the block a branch label refers to.

        A numeric label counts enclosing blocks outward from the current one
        (0 is the current block); any other label names a block.
        """
        index = self.current_index
        if isinstance(label, int):
            for _ in range(label):
                parent = self.tree.root[index].parent_index
                if parent is None:
                    raise NameResolutionError(label)
                index = parent
            return index

        while True:
            block = self.tree.root[index]
            if block.label == label:
                return index
            if block.depth == 0 or block.parent_index is None:
                raise NameResolutionError(label)
            index = block.parent_index
