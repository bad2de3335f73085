"""Recording execution traces.

``TraceStepper`` produces one TraceEntry per executed instruction on demand;
``run_function`` and ``trace_tree`` drain it into a list.
"""

import logging
from typing import Any, Iterable, Iterator

from .config import ExecutionConfig
from .errors import ExecutionError, StepLimitExceededError, WasmError
from .executor import ExecutionState, ModuleState
from .navigator import ControlFlowNavigator
from .types import FunctionDescriptor, InstructionTree, TraceEntry

logger = logging.getLogger(__name__)


class TraceStepper:
    """Iterator over the trace of one run.

    All progress lives in the navigator (cursor and current block) and the
    execution state, so a stepper can be paused between entries and
    restarted with ``reset``.
    """

    def __init__(
        self,
        tree: InstructionTree,
        state: ExecutionState,
        config: ExecutionConfig | None = None,
    ) -> None:
        self.navigator = ControlFlowNavigator(tree)
        self.state = state
        self.config = config or ExecutionConfig()
        self.step_index = 0
        self._initial_locals = state.locals.snapshot()
        self._initial_stack = list(state.stack)

    def __iter__(self) -> Iterator[TraceEntry]:
        return self

    def __next__(self) -> TraceEntry:
        if self.navigator.done:
            raise StopIteration

        limit = self.config.max_steps
        if limit is not None and self.step_index >= limit:
            logger.warning("Stopping run after %d steps", self.step_index)
            raise StepLimitExceededError(limit)

        tree = self.navigator.tree
        instruction = tree.array[self.navigator.cursor]
        previous_stack = list(self.state.stack)
        try:
            result = self.navigator.step(self.state)
        except WasmError as exc:
            logger.warning(
                "Run failed at step %d (%s): %s", self.step_index, instruction, exc
            )
            raise ExecutionError(self.step_index, str(instruction), exc) from exc

        self.step_index += 1
        return TraceEntry(
            result=result,
            previous_stack=previous_stack,
            current_stack=list(self.state.stack),
        )

    def reset(self) -> None:
        """Rewind to the first instruction with the stack and locals of the start.

        Globals belong to the module and keep whatever the run did to them.
        """
        self.navigator.reset()
        self.state.stack[:] = self._initial_stack
        self.state.locals.values[:] = self._initial_locals
        self.step_index = 0


def trace_tree(
    tree: InstructionTree,
    state: ExecutionState,
    config: ExecutionConfig | None = None,
) -> list[TraceEntry]:
    """Run an instruction tree to completion and return its trace."""
    logger.debug("Tracing %d instructions", len(tree))
    entries = list(TraceStepper(tree, state, config))
    logger.debug("Finished after %d steps, stack %s", len(entries), state.stack)
    return entries


def run_function(
    function: FunctionDescriptor | str,
    module: ModuleState | None = None,
    arguments: Iterable[Any] | None = None,
    config: ExecutionConfig | None = None,
) -> list[TraceEntry]:
    """Trace a function with fresh locals seeded from ``arguments``.

    ``function`` may be a descriptor or the name (or index) of a function
    registered in ``module``.
    """
    module = module if module is not None else ModuleState()
    if isinstance(function, str):
        function = module.function(function)
    logger.debug("Running function %s", function.name or "<anonymous>")
    state = ExecutionState.for_function(function, module, arguments)
    return trace_tree(function.body, state, config)


def encode_trace(entries: Iterable[TraceEntry]) -> list[dict[str, Any]]:
    """Serialize a trace for the visualization layer."""
    return [entry.to_dict() for entry in entries]
