"""Tests for trace production."""

import logging

import pytest
from wasm_stepper import operations as ops
from wasm_stepper.blocks import build_instruction_tree
from wasm_stepper.config import ExecutionConfig
from wasm_stepper.errors import (
    ExecutionError,
    StackEmptyError,
    StepLimitExceededError,
    TrapError,
    WasmError,
)
from wasm_stepper.executor import ExecutionState, ModuleState
from wasm_stepper.trace import TraceStepper, encode_trace, run_function, trace_tree
from wasm_stepper.types import (
    Arithmetic,
    BlockStart,
    Branch,
    Const,
    DataInstruction,
    FunctionDescriptor,
    GlobalDescriptor,
    Signature,
)


def i32(value):
    return Const.of("i32", value)


def make_function(array, params=(), locals_=(), name=None):
    return FunctionDescriptor(
        signature=Signature(inputs=tuple(params)),
        locals=tuple(locals_),
        body=build_instruction_tree(array),
        name=name,
    )


ADD_ONE_TWO = [i32(1), i32(2), Arithmetic(ops.ADD, "i32")]


class TestRunFunction:
    """Test eager trace production."""

    def test_addition_scenario(self):
        trace = run_function(make_function(ADD_ONE_TWO))
        assert len(trace) == 3
        assert trace[0].previous_stack == []
        assert trace[0].current_stack == [1]
        assert trace[2].previous_stack == [1, 2]
        assert trace[2].current_stack == [3]
        assert "Addition" in trace[2].result.action
        assert "gives 3" in trace[2].result.action

    def test_arguments_seed_parameters(self):
        function = make_function(
            [
                DataInstruction(ops.LOCAL_GET, "a"),
                DataInstruction(ops.LOCAL_GET, "b"),
                Arithmetic(ops.MUL, "i32"),
                DataInstruction(ops.LOCAL_SET, "r"),
            ],
            params=[("a", "i32"), ("b", "i32")],
            locals_=[("r", "i32")],
        )
        trace = run_function(function, arguments=[6, 7])
        assert trace[0].result.locals_snapshot == [6, 7, 0]
        assert trace[-1].result.locals_snapshot == [6, 7, 42]
        assert trace[-1].current_stack == []

    def test_function_by_name(self):
        module = ModuleState.compile(functions=[make_function(ADD_ONE_TWO, name="main")])
        trace = run_function("main", module)
        assert trace[-1].current_stack == [3]

    def test_globals_persist_across_runs(self):
        body = [
            DataInstruction(ops.GLOBAL_GET, "count"),
            i32(1),
            Arithmetic(ops.ADD, "i32"),
            DataInstruction(ops.GLOBAL_SET, "count"),
        ]
        module = ModuleState.compile(
            globals=[GlobalDescriptor("count", "i32", True, Const.of("i32", 0))],
            functions=[make_function(body, name="bump")],
        )
        run_function("bump", module)
        run_function("bump", module)
        assert module.globals.get("count") == 2

    def test_stacks_are_copies(self):
        trace = run_function(make_function(ADD_ONE_TWO))
        trace[0].current_stack.append(100)
        assert trace[1].previous_stack == [1]


class TestErrors:
    """Test failures are reported with the failing step."""

    def test_error_is_wrapped(self):
        function = make_function([i32(1), Arithmetic(ops.ADD, "i32")])
        with pytest.raises(ExecutionError, match=r"Step 1 \(i32.add\)") as info:
            run_function(function)
        error = info.value
        assert error.step == 1
        assert error.instruction == "i32.add"
        assert isinstance(error.cause, WasmError)
        assert isinstance(error.__cause__, type(error.cause))
        assert error.to_dict()["step"] == 1

    def test_empty_stack(self):
        function = make_function([Arithmetic(ops.ADD, "i32")])
        with pytest.raises(ExecutionError) as info:
            run_function(function)
        assert isinstance(info.value.cause, StackEmptyError)

    def test_trap(self):
        function = make_function([i32(1), i32(0), Arithmetic(ops.DIV_S, "i32")])
        with pytest.raises(ExecutionError, match="integer divide by zero") as info:
            run_function(function)
        assert isinstance(info.value.cause, TrapError)

    def test_failure_is_logged(self, caplog):
        function = make_function([Arithmetic(ops.ADD, "i32")])
        with caplog.at_level(logging.WARNING, logger="wasm_stepper.trace"):
            with pytest.raises(ExecutionError):
                run_function(function)
        assert "Run failed at step 0" in caplog.text

    def test_step_limit(self):
        endless = make_function([BlockStart(ops.LOOP), Branch("0"), BlockStart(ops.END)])
        with pytest.raises(StepLimitExceededError, match="100"):
            run_function(endless, config=ExecutionConfig(max_steps=100))


class TestTraceStepper:
    """Test the lazy iterator."""

    def test_matches_eager_trace(self):
        array = [
            i32(0),
            BlockStart(ops.IF),
            i32(1),
            BlockStart(ops.ELSE),
            i32(2),
            BlockStart(ops.END),
            i32(3),
            Arithmetic(ops.ADD, "i32"),
        ]
        tree = build_instruction_tree(array)
        eager = trace_tree(tree, ExecutionState())
        lazy = list(TraceStepper(tree, ExecutionState()))
        assert encode_trace(lazy) == encode_trace(eager)
        assert [e.result.instruction for e in lazy] == [
            e.result.instruction for e in eager
        ]

    def test_pull_one_at_a_time(self):
        stepper = TraceStepper(build_instruction_tree(ADD_ONE_TWO), ExecutionState())
        first = next(stepper)
        assert first.current_stack == [1]
        assert stepper.step_index == 1
        assert stepper.navigator.cursor == 1
        assert len(list(stepper)) == 2
        with pytest.raises(StopIteration):
            next(stepper)

    def test_reset(self):
        state = ExecutionState()
        stepper = TraceStepper(build_instruction_tree(ADD_ONE_TWO), state)
        first = list(stepper)
        stepper.reset()
        assert state.stack == []
        assert encode_trace(stepper) == encode_trace(first)

    def test_endless_loop_can_be_abandoned(self):
        tree = build_instruction_tree(
            [BlockStart(ops.LOOP), Branch("0"), BlockStart(ops.END)]
        )
        stepper = TraceStepper(tree, ExecutionState())
        entries = [next(stepper) for _ in range(10)]
        assert len(entries) == 10


class TestEncodeTrace:
    def test_encode(self):
        encoded = encode_trace(run_function(make_function(ADD_ONE_TWO)))
        assert encoded[2] == {
            "action": "Addition for i32: 1 and 2 gives 3, pushed onto the stack",
            "previous_stack": [1, 2],
            "current_stack": [3],
            "locals_snapshot": [],
        }
