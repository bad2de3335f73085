"""Single instruction execution against a value stack, locals and module state.

Each call to ``execute_instruction`` runs exactly one instruction, mutates the
stack (and possibly locals or globals) in place and returns a StepResult
telling the navigator where to go next.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable

from . import operations as ops
from .conversion import convert
from .describe import describe_instruction, describe_result
from .errors import (
    DataNotFoundError,
    StackEmptyError,
    StackUnderflowError,
    TypeMismatchError,
    UnimplementedError,
    UnreachableError,
)
from .numeric import evaluate, round_f32, to_i32, to_i64
from .types import (
    CONTINUE_ELSE,
    CONTINUE_END,
    CONTINUE_RETURN,
    FLOAT_TYPES,
    VALTYPE_F32,
    VALTYPE_I64,
    Arithmetic,
    Bitwise,
    BlockStart,
    Branch,
    Call,
    Comparison,
    Const,
    Continuation,
    Conversion,
    DataInstruction,
    FloatInstruction,
    FunctionDescriptor,
    GlobalDescriptor,
    Instruction,
    MemoryDescriptor,
    MemoryInstruction,
    Number,
    SimpleInstruction,
    StepResult,
    UnknownInstruction,
    ValType,
    is_zero,
    zero_value,
)
from .variables import VariableTable


# Size of one linear memory page in bytes
PAGE_SIZE = 65536


def coerce_value(valtype: ValType, value: Any) -> Number:
    """Bring a caller supplied value into the representation of a type."""
    if valtype in FLOAT_TYPES:
        value = float(value)
        return round_f32(value) if valtype == VALTYPE_F32 else value
    if isinstance(value, float):
        raise TypeMismatchError(f"Types do not match: expected {valtype}, got float")
    if valtype == VALTYPE_I64:
        return to_i64(int(value))
    return to_i32(int(value))


@dataclass
class ModuleState:
    """Globals, memories and functions shared by every run of a module."""

    globals: VariableTable = field(
        default_factory=lambda: VariableTable(kind="Global")
    )
    memories: dict[str, bytearray] = field(default_factory=dict)
    functions: dict[str, FunctionDescriptor] = field(default_factory=dict)

    @classmethod
    def compile(
        cls,
        globals: Iterable[GlobalDescriptor] = (),
        memories: Iterable[MemoryDescriptor] = (),
        functions: Iterable[FunctionDescriptor] = (),
    ) -> "ModuleState":
        """Build the state of a freshly compiled module."""
        state = cls()
        state.load(globals, memories, functions)
        return state

    def load(
        self,
        globals: Iterable[GlobalDescriptor] = (),
        memories: Iterable[MemoryDescriptor] = (),
        functions: Iterable[FunctionDescriptor] = (),
    ) -> None:
        """Replace the module contents, discarding all previous state."""
        self.reset()

        values: list[Number] = []
        mapping: dict[str, int] = {}
        immutable: list[int] = []
        for index, desc in enumerate(globals):
            if desc.name is not None:
                mapping[desc.name] = index
            if not desc.mutable:
                immutable.append(index)
            values.append(coerce_value(desc.value_type, desc.init.value))
        self.globals = VariableTable(values, mapping, kind="Global", immutable=immutable)

        # Memories and functions are reachable by name and by index
        for index, desc in enumerate(memories):
            data = bytearray(desc.min_pages * PAGE_SIZE)
            self.memories[str(index)] = data
            if desc.name is not None:
                self.memories[desc.name] = data

        for index, function in enumerate(functions):
            self.functions[str(index)] = function
            if function.name is not None:
                self.functions[function.name] = function

    def reset(self) -> None:
        self.globals = VariableTable(kind="Global")
        self.memories = {}
        self.functions = {}

    def memory(self, location: str) -> bytearray:
        try:
            return self.memories[location]
        except KeyError:
            raise DataNotFoundError(location, "Memory") from None

    def function(self, name: str) -> FunctionDescriptor:
        try:
            return self.functions[name]
        except KeyError:
            raise DataNotFoundError(name, "Function") from None


@dataclass
class ExecutionState:
    """Per-run state: the value stack, the locals and the owning module."""

    locals: VariableTable = field(default_factory=VariableTable)
    module: ModuleState = field(default_factory=ModuleState)
    stack: list[Number] = field(default_factory=list)

    @classmethod
    def for_function(
        cls,
        function: FunctionDescriptor,
        module: ModuleState | None = None,
        arguments: Iterable[Any] | None = None,
    ) -> "ExecutionState":
        """Create a fresh state whose locals hold the parameters then locals.

        Parameters take their value from ``arguments`` in order; missing
        arguments and declared locals start at zero of their type.
        """
        arguments = list(arguments or [])
        params = function.signature.inputs
        if len(arguments) > len(params):
            raise TypeMismatchError(
                f"Function takes {len(params)} arguments but {len(arguments)} were given"
            )

        pairs: list[tuple[str | None, Number]] = []
        for index, (name, valtype) in enumerate(params):
            if index < len(arguments):
                pairs.append((name, coerce_value(valtype, arguments[index])))
            else:
                pairs.append((name, zero_value(valtype)))
        for name, valtype in function.locals:
            pairs.append((name, zero_value(valtype)))

        return cls(
            locals=VariableTable.from_pairs(pairs),
            module=module if module is not None else ModuleState(),
        )


def pop_values(stack: list[Number], count: int) -> list[Number]:
    """Pop ``count`` values, returned in the order they were pushed.

    The stack is left untouched when it holds fewer than ``count`` values.
    """
    if count > 0 and not stack:
        raise StackEmptyError()
    if len(stack) < count:
        raise StackUnderflowError(count, len(stack))
    values = stack[len(stack) - count :]
    del stack[len(stack) - count :]
    return values


def parse_label(text: str) -> int | str:
    """Branch labels are relative depths when numeric, block names otherwise."""
    if text.isascii() and text.isdigit():
        return int(text)
    return text


def _operand_count(instr: Instruction) -> int:
    if isinstance(instr, Comparison):
        return 1 if instr.kind in ops.COMPARISON_UNARY else 2
    if isinstance(instr, Bitwise):
        return 1 if instr.kind in ops.BITWISE_UNARY else 2
    if isinstance(instr, FloatInstruction):
        return 2 if instr.kind in ops.FLOAT_BINARY else 1
    return 2


def execute_instruction(instr: Instruction, state: ExecutionState) -> StepResult:
    """Execute one instruction and report where control goes next."""
    stack = state.stack
    continuation: Continuation | None = None
    action = describe_instruction(instr)

    if isinstance(instr, SimpleInstruction):
        if instr.kind == ops.UNREACHABLE:
            raise UnreachableError()
        elif instr.kind == ops.NOP:
            pass
        elif instr.kind == ops.RETURN:
            continuation = CONTINUE_RETURN
        elif instr.kind == ops.DROP:
            (value,) = pop_values(stack, 1)
            action = f"{action}: {value}"
        else:
            raise UnimplementedError(str(instr))

    elif isinstance(instr, BlockStart):
        if instr.kind == ops.IF:
            (condition,) = pop_values(stack, 1)
            taken = not is_zero(condition)
            if not taken:
                continuation = CONTINUE_ELSE
            arm = "then" if taken else "else"
            action = f"{action} (condition {condition}, taking the {arm} arm)"
        elif instr.kind == ops.ELSE:
            continuation = CONTINUE_END

    elif isinstance(instr, Branch):
        if instr.is_table:
            raise UnimplementedError(str(instr))
        if instr.is_conditional:
            (condition,) = pop_values(stack, 1)
            if is_zero(condition):
                action = f"{action} (condition {condition}, not taken)"
            else:
                continuation = Continuation.block(parse_label(instr.default_label))
                action = f"{action} (condition {condition}, taken)"
        else:
            continuation = Continuation.block(parse_label(instr.default_label))

    elif isinstance(instr, DataInstruction):
        _execute_data(instr, state)
        if instr.kind in (ops.LOCAL_GET, ops.GLOBAL_GET):
            action = f"{action}: {stack[-1]}"
        else:
            table = state.module.globals if instr.kind == ops.GLOBAL_SET else state.locals
            action = f"{action}: {table.get(instr.location)}"

    elif isinstance(instr, Const):
        stack.append(instr.value)

    elif isinstance(instr, (Comparison, Arithmetic, Bitwise, FloatInstruction)):
        operands = pop_values(stack, _operand_count(instr))
        result = evaluate(instr.kind, instr.value_type, *operands)
        stack.append(result)
        action = describe_result(instr, operands, result)

    elif isinstance(instr, Conversion):
        (value,) = pop_values(stack, 1)
        result = convert(instr.op, value)
        stack.append(result)
        action = describe_result(instr, [value], result)

    elif isinstance(instr, (Call, MemoryInstruction, UnknownInstruction)):
        raise UnimplementedError(str(instr))

    else:
        raise UnimplementedError(type(instr).__name__)

    return StepResult(
        instruction=instr,
        locals_snapshot=state.locals.snapshot(),
        action=action,
        continuation=continuation,
    )


def _execute_data(instr: DataInstruction, state: ExecutionState) -> None:
    stack = state.stack
    kind = instr.kind
    location = instr.location

    if kind == ops.LOCAL_GET:
        stack.append(state.locals.get(location))
    elif kind == ops.GLOBAL_GET:
        stack.append(state.module.globals.get(location))
    elif kind == ops.LOCAL_SET:
        state.locals.check_writable(location)
        (value,) = pop_values(stack, 1)
        state.locals.set(location, value)
    elif kind == ops.GLOBAL_SET:
        state.module.globals.check_writable(location)
        (value,) = pop_values(stack, 1)
        state.module.globals.set(location, value)
    elif kind == ops.LOCAL_TEE:
        state.locals.check_writable(location)
        (value,) = pop_values(stack, 1)
        state.locals.set(location, value)
        stack.append(value)
    else:
        # memory.size and memory.grow
        raise UnimplementedError(str(instr))
