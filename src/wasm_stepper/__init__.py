"""Step-by-step WebAssembly execution.

Runs function bodies produced by a WebAssembly text compiler one instruction
at a time and records a trace of the value stack and locals for
visualization.
"""

from .blocks import build_instruction_tree, check_tree
from .config import ExecutionConfig
from .conversion import convert, decode_literal, encode_literal
from .decoder import (
    decode_function,
    decode_global,
    decode_instruction,
    decode_memory,
    decode_tree,
)
from .errors import (
    WasmError,
    DecodeError,
    CompileError,
    StackError,
    StackEmptyError,
    StackUnderflowError,
    TypeMismatchError,
    DataNotFoundError,
    ImmutableGlobalError,
    NameResolutionError,
    UnreachableError,
    UnimplementedError,
    TrapError,
    StepLimitExceededError,
    ExecutionError,
)
from .executor import ExecutionState, ModuleState, execute_instruction
from .navigator import ControlFlowNavigator
from .numeric import evaluate
from .trace import TraceStepper, encode_trace, run_function, trace_tree
from .types import (
    Instruction,
    SimpleInstruction,
    BlockStart,
    Branch,
    Call,
    DataInstruction,
    MemoryInstruction,
    Const,
    Comparison,
    Arithmetic,
    Bitwise,
    FloatInstruction,
    Conversion,
    UnknownInstruction,
    Signature,
    BlockNode,
    InstructionTree,
    FunctionDescriptor,
    GlobalDescriptor,
    MemoryDescriptor,
    Continuation,
    StepResult,
    TraceEntry,
)
from .variables import VariableTable

__version__ = "0.1.0"

__all__ = [
    # Main API
    "run_function",
    "trace_tree",
    "encode_trace",
    "TraceStepper",
    "ExecutionConfig",
    # Decoding
    "decode_instruction",
    "decode_tree",
    "decode_function",
    "decode_global",
    "decode_memory",
    "decode_literal",
    "encode_literal",
    "build_instruction_tree",
    "check_tree",
    # Execution internals
    "evaluate",
    "convert",
    "VariableTable",
    "ModuleState",
    "ExecutionState",
    "execute_instruction",
    "ControlFlowNavigator",
    # Types
    "Instruction",
    "SimpleInstruction",
    "BlockStart",
    "Branch",
    "Call",
    "DataInstruction",
    "MemoryInstruction",
    "Const",
    "Comparison",
    "Arithmetic",
    "Bitwise",
    "FloatInstruction",
    "Conversion",
    "UnknownInstruction",
    "Signature",
    "BlockNode",
    "InstructionTree",
    "FunctionDescriptor",
    "GlobalDescriptor",
    "MemoryDescriptor",
    "Continuation",
    "StepResult",
    "TraceEntry",
    # Errors
    "WasmError",
    "DecodeError",
    "CompileError",
    "StackError",
    "StackEmptyError",
    "StackUnderflowError",
    "TypeMismatchError",
    "DataNotFoundError",
    "ImmutableGlobalError",
    "NameResolutionError",
    "UnreachableError",
    "UnimplementedError",
    "TrapError",
    "StepLimitExceededError",
    "ExecutionError",
]
