"""Exception classes for the WebAssembly stepper."""

from typing import Any


class WasmError(Exception):
    """Base class for all stepper errors."""

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for the visualization layer."""
        return {"message": str(self)}


class DecodeError(WasmError):
    """Error while decoding serialized compiler output."""

    pass


class CompileError(WasmError):
    """Error reported by the compiler side, passed through unchanged."""

    def __init__(
        self,
        stage: str,
        message: str | None = None,
        span: tuple[int, int] | None = None,
    ) -> None:
        self.stage = stage
        self.message = message
        self.span = span
        super().__init__(self._render())

    def _render(self) -> str:
        head = f"[{self.stage} Error"
        if self.span is not None:
            head += f"@{self.span[0]}-{self.span[1]}"
        head += "]"
        if self.message is not None:
            head += f": {self.message}"
        return head

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompileError":
        span = data.get("span")
        if isinstance(span, dict):
            span = (span["start"], span["end"])
        elif span is not None:
            span = (span[0], span[1])
        return cls(data.get("stage", "Parsing"), data.get("message"), span)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"message": str(self), "stage": self.stage}
        if self.span is not None:
            result["span"] = {"start": self.span[0], "end": self.span[1]}
        return result


class StackError(WasmError):
    """Not enough values on the value stack."""

    pass


class StackEmptyError(StackError):
    def __init__(self) -> None:
        super().__init__("Stack is empty")


class StackUnderflowError(StackError):
    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Not enough values on stack: expected at least {expected}, "
            f"but only got {actual}"
        )


class TypeMismatchError(WasmError):
    def __init__(self, message: str = "Types do not match") -> None:
        super().__init__(message)


class DataNotFoundError(WasmError):
    """A local, global or memory reference that does not resolve."""

    def __init__(self, location: str, kind: str) -> None:
        self.location = location
        self.kind = kind
        super().__init__(f"{kind} variable '{location}' not found")


class ImmutableGlobalError(WasmError):
    def __init__(self, location: str) -> None:
        self.location = location
        super().__init__(f"Cannot set immutable global '{location}'")


class NameResolutionError(WasmError):
    """No enclosing block matches a branch label."""

    def __init__(self, label: int | str) -> None:
        self.label = label
        super().__init__(f"Cannot resolve label '{label}'")


class UnreachableError(WasmError):
    def __init__(self, message: str = "Reached an unreachable statement") -> None:
        super().__init__(message)


class UnimplementedError(WasmError):
    """A recognized instruction this stepper does not execute."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"Unimplemented instruction: {description}")


class TrapError(WasmError):
    """Runtime trap (division by zero, integer overflow, etc.)."""

    pass


class StepLimitExceededError(WasmError):
    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Step limit of {limit} instructions exceeded")


class ExecutionError(WasmError):
    """A runtime error annotated with the step that raised it."""

    def __init__(self, step: int, instruction: str, cause: WasmError) -> None:
        self.step = step
        self.instruction = instruction
        self.cause = cause
        super().__init__(f"Step {step} ({instruction}): {cause}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": str(self),
            "step": self.step,
            "instruction": self.instruction,
        }
