"""Execution settings."""

import os
from dataclasses import dataclass

from .errors import WasmError


MAX_STEPS_ENV = "WASM_STEPPER_MAX_STEPS"


@dataclass(frozen=True)
class ExecutionConfig:
    """Settings for a single run.

    ``max_steps`` bounds the number of executed instructions; None runs
    until the function returns, which never happens for an endless loop.
    """

    max_steps: int | None = None

    def __post_init__(self) -> None:
        if self.max_steps is not None and self.max_steps < 0:
            raise WasmError(f"max_steps must not be negative, got {self.max_steps}")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ExecutionConfig":
        """Read settings from environment variables, unset means default."""
        environ = os.environ if environ is None else environ
        value = environ.get(MAX_STEPS_ENV, "").strip()
        if not value:
            return cls()
        try:
            return cls(max_steps=int(value))
        except ValueError:
            raise WasmError(f"{MAX_STEPS_ENV} must be an integer, got {value!r}") from None
