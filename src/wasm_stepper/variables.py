"""Named and indexed storage for locals and globals."""

from typing import Iterable

from .errors import DataNotFoundError, ImmutableGlobalError
from .types import Number


class VariableTable:
    """Ordered values with a stable name -> index mapping.

    A location that looks like a number indexes ``values`` directly, any
    other location is looked up in ``mapping``.
    """

    def __init__(
        self,
        values: list[Number] | None = None,
        mapping: dict[str, int] | None = None,
        kind: str = "Local",
        immutable: Iterable[int] = (),
    ) -> None:
        self.values: list[Number] = list(values or [])
        self.mapping: dict[str, int] = dict(mapping or {})
        self.kind = kind
        self.immutable = frozenset(immutable)

    @classmethod
    def from_pairs(
        cls, pairs: Iterable[tuple[str | None, Number]], kind: str = "Local"
    ) -> "VariableTable":
        """Build a table from (name or None, value) pairs in index order."""
        table = cls(kind=kind)
        for name, value in pairs:
            if name is not None:
                table.mapping[name] = len(table.values)
            table.values.append(value)
        return table

    def __len__(self) -> int:
        return len(self.values)

    def __contains__(self, location: str) -> bool:
        return self.index_of(location) is not None

    def __repr__(self) -> str:
        return f"VariableTable({self.kind}, values={self.values}, mapping={self.mapping})"

    def index_of(self, location: str | int) -> int | None:
        """Resolve a location to an index, or None if it does not exist."""
        if isinstance(location, int):
            index = location
        elif location.isascii() and location.isdigit():
            index = int(location)
        else:
            index = self.mapping.get(location)
            if index is None:
                return None
        if 0 <= index < len(self.values):
            return index
        return None

    def get(self, location: str | int) -> Number:
        index = self.index_of(location)
        if index is None:
            raise DataNotFoundError(str(location), self.kind)
        return self.values[index]

    def check_writable(self, location: str | int) -> int:
        """Resolve a location for writing, raising if it cannot be set."""
        index = self.index_of(location)
        if index is None:
            raise DataNotFoundError(str(location), self.kind)
        if index in self.immutable:
            raise ImmutableGlobalError(str(location))
        return index

    def set(self, location: str | int, value: Number) -> None:
        self.values[self.check_writable(location)] = value

    def snapshot(self) -> list[Number]:
        return list(self.values)
