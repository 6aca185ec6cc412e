"""Data models for Codemap."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, NamedTuple


class BlockKind(Enum):
    """Kinds of normalized blocks."""

    MODULE = "module"
    FUNCTION = "function"


@dataclass(frozen=True)
class Position:
    """Source position of a node, taken from its metadata."""

    line: int | None = None
    column: int | None = None

    def __str__(self) -> str:
        if self.line is None:
            return "?"
        if self.column is None:
            return str(self.line)
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Call:
    """A call extracted from a function body.

    ``module`` is None for unqualified calls, which resolve against the
    calling module at traversal time. ``dynamic`` marks calls whose receiver
    is a runtime value, so the target module cannot be known statically.
    """

    name: str
    arity: int
    module: str | None = None
    position: Position | None = None
    dynamic: bool = False


@dataclass(frozen=True)
class Attribute:
    """A module attribute such as ``@moduledoc``."""

    key: str
    value: object = None


@dataclass(frozen=True)
class Block:
    """Base for normalized blocks."""

    kind: ClassVar[BlockKind]

    name: str


@dataclass(frozen=True)
class FunctionBlock(Block):
    """One function clause and the calls it makes, in call-site order.

    ``arity`` and ``params`` are None when no arity information is known.
    """

    kind: ClassVar[BlockKind] = BlockKind.FUNCTION

    calls: tuple[Call, ...] = ()
    arity: int | None = None
    params: tuple[str, ...] | None = None
    defaults: int = 0
    private: bool = False
    position: Position | None = None


@dataclass(frozen=True)
class ModuleBlock(Block):
    """A normalized module: function clauses and attributes in source order."""

    kind: ClassVar[BlockKind] = BlockKind.MODULE

    children: tuple[FunctionBlock, ...] = ()
    attributes: tuple[Attribute, ...] = ()
    position: Position | None = None

    def clauses(self, name: str) -> list[FunctionBlock]:
        """All clauses with the given function name, in declaration order."""
        return [f for f in self.children if f.name == name]


class FunctionRef(NamedTuple):
    """A (module, function, arity) triple identifying a call graph node."""

    module: str
    function: str
    arity: int

    def __str__(self) -> str:
        return f"{self.module}.{self.function}/{self.arity}"


@dataclass
class ScanStats:
    """Statistics from a rescan."""

    modules: int = 0
    functions: int = 0
    calls: int = 0
    failed: int = 0
    removed: int = 0
    errors: list[str] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"ScanStats(modules={self.modules}, functions={self.functions}, "
            f"calls={self.calls}, failed={self.failed}, removed={self.removed}, "
            f"errors={len(self.errors)})"
        )
