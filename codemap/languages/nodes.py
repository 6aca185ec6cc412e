"""Normalized node kinds that call extraction dispatches over.

Classification maps every raw syntax shape onto exactly one of these kinds,
so extraction never looks at a concrete grammar.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from codemap.core.models import Position


class TargetKind(Enum):
    """How the receiver of a qualified call is written."""

    ALIAS = "alias"  # Foo.Bar.fun()
    ATOM = "atom"  # :ets.lookup()
    CURRENT = "current"  # __MODULE__.fun()
    DYNAMIC = "dynamic"  # some_var.fun()


@dataclass(frozen=True)
class Leaf:
    """Literal, variable or module reference. Contributes no calls.

    ``name`` is set for bare identifiers so a pipeline can call them.
    """

    name: str | None = None
    position: Position | None = None


@dataclass(frozen=True)
class QualifiedCall:
    """``Mod.fun(args)``. ``segments`` holds the alias parts or the atom."""

    target: TargetKind
    segments: tuple[str, ...]
    name: str
    arity: int
    args: tuple[Node, ...] = ()
    receiver: Node | None = None
    position: Position | None = None


@dataclass(frozen=True)
class LocalCall:
    """``fun(args)`` with no module qualifier."""

    name: str
    arity: int
    args: tuple[Node, ...] = ()
    position: Position | None = None


@dataclass(frozen=True)
class Pipeline:
    """``left |> right``."""

    left: Node
    right: Node


@dataclass(frozen=True)
class WithChain:
    """Conditional-binding chain: clause expressions, success and failure bodies."""

    clauses: tuple[Node, ...]
    body: Node
    otherwise: Node | None = None


@dataclass(frozen=True)
class Grouping:
    """Tuple-like literal."""

    elements: tuple[Node, ...]


@dataclass(frozen=True)
class Sequence:
    """List-like literal (lists, maps, structs, binaries)."""

    elements: tuple[Node, ...]


@dataclass(frozen=True)
class StatementBlock:
    """Nested statements, evaluated in order."""

    statements: tuple[Node, ...]


Node = Union[
    QualifiedCall,
    LocalCall,
    Pipeline,
    WithChain,
    Grouping,
    Sequence,
    StatementBlock,
    Leaf,
]
