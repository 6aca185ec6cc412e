"""Builders for Elixir quoted trees used across the test suite."""

from typing import Any


def meta(line: int | None = None, **extra: Any) -> list[tuple[str, Any]]:
    items: list[tuple[str, Any]] = []
    if line is not None:
        items.append(("line", line))
    items.extend(extra.items())
    return items


def var(name: str, line: int | None = None) -> tuple:
    """A variable: ``(name, meta, nil)``."""
    return (name, meta(line), None)


def aliases(name: str) -> tuple:
    """``Foo.Bar`` as an ``__aliases__`` node."""
    return ("__aliases__", [], name.split("."))


def local(name: str, *args: Any, line: int | None = None) -> tuple:
    """An unqualified call ``name(args)``."""
    return (name, meta(line), list(args))


def remote(target: Any, name: str, *args: Any, line: int | None = None) -> tuple:
    """A qualified call. ``"Foo.Bar"`` is an alias, ``":ets"`` an atom."""
    if isinstance(target, str) and target.startswith(":"):
        target = target[1:]
    elif isinstance(target, str):
        target = aliases(target)
    return ((".", meta(line), [target, name]), meta(line), list(args))


def field(receiver: Any, name: str) -> tuple:
    """Field access ``receiver.name`` without parentheses."""
    return ((".", [], [receiver, name]), meta(no_parens=True), [])


def pipe(left: Any, right: Any) -> tuple:
    return ("|>", [], [left, right])


def block(*statements: Any) -> tuple:
    return ("__block__", [], list(statements))


def def_(
    name: str,
    params: list[Any],
    body: Any,
    private: bool = False,
    guard: Any = None,
    line: int | None = None,
) -> tuple:
    """A function clause with a ``do`` body. String params become variables."""
    head: Any = (name, meta(line), [var(p) if isinstance(p, str) else p for p in params])
    if guard is not None:
        head = ("when", [], [head, guard])
    return ("defp" if private else "def", meta(line), [head, [("do", body)]])


def default(param: str, value: Any) -> tuple:
    """A parameter with a default value, ``param \\\\ value``."""
    return ("\\\\", [], [var(param), value])


def alias(name: str, as_: str | None = None) -> tuple:
    args: list[Any] = [aliases(name)]
    if as_ is not None:
        args.append([("as", aliases(as_))])
    return ("alias", [], args)


def defmodule(name: Any, *statements: Any, line: int | None = None) -> tuple:
    if not statements:
        body = None
    elif len(statements) == 1:
        body = statements[0]
    else:
        body = block(*statements)
    name_node = aliases(name) if isinstance(name, str) else name
    return ("defmodule", meta(line), [name_node, [("do", body)]])


def math_module() -> tuple:
    """``Math`` with ``add(a, b) = a + b`` and ``subtract(a, b) = a - b``."""
    return defmodule(
        "Math",
        def_("add", ["a", "b"], local("+", var("a"), var("b")), line=2),
        def_("subtract", ["a", "b"], local("-", var("a"), var("b")), line=3),
    )


def caller_module() -> tuple:
    """``Caller`` with ``recursive_call()`` calling itself."""
    return defmodule(
        "Caller",
        def_("recursive_call", [], local("recursive_call")),
    )
