"""Unit tests for Elixir normalization and call extraction."""

from typing import Any

import pytest
from quoted import (
    alias,
    aliases,
    block,
    def_,
    default,
    defmodule,
    field,
    local,
    math_module,
    pipe,
    remote,
    var,
)

from codemap.core.exceptions import NormalizationError
from codemap.core.models import Attribute, BlockKind, Call, ModuleBlock, Position
from codemap.languages import ElixirNormalizer, iter_modules, select_module


def normalize(tree: Any, module: str | None = None) -> ModuleBlock:
    return ElixirNormalizer().normalize(tree, module)


def calls_of(body: Any, *statements: Any) -> list[Call]:
    """Calls extracted from a single-clause function in module ``M``."""
    block_ = normalize(defmodule("M", *statements, def_("f", [], body)))
    return list(block_.clauses("f")[0].calls)


def sig(calls: list[Call]) -> list[tuple[str | None, str, int]]:
    return [(c.module, c.name, c.arity) for c in calls]


class TestModuleHeader:
    """Tests for module declaration handling."""

    def test_module_name_from_aliases(self) -> None:
        """Dotted aliases form the module identifier."""
        result = normalize(defmodule("Test.Support.Math"))

        assert result.name == "Test.Support.Math"
        assert result.kind is BlockKind.MODULE
        assert result.children == ()

    def test_single_statement_body(self) -> None:
        """A body without __block__ is one statement."""
        result = normalize(defmodule("M", def_("f", [], None)))

        assert [f.name for f in result.children] == ["f"]

    def test_module_position(self) -> None:
        """Module position comes from the defmodule metadata."""
        result = normalize(defmodule("M", line=1))

        assert result.position == Position(line=1)

    @pytest.mark.parametrize(
        "tree",
        [
            "not a tree",
            ("def", [], []),
            ("defmodule", [], [aliases("M")]),
            ("defmodule", [], [aliases("M"), []]),
            ("defmodule", [], [var("name"), [("do", None)]]),
        ],
    )
    def test_unrecognized_shape_raises(self, tree: Any) -> None:
        """Anything that is not defmodule Name do ... end fails."""
        with pytest.raises(NormalizationError):
            normalize(tree)

    def test_nested_modules_named_after_parent(self) -> None:
        """Nested modules are indexed as Outer.Inner."""
        tree = defmodule(
            "Outer",
            defmodule("Inner", def_("inner", [], None)),
            def_("outer", [], None),
        )

        assert [name for name, _ in iter_modules(tree)] == ["Outer", "Outer.Inner"]

        inner = normalize(select_module(tree, "Outer.Inner"), "Outer.Inner")
        assert inner.name == "Outer.Inner"
        assert [f.name for f in inner.children] == ["inner"]

        outer = normalize(tree)
        assert [f.name for f in outer.children] == ["outer"]

    def test_several_modules_in_one_tree(self) -> None:
        """A __block__ of defmodules yields each module."""
        tree = block(defmodule("A"), defmodule("B"))

        assert [name for name, _ in iter_modules(tree)] == ["A", "B"]
        assert select_module(tree, "C") is None


class TestFunctionClauses:
    """Tests for def/defp classification."""

    def test_clauses_are_not_merged(self) -> None:
        """Each clause of a multi-clause function is its own block."""
        tree = defmodule(
            "M",
            def_("fact", [0], 1),
            def_(
                "fact",
                ["n"],
                local("*", var("n"), local("fact", local("-", var("n"), 1))),
            ),
        )
        result = normalize(tree)

        assert len(result.children) == 2
        assert [c.arity for c in result.clauses("fact")] == [1, 1]
        assert result.children[0].calls == ()
        assert sig(list(result.children[1].calls)) == [
            (None, "*", 2),
            (None, "fact", 1),
            (None, "-", 2),
        ]

    def test_private_functions(self) -> None:
        """defp marks the clause private."""
        result = normalize(defmodule("M", def_("helper", ["x"], None, private=True)))

        assert result.children[0].private is True
        assert result.children[0].kind is BlockKind.FUNCTION

    def test_default_arguments(self) -> None:
        """Parameters with defaults count toward arity and defaults."""
        tree = defmodule("M", def_("greet", ["name", default("greeting", "hi")], None))
        func = normalize(tree).children[0]

        assert func.arity == 2
        assert func.defaults == 1
        assert func.params == ("name", "greeting")

    def test_bodiless_head_is_ignored(self) -> None:
        """A head that only declares defaults is not a clause."""
        head = ("def", [], [("greet", [], [var("name"), default("greeting", "hi")])])
        tree = defmodule("M", head, def_("greet", ["name", "greeting"], None))

        assert len(normalize(tree).children) == 1

    def test_zero_arity_without_parens(self) -> None:
        """def run do ... end has arity 0."""
        tree = defmodule("M", ("def", [], [("run", [], None), [("do", local("go"))]]))
        func = normalize(tree).children[0]

        assert func.arity == 0
        assert func.params == ()
        assert sig(list(func.calls)) == [(None, "go", 0)]

    def test_guard_calls_come_first(self) -> None:
        """Calls in a when guard precede body calls."""
        tree = defmodule(
            "M",
            def_("f", ["x"], local("length", var("x")), guard=local("is_list", var("x"))),
        )
        func = normalize(tree).children[0]

        assert func.arity == 1
        assert sig(list(func.calls)) == [(None, "is_list", 1), (None, "length", 1)]

    def test_attributes(self) -> None:
        """@key value statements become attributes."""
        tree = defmodule(
            "M",
            ("@", [], [("moduledoc", [], ["Docs"])]),
            def_("f", [], None),
        )
        result = normalize(tree)

        assert result.attributes == (Attribute(key="moduledoc", value="Docs"),)
        assert len(result.children) == 1

    def test_positions(self) -> None:
        """Clause and call positions come from metadata."""
        tree = defmodule("M", def_("f", [], local("g", line=3), line=2))
        func = normalize(tree).children[0]

        assert func.position == Position(line=2)
        assert func.calls[0].position == Position(line=3)


class TestCallExtraction:
    """Tests for call extraction rules."""

    def test_nested_calls_follow_their_parent(self) -> None:
        """A call is recorded before the calls in its arguments."""
        calls = calls_of(local("a", local("b", local("c")), local("d")))

        assert sig(calls) == [
            (None, "a", 2),
            (None, "b", 1),
            (None, "c", 0),
            (None, "d", 0),
        ]

    def test_qualified_call(self) -> None:
        """Mod.fun(args) has the argument count as arity."""
        calls = calls_of(remote("String.Chars", "to_string", var("s")))

        assert calls == [Call(name="to_string", arity=1, module="String.Chars")]

    def test_unknown_single_segment_passes_through(self) -> None:
        """A bare segment with no alias entry stays as written."""
        assert sig(calls_of(remote("Enum", "count", var("xs")))) == [("Enum", "count", 1)]

    def test_simple_alias(self) -> None:
        """alias A.B lets B stand for A.B."""
        calls = calls_of(remote("Repo", "get", 1), alias("MyApp.Repo"))

        assert sig(calls) == [("MyApp.Repo", "get", 1)]

    def test_alias_as(self) -> None:
        """alias A.B, as: X lets X stand for A.B."""
        calls = calls_of(remote("U", "new"), alias("MyApp.Accounts.User", as_="U"))

        assert sig(calls) == [("MyApp.Accounts.User", "new", 0)]

    def test_grouped_alias(self) -> None:
        """alias P.{A, B} adds one prefixed entry per target."""
        grouped = ((".", [], [aliases("MyApp"), "{}"]), [], [aliases("Foo"), aliases("Bar")])
        body = local("run", remote("Foo", "a"), remote("Bar", "b"))

        for statement in (("alias", [], [grouped]), ("alias", [], [block(grouped)])):
            calls = calls_of(body, statement)
            assert sig(calls) == [
                (None, "run", 2),
                ("MyApp.Foo", "a", 0),
                ("MyApp.Bar", "b", 0),
            ]

    def test_alias_and_full_name_are_identical(self) -> None:
        """Alias-qualified and fully-qualified calls give equal records."""
        aliased = calls_of(remote("Repo", "get", var("id"), line=4), alias("MyApp.Repo"))
        full = calls_of(remote("MyApp.Repo", "get", var("id"), line=4))

        assert aliased == full

    def test_current_module(self) -> None:
        """__MODULE__ resolves to the enclosing module."""
        current = ("__MODULE__", [], None)
        sub = ("__aliases__", [], [current, "Sub"])
        calls = calls_of(local("both", remote(current, "helper"), remote(sub, "run")))

        assert sig(calls) == [(None, "both", 2), ("M", "helper", 0), ("M.Sub", "run", 0)]

    def test_erlang_module(self) -> None:
        """Atom receivers keep their colon form."""
        calls = calls_of(remote(":ets", "lookup", var("t"), var("k")))

        assert sig(calls) == [(":ets", "lookup", 2)]

    def test_elixir_prefixed_atom(self) -> None:
        """An Elixir.-prefixed atom names an Elixir module."""
        assert sig(calls_of(remote(":Elixir.Foo", "bar"))) == [("Foo", "bar", 0)]

    def test_dynamic_receiver(self) -> None:
        """A variable receiver gives a dynamic call, then its receiver's calls."""
        calls = calls_of(remote(local("pick_module"), "run", var("x")))

        assert calls[0] == Call(name="run", arity=1, module=None, dynamic=True)
        assert sig(calls[1:]) == [(None, "pick_module", 0)]

    def test_field_access_is_not_a_call(self) -> None:
        """map.field without parens records only the receiver's calls."""
        assert calls_of(field(var("user"), "name")) == []
        assert sig(calls_of(field(local("current_user"), "name"))) == [
            (None, "current_user", 0)
        ]

    def test_anonymous_function_call(self) -> None:
        """fun.(args) records only the argument calls."""
        calls = calls_of(((".", [], [var("fun")]), [], [local("x")]))

        assert sig(calls) == [(None, "x", 0)]

    def test_pipeline(self) -> None:
        """x |> f() |> g() gives [f/1, g/1]."""
        calls = calls_of(pipe(pipe(var("x"), local("f")), local("g")))

        assert sig(calls) == [(None, "f", 1), (None, "g", 1)]

    def test_deep_pipeline(self) -> None:
        """Every stage gets one extra argument regardless of depth."""
        body: Any = var("x")
        for name in ["a", "b", "c", "d", "e"]:
            body = pipe(body, local(name))

        assert sig(calls_of(body)) == [(None, n, 1) for n in ["a", "b", "c", "d", "e"]]

    def test_pipeline_into_qualified_call(self) -> None:
        """The piped value counts toward a qualified call's arity."""
        body = pipe(local("load"), remote("Enum", "map", local("mapper")))

        assert sig(calls_of(body)) == [
            (None, "load", 0),
            ("Enum", "map", 2),
            (None, "mapper", 0),
        ]

    def test_pipeline_into_bare_name(self) -> None:
        """A bare name on the right is a call of arity 1."""
        assert sig(calls_of(pipe(var("x"), var("f")))) == [(None, "f", 1)]

    def test_with_chain(self) -> None:
        """with: clause right-hand sides, then do body, then else body."""
        body = (
            "with",
            [],
            [
                ("<-", [], [var("a"), local("fetch")]),
                local("check", var("a")),
                ("<-", [], [var("b"), local("parse", var("a"))]),
                [("do", local("ok", var("b"))), ("else", local("fail"))],
            ],
        )

        assert sig(calls_of(body)) == [
            (None, "fetch", 0),
            (None, "check", 1),
            (None, "parse", 1),
            (None, "ok", 1),
            (None, "fail", 0),
        ]

    def test_groupings_and_sequences(self) -> None:
        """Tuples, lists and maps recurse into their elements in order."""
        body = [
            (local("a"), local("b")),
            ("{}", [], [local("c"), local("d"), local("e")]),
            ("%{}", [], [("key", local("f"))]),
        ]

        assert [c.name for c in calls_of(body)] == ["a", "b", "c", "d", "e", "f"]

    def test_case_clauses(self) -> None:
        """Clause patterns contribute nothing; guards and bodies do."""
        clauses = [
            ("->", [], [[("when", [], [var("y"), local("is_integer", var("y"))])], local("num")]),
            ("->", [], [[var("_")], local("other")]),
        ]
        body = local("case", var("x"), [("do", clauses)])

        assert sig(calls_of(body)) == [
            (None, "case", 2),
            (None, "is_integer", 1),
            (None, "num", 0),
            (None, "other", 0),
        ]

    def test_anonymous_function(self) -> None:
        """fn bodies are walked; fn itself is not a call."""
        body = ("fn", [], [("->", [], [[var("x")], local("work", var("x"))])])

        assert sig(calls_of(body)) == [(None, "work", 1)]

    def test_captures(self) -> None:
        """&Mod.fun/n and &fun/n are calls with the captured arity."""
        body = [
            ("&", [], [("/", [], [remote("Repo", "all"), 1])]),
            ("&", [], [("/", [], [var("helper"), 2])]),
        ]
        calls = calls_of(body, alias("MyApp.Repo"))

        assert sig(calls) == [("MyApp.Repo", "all", 1), (None, "helper", 2)]

    def test_captures_quoted_without_parens(self) -> None:
        """&mod.fun/2 is a dynamic call, not a field access divided by 2."""
        body = [
            ("&", [], [("/", [], [field(var("mod"), "fun"), 2])]),
            ("&", [], [("/", [], [field(aliases("Repo"), "all"), 1])]),
        ]
        calls = calls_of(body, alias("MyApp.Repo"))

        assert calls[0] == Call(name="fun", arity=2, module=None, dynamic=True)
        assert sig(calls[1:]) == [("MyApp.Repo", "all", 1)]

    def test_literals_have_no_calls(self) -> None:
        """Leaves contribute nothing."""
        assert calls_of([1, "two", 3.0, None, True, var("x"), aliases("Foo")]) == []

    def test_math_module(self) -> None:
        """Operators are unqualified calls of arity 2."""
        result = normalize(math_module())

        assert [(f.name, f.arity) for f in result.children] == [("add", 2), ("subtract", 2)]
        assert sig(list(result.children[0].calls)) == [(None, "+", 2)]
        assert sig(list(result.children[1].calls)) == [(None, "-", 2)]
