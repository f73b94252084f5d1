"""
Unit Tests: Query Engine

definition, hover, completion and semantic spans over a realistic index.
"""

import pytest

from kinx_lsp.indexing.application.query_engine import QueryEngine, format_signature
from kinx_lsp.indexing.domain.builtins import BUILTIN_TYPE_NAMES, KEYWORDS
from kinx_lsp.indexing.domain.models import (
    CompletionKind,
    DefinitionEntry,
    DocumentIndex,
    Location,
    Position,
    Range,
    ReferenceEntry,
    SemanticSpan,
    SemanticTag,
    SymbolKind,
)

SOURCE = "\n".join(
    [
        "class A { public m(v) { return v; } }",
        "class B : A { }",
        "var b = new B();",
        "var n = 10;",
        "function add(p, q) { return p + q; }",
        "var r = add(n, 2);",
        "b.m(1);",
        "const K = 3;",
    ]
)

REPORT = "\n".join(
    [
        "#scope\tstart\tclass\tA",
        "#scope\tstart\tfunction\tm",
        "#arg\t0\tInt",
        "#define\tvar\tv\tmain.k\t1",
        "#ref\tvar\tv\tmain.k\t1\tmain.k\t1",
        "#scope\tend\tfunction\tm",
        "#define\tpublic\tm\tmain.k\t1\tFunction#Str",
        "#scope\tend\tclass\tA",
        "#define\tclass\tA\tmain.k\t1",
        "#define\tclass\tB\tmain.k\t2\tA",
        "#define\tvar\tb\tmain.k\t3",
        "#vartype\tb\tB",
        "#define\tvar\tn\tmain.k\t4\tInt",
        "#scope\tstart\tfunction\tadd",
        "#arg\t0\tInt",
        "#arg\t1\tInt",
        "#define\tvar\tp\tmain.k\t5",
        "#define\tvar\tq\tmain.k\t5",
        "#ref\tvar\tp\tmain.k\t5\tmain.k\t5",
        "#ref\tvar\tq\tmain.k\t5\tmain.k\t5",
        "#scope\tend\tfunction\tadd",
        "#define\tfunction\tadd\tmain.k\t5\tFunction#Int",
        "#define\tvar\tr\tmain.k\t6\tInt",
        "#ref\tvar\tadd\tmain.k\t6\tmain.k\t5\tFunction#Int",
        "#ref\tvar\tn\tmain.k\t6\tmain.k\t4\tInt",
        "#call\tadd\tmain.k\t6\tmain.k\t5",
        "#callarg\t0\tInt",
        "#callarg\t1\tInt",
        "#callend",
        "#ref\tvar\tb\tmain.k\t7\tmain.k\t3",
        "#method\tB#m\tmain.k\t7\t3\t4",
        "#define\tconst\tK\tmain.k\t8\tInt",
    ]
)


@pytest.fixture
def result(run_pass):
    return run_pass(SOURCE, REPORT)


@pytest.fixture
def index(result):
    return result.index


@pytest.fixture
def engine():
    return QueryEngine()


def labels(candidates):
    return [candidate.label for candidate in candidates]


def test_only_r_is_unused(result):
    assert [d.message for d in result.diagnostics] == ["The variable(r) is defined but not used."]


class TestDefinition:
    def test_variable_reference(self, engine, index):
        assert engine.definition(index, Position(6, 0)) == Location(index.uri, Range.on_line(2, 4, 5))

    def test_method_reference(self, engine, index):
        assert engine.definition(index, Position(6, 2)) == Location(index.uri, Range.on_line(0, 17, 18))

    def test_range_end_is_inclusive(self, engine, index):
        assert engine.definition(index, Position(5, 11)) == Location(index.uri, Range.on_line(4, 9, 12))

    def test_no_reference(self, engine, index):
        assert engine.definition(index, Position(3, 8)) is None


class TestHover:
    def test_function_reference(self, engine, index):
        hover = engine.hover(index, Position(5, 9))

        assert hover.contents == "function add(Int, Int): Int"
        assert hover.range == Range.on_line(5, 8, 11)

    def test_method_reference(self, engine, index):
        assert engine.hover(index, Position(6, 2)).contents == "function A#m(Int): Str"

    def test_typed_variable_reference(self, engine, index):
        assert engine.hover(index, Position(5, 12)).contents == "var n: Int"

    def test_falls_back_to_definition(self, engine, index):
        assert engine.hover(index, Position(7, 6)).contents == "const K: Int"
        assert engine.hover(index, Position(1, 6)).contents == "class B() : A"

    def test_nothing_under_cursor(self, engine, index):
        assert engine.hover(index, Position(7, 11)) is None

    def test_prefers_richer_definition_signature(self, engine):
        uri = "file:///work/main.k"
        index = DocumentIndex(uri=uri)
        index.definitions.append(
            DefinitionEntry(
                kind=SymbolKind.FUNCTION,
                name="f",
                line=0,
                return_type="Int",
                arg_types=["Int", "Str"],
                location=Location(uri, Range.on_line(0, 9, 10)),
                callable=True,
            )
        )
        index.references.append(
            ReferenceEntry(
                kind=SymbolKind.VARIABLE,
                name="f",
                location=Location(uri, Range.on_line(3, 0, 1)),
                type_name="Function",
                return_type="Int",
                callable=True,
            )
        )

        assert engine.hover(index, Position(3, 0)).contents == "function f(Int, Str): Int"


class TestFormatSignature:
    @pytest.mark.parametrize(
        "entry,expected",
        [
            (DefinitionEntry(SymbolKind.VARIABLE, "x", 0, type_name="Int"), "var x: Int"),
            (DefinitionEntry(SymbolKind.VARIABLE, "x", 0), "var x"),
            (DefinitionEntry(SymbolKind.CONST, "K", 0, type_name="Int"), "const K: Int"),
            (DefinitionEntry(SymbolKind.KEYNAME, "k", 0), "key k"),
            (DefinitionEntry(SymbolKind.CLASS, "A", 0), "class A()"),
            (DefinitionEntry(SymbolKind.CLASS, "B", 0, type_name="A", arg_types=["Int"]), "class B(Int) : A"),
            (
                DefinitionEntry(SymbolKind.FUNCTION, "f", 0, return_type="Int", arg_types=["Int", "Str"]),
                "function f(Int, Str): Int",
            ),
            (DefinitionEntry(SymbolKind.FUNCTION, "g", 0), "function g()"),
        ],
    )
    def test_formats(self, entry, expected):
        assert format_signature(entry) == expected


class TestCompletion:
    def test_inherited_method_through_vartype(self, engine, index):
        candidates = engine.complete(index, "b.", Position(6, 2))

        assert labels(candidates) == ["m"]
        assert candidates[0].kind is CompletionKind.METHOD
        assert candidates[0].detail == "function A#m(Int): Str"

    def test_member_lookup_needs_dot_right_before_cursor(self, engine, index):
        result = labels(engine.complete(index, "b.x", Position(6, 3)))

        assert result[: len(KEYWORDS)] == list(KEYWORDS)
        assert "m" not in result

    def test_dot_without_identifier(self, engine, index):
        assert engine.complete(index, "(1 + 2).", Position(6, 8)) == []

    def test_class_name_member(self, engine, index):
        assert labels(engine.complete(index, "A.", Position(7, 2))) == ["m"]

    def test_builtin_type_members(self, engine, index):
        assert "length" in labels(engine.complete(index, "String.", Position(7, 7)))

    def test_declared_type_members(self, engine):
        index = DocumentIndex(uri="file:///work/main.k")
        index.definitions.append(DefinitionEntry(SymbolKind.VARIABLE, "s", 0, type_name="String"))

        assert "split" in labels(engine.complete(index, "s.", Position(1, 2)))

    def test_later_definition_is_ignored(self, engine):
        index = DocumentIndex(uri="file:///work/main.k")
        index.definitions.append(DefinitionEntry(SymbolKind.VARIABLE, "s", 5, type_name="String"))

        assert engine.complete(index, "s.", Position(1, 2)) == []

    def test_type_annotation(self, engine, index):
        candidates = engine.complete(index, "var z:", Position(7, 6))

        assert labels(candidates) == list(BUILTIN_TYPE_NAMES)
        assert {candidate.kind for candidate in candidates} == {CompletionKind.TYPE}

    @pytest.mark.parametrize(
        "line_text",
        [
            "var t = n ? 1 : ",
            "var o = { key: a",
            "case 1: ",
            "var z: I",
        ],
    )
    def test_colon_earlier_in_line_falls_back_to_symbols(self, engine, index, line_text):
        result = labels(engine.complete(index, line_text, Position(7, len(line_text))))

        assert result[: len(KEYWORDS)] == list(KEYWORDS)
        assert {"add", "b", "r"} <= set(result)

    def test_keywords_and_symbols_without_current_token(self, engine, index):
        result = labels(engine.complete(index, "b", Position(7, 1)))

        assert result[: len(KEYWORDS)] == list(KEYWORDS)
        assert "b" not in result
        assert {"add", "n", "A", "B", "K"} <= set(result)
        assert "m" not in result
        assert len(result) == len(set(result))


class TestSemanticSpans:
    def test_spans_sorted_and_tagged(self, engine, index):
        spans = engine.semantic_spans(index)

        assert spans == sorted(spans)
        assert [span for span in spans if span.tag is SemanticTag.UNUSED] == [
            SemanticSpan(line=5, start=4, length=1, tag=SemanticTag.UNUSED)
        ]
        assert SemanticSpan(line=4, start=9, length=3, tag=SemanticTag.USED) in spans

    def test_empty_index(self, engine):
        assert engine.semantic_spans(DocumentIndex(uri="file:///x.k")) == []
