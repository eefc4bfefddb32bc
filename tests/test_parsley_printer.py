import pytest
from parsley.parsley_printer import Printer, to_display_string
from parsley.parsley_datatypes import (
    Arity, Builtin, Environment, NamePattern, Placeholder, ArrayPattern, DictPattern,
    DictEntry, ParsleyFunction, const,
)
from parsley.parsley_errors import new_error


@pytest.fixture
def printer():
    return Printer(indent_width=2)


# Test cases: (id, object, expected_string)
FORMAT_TEST_CASES = [
    ("str", "hello", '"hello"'),
    ("str_escapes", 'say "hi"\n', '"say \\"hi\\"\\n"'),
    ("int", 123, "123"),
    ("float", -1.5, "-1.5"),
    ("float_whole", 3.0, "3"),
    ("bool_true", True, "true"),
    ("bool_false", False, "false"),
    ("none", None, "null"),
    ("list", [1, "a", [None]], '[1, "a", [null]]'),
    ("empty_list", [], "[]"),
    ("dict", {"a": 1, "b": [2]}, "{a: 1, b: [2]}"),
    ("empty_dict", {}, "{}"),
    ("builtin", Builtin("toInt", lambda ctx, v: v, Arity.parse("1")), "<builtin toInt>"),
    ("error", new_error("USER-0001", Message="boom"), "<error USER-0001: boom>"),
    (
        "function",
        ParsleyFunction([NamePattern("a"), Placeholder], lambda env, ctx: None, Environment(), rest="xs"),
        "fn(a, _, ...xs)",
    ),
    (
        "array_pattern",
        ArrayPattern([NamePattern("a"), ArrayPattern([NamePattern("b")])], rest="rest"),
        "[a, [b], ...rest]",
    ),
    (
        "dict_pattern",
        DictPattern([
            DictEntry("a"),
            DictEntry("b", target=NamePattern("alias")),
            DictEntry("c", default=const(1)),
        ], rest="others"),
        "{a, b: alias, c = ..., ...others}",
    ),
]


@pytest.mark.parametrize("obj, expected", [c[1:] for c in FORMAT_TEST_CASES], ids=[c[0] for c in FORMAT_TEST_CASES])
def test_pformat(printer, obj, expected):
    assert printer.pformat(obj) == expected


def test_function_repr_uses_printer():
    fn = ParsleyFunction([NamePattern("x")], lambda env, ctx: None, Environment())
    assert repr(fn) == "fn(x)"


@pytest.mark.parametrize("value, expected", [
    ("plain", "plain"),
    (None, "null"),
    (2.0, "2"),
    ([1, "a"], '[1, "a"]'),
])
def test_to_display_string(value, expected):
    assert to_display_string(value) == expected
