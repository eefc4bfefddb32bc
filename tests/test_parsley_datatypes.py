import pytest
from parsley.parsley_datatypes import (
    Environment, NamePattern, Placeholder, PlaceholderPattern, ArrayPattern,
    DictPattern, DictEntry, Arity, Builtin, ParsleyFunction, type_name, const,
)
from parsley.parsley_errors import ParsleyError, PatternShapeError, new_error

# --- Environment Tests ---

def test_environment_init():
    parent = Environment()
    child = Environment(parent=parent)
    assert child.parent is parent
    assert not child.bindings
    assert Environment().parent is None


def test_environment_lookup_walks_parent_chain():
    root = Environment()
    root.define("a", 1)
    child = root.enclosed()
    grandchild = child.enclosed()
    assert grandchild["a"] == 1
    assert "a" in grandchild
    assert grandchild.find_owner("a") is root
    with pytest.raises(KeyError):
        _ = grandchild["missing"]
    assert grandchild.get("missing", 42) == 42


def test_define_shadows_outer_binding():
    root = Environment()
    root.define("x", 1)
    child = root.enclosed()
    child.define("x", 2)
    assert child["x"] == 2
    assert root["x"] == 1


def test_assign_updates_declaring_frame():
    root = Environment()
    root.define("count", 1)
    child = root.enclosed()
    child.assign("count", 5)
    assert root["count"] == 5
    assert "count" not in child.bindings


def test_assign_unbound_creates_in_current_frame():
    root = Environment()
    child = root.enclosed()
    child.assign("fresh", "v")
    assert child.bindings == {"fresh": "v"}
    assert "fresh" not in root


def test_protected_names_cannot_be_reassigned():
    root = Environment()
    root.define("len", "builtin", let=False, protected=True)
    child = root.enclosed()
    with pytest.raises(ParsleyError) as exc:
        child.assign("len", 3)
    assert exc.value.code == "STATE-0001"
    assert exc.value.error_class == "state"
    assert root["len"] == "builtin"
    # A let binding may still shadow it in an inner frame.
    child.define("len", 3)
    assert child["len"] == 3


def test_let_names_tracked_per_frame():
    root = Environment()
    root.define("a", 1)
    root.define("b", 2, let=False)
    child = root.enclosed()
    assert root.is_let_binding("a")
    assert not root.is_let_binding("b")
    assert not child.is_let_binding("a")


def test_all_identifiers_innermost_first():
    root = Environment()
    root.define("a", 1)
    root.define("b", 2)
    child = root.enclosed()
    child.define("c", 3)
    child.define("a", 4)
    assert child.all_identifiers() == ["c", "a", "b"]


def test_user_variables_skip_protected_and_respect_shadowing():
    root = Environment()
    root.define("print", "fn", protected=True)
    root.define("name", "outer")
    child = root.enclosed()
    child.define("name", "inner")
    assert child.user_variables() == {"name": "inner"}


def test_closure_keeps_frame_alive_after_scope_exit():
    def make_counter():
        frame = Environment().enclosed()
        frame.define("n", 10)
        return ParsleyFunction([], lambda env, ctx: env["n"], frame)

    fn = make_counter()
    assert fn.closure["n"] == 10


# --- Pattern Tests ---

@pytest.mark.parametrize("make", [
    lambda: NamePattern(""),
    lambda: NamePattern("_"),
    lambda: ArrayPattern(["a"]),
    lambda: ArrayPattern([NamePattern("a")], rest=""),
    lambda: DictPattern([DictEntry("a"), DictEntry("a")]),
    lambda: DictPattern([NamePattern("a")]),
    lambda: DictEntry("a", target="b"),
    lambda: DictEntry("a", default=5),
], ids=["empty-name", "underscore-name", "raw-string-element", "empty-rest",
        "duplicate-key", "non-entry", "non-pattern-target", "non-callable-default"])
def test_malformed_patterns_raise(make):
    with pytest.raises(PatternShapeError):
        make()


def test_patterns_are_immutable():
    pattern = ArrayPattern([NamePattern("a")])
    assert isinstance(pattern.elements, tuple)
    with pytest.raises(Exception):
        pattern.rest = "xs"


def test_dict_entry_pattern_defaults():
    assert DictEntry("a").pattern == NamePattern("a")
    assert DictEntry("_").pattern is Placeholder
    assert DictEntry("a", target=NamePattern("b")).pattern == NamePattern("b")
    assert isinstance(Placeholder, PlaceholderPattern)


def test_const_default_ignores_env():
    default = const([1, 2])
    assert default(Environment()) == [1, 2]


# --- Arity Tests ---

ARITY_CASES = [
    ("0", 0, 0, [0], [1]),
    ("1", 1, 1, [1], [0, 2]),
    ("0-1", 0, 1, [0, 1], [2]),
    ("1-2", 1, 2, [1, 2], [0, 3]),
    ("1+", 1, None, [1, 2, 50], [0]),
]


@pytest.mark.parametrize("spec, low, high, ok, bad", ARITY_CASES, ids=[c[0] for c in ARITY_CASES])
def test_arity_parse_and_accepts(spec, low, high, ok, bad):
    arity = Arity.parse(spec)
    assert (arity.minimum, arity.maximum) == (low, high)
    assert str(arity) == spec
    for n in ok:
        assert arity.accepts(n)
    for n in bad:
        assert not arity.accepts(n)


@pytest.mark.parametrize("spec", ["", "a", "2-1", "1-", "-1", "1++"])
def test_arity_parse_rejects_bad_specs(spec):
    with pytest.raises(ValueError):
        Arity.parse(spec)


@pytest.mark.parametrize("spec, params, expected", [
    ("0", [], True),
    ("1", ["value"], True),
    ("0-1", ["n?"], True),
    ("0-2", ["decimals?", "separator?"], True),
    ("1-2", ["name", "flags?"], True),
    ("1+", ["values..."], True),
    ("1+", ["format", "values..."], True),
    ("1", [], False),
    ("0-1", ["n"], False),
    ("1", ["values..."], False),
    ("0+", ["format", "values..."], False),
    ("1-2", ["a?", "b"], False),
    ("2-3", ["a", "b?", "c"], False),
    ("0+", ["values...", "format"], False),
])
def test_arity_matches_params(spec, params, expected):
    assert Arity.parse(spec).matches_params(params) is expected


# --- Type tags ---

TYPE_CASES = [
    ("null", None, "null"),
    ("true", True, "boolean"),
    ("int", 3, "integer"),
    ("float", 3.5, "float"),
    ("str", "x", "string"),
    ("list", [1], "array"),
    ("dict", {"a": 1}, "dictionary"),
    ("function", ParsleyFunction([], lambda env, ctx: None, Environment()), "function"),
    ("builtin", Builtin("f", lambda ctx: None, Arity.parse("0")), "builtin"),
    ("error", new_error("USER-0001", Message="boom"), "error"),
    ("foreign", object(), None),
]


@pytest.mark.parametrize("value, expected", [c[1:] for c in TYPE_CASES], ids=[c[0] for c in TYPE_CASES])
def test_type_name(value, expected):
    assert type_name(value) == expected
