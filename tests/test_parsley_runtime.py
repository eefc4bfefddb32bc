import pytest
from parsley.parsley_config import Settings
from parsley.parsley_datatypes import ArrayPattern, DictEntry, DictPattern, NamePattern, ParsleyFunction
from parsley.parsley_errors import ParsleyError
from parsley.parsley_runtime import Runtime


# --- Configuration ---

def test_settings_defaults():
    settings = Settings.from_env({})
    assert settings == Settings(debug=False, seed=None)


def test_settings_from_environment():
    settings = Settings.from_env({"PARSLEY_DEBUG": "1", "PARSLEY_SEED": "42"})
    assert settings.debug is True
    assert settings.seed == 42


def test_settings_rejects_bad_seed():
    with pytest.raises(ValueError):
        Settings.from_env({"PARSLEY_SEED": "abc"})


def test_runtime_reads_seed_from_environment(monkeypatch):
    monkeypatch.setenv("PARSLEY_SEED", "42")
    assert Runtime().seed == 42
    assert Runtime(seed=7).seed == 7


def test_debug_tracing_goes_to_stderr(monkeypatch, capsys):
    runtime = Runtime()
    monkeypatch.setenv("PARSLEY_DEBUG", "1")
    runtime.dispatch([1], "lenght")
    err = capsys.readouterr().err
    assert "[DBG] dispatch miss array lenght" in err


def test_debug_setting_enables_tracing(monkeypatch, capsys):
    monkeypatch.delenv("PARSLEY_DEBUG", raising=False)
    runtime = Runtime(seed=1, settings=Settings(debug=True))
    runtime.dispatch([1], "length", [])
    runtime.bind(NamePattern("x"), 1, runtime.new_scope())
    err = capsys.readouterr().err
    assert "[DBG] runtime ready seed 1" in err
    assert "[DBG] dispatch array length argc 0" in err
    assert "[DBG] bind committed let ['x']" in err


def test_no_tracing_by_default(monkeypatch, capsys):
    monkeypatch.delenv("PARSLEY_DEBUG", raising=False)
    Runtime().dispatch([1], "length")
    assert capsys.readouterr().err == ""


# --- Facade ---

@pytest.fixture
def runtime():
    return Runtime(seed=11)


def test_tables_are_shared_between_runtimes(runtime):
    other = Runtime()
    assert other.methods is runtime.methods
    assert other.builtins is runtime.builtins
    assert other.root_env is not runtime.root_env


def test_scopes_are_isolated(runtime):
    first, second = runtime.new_scope(), runtime.new_scope()
    assert runtime.bind(NamePattern("x"), 1, first).ok
    assert "x" not in second


def test_bind_returns_errors(runtime):
    scope = runtime.new_scope()
    result = runtime.bind(DictPattern([DictEntry("a")]), [1], scope)
    assert isinstance(result.error, ParsleyError)
    assert scope.bindings == {}


def test_describe_and_inspect_by_name(runtime):
    assert runtime.describe("array.pick").arity == "0-1"
    assert runtime.describe_line("array.pick") == \
        "array.pick(n?) - Random element, or n random elements with replacement"
    assert runtime.inspect("type")["category"] == "introspection"
    assert runtime.describe("nope") is None
    assert runtime.inspect("nope") is None


def test_closure_sees_later_updates_in_captured_frame(runtime):
    scope = runtime.new_scope()
    scope.define("rate", 2)
    scale = ParsleyFunction([NamePattern("x")], lambda env, ctx: env["x"] * env["rate"], scope)
    assert runtime.call(scale, [5]) == 10
    scope.assign("rate", 3)
    assert runtime.call(scale, [5]) == 15


def test_function_calls_destructure_arguments(runtime):
    first_of_pair = ParsleyFunction(
        [ArrayPattern([NamePattern("a"), NamePattern("b")])],
        lambda env, ctx: env["a"] + env["b"],
        runtime.new_scope(),
    )
    assert runtime.call(first_of_pair, [[1, 2, 3]]) == 3
    result = runtime.call(first_of_pair, [5])
    assert result.code == "DEST-0003"


def test_builtins_reach_runtime_through_context(runtime):
    ctx = runtime.new_context()
    assert ctx.runtime is runtime
    assert ctx.env.parent is runtime.root_env
    assert runtime.call(runtime.builtins["type"], [[1]], ctx) == "array"
