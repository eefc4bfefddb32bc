"""
Method and builtin dispatch.

Native implementations register themselves with the `method` and `builtin`
decorators. Resolution is two-level: (type tag, method name) -> MethodEntry.
The tables are frozen into read-only views once the runtime finishes
loading them, after which they are shared by every evaluation.
"""
import random
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

from parsley.parsley_config import dbg
from parsley.parsley_datatypes import (
    TYPE_NAMES, Arity, Builtin, Environment, ParsleyFunction, type_name,
)
from parsley.parsley_errors import (
    DispatchTableError, ParsleyError, arity_error, new_error, undefined_method,
)


@dataclass(frozen=True)
class MethodEntry:
    """An executable method: the native function and its declared arity."""
    name: str
    type_name: str
    fn: Callable
    arity: Arity


@dataclass
class EvalContext:
    """Per-evaluation state handed to every native method and builtin.

    Each context owns its randomness source, so concurrent evaluations never
    share generator state.
    """
    rng: random.Random = field(default_factory=random.Random)
    env: Optional[Environment] = None
    runtime: Any = None

    @classmethod
    def seeded(cls, seed: Optional[int] = None, **kwargs) -> 'EvalContext':
        return cls(rng=random.Random(seed), **kwargs)


# Mutable while implementation modules are imported; frozen afterwards.
_METHODS: Dict[str, Dict[str, MethodEntry]] = {t: {} for t in TYPE_NAMES}
_BUILTINS: Dict[str, Builtin] = {}


def method(types, name: str, arity: str = "0"):
    """Registers fn(ctx, receiver, *args) as `name` on one or more types."""
    if isinstance(types, str):
        types = (types,)

    def decorator(fn):
        parsed = Arity.parse(arity)
        for t in types:
            if t not in _METHODS:
                raise DispatchTableError(f"unknown type tag {t!r} for method {name!r}")
            _METHODS[t][name] = MethodEntry(name, t, fn, parsed)
        return fn
    return decorator


def builtin(name: str, arity: str = "1"):
    """Registers fn(ctx, *args) as the global builtin `name`."""
    def decorator(fn):
        _BUILTINS[name] = Builtin(name, fn, Arity.parse(arity))
        return fn
    return decorator


def _load_implementations():
    # Importing the modules runs their registration decorators.
    import parsley.parsley_methods  # noqa: F401
    import parsley.parsley_random  # noqa: F401
    import parsley.parsley_builtins  # noqa: F401


def method_tables() -> Mapping[str, Mapping[str, MethodEntry]]:
    _load_implementations()
    return MappingProxyType({t: MappingProxyType(dict(table)) for t, table in _METHODS.items()})


def builtin_table() -> Mapping[str, Builtin]:
    _load_implementations()
    return MappingProxyType(dict(_BUILTINS))


class Dispatcher:
    """Resolves receiver.method(args) against a frozen method table."""

    def __init__(self, tables: Optional[Mapping[str, Mapping[str, MethodEntry]]] = None, debug: bool = False):
        self.tables = tables if tables is not None else method_tables()
        self.debug = debug

    def resolve(self, receiver_type: str, method_name: str) -> MethodEntry:
        table = self.tables.get(receiver_type)
        if table is None:
            raise DispatchTableError(f"no method table for type {receiver_type!r}")
        entry = table.get(method_name)
        if entry is None:
            dbg("dispatch miss", receiver_type, method_name, force=self.debug)
            raise undefined_method(method_name, receiver_type, sorted(table))
        return entry

    def invoke(self, receiver: Any, method_name: str, args: List[Any], ctx: EvalContext) -> Any:
        """Raising variant of dispatch, used between native implementations."""
        tag = type_name(receiver)
        if tag is None:
            raise DispatchTableError(f"value of host type {type(receiver).__name__} has no type tag")
        entry = self.resolve(tag, method_name)
        if not entry.arity.accepts(len(args)):
            dbg("arity mismatch", tag, method_name, len(args), str(entry.arity), force=self.debug)
            raise arity_error(method_name, entry.arity, len(args))
        dbg("dispatch", tag, method_name, "argc", len(args), force=self.debug)
        return entry.fn(ctx, receiver, *args)

    def dispatch(self, receiver: Any, method_name: str, args: List[Any], ctx: EvalContext) -> Any:
        """Calls the method and returns its result, or the error as a value."""
        try:
            return self.invoke(receiver, method_name, list(args), ctx)
        except ParsleyError as e:
            return e


def call_value(fn: Any, args: List[Any], ctx: EvalContext) -> Any:
    """Calls a function or builtin value. Errors are raised."""
    if isinstance(fn, Builtin):
        if not fn.arity.accepts(len(args)):
            raise arity_error(fn.name, fn.arity, len(args))
        return fn.fn(ctx, *args)
    if isinstance(fn, ParsleyFunction):
        from parsley.parsley_binder import bind
        call_env = fn.closure.enclosed()
        debug = ctx.runtime is not None and ctx.runtime.settings.debug
        result = bind(fn.pattern, list(args), call_env, debug=debug)
        if not result.ok:
            raise result.error
        value = fn.body(call_env, ctx)
        if isinstance(value, ParsleyError):
            raise value
        return value
    raise new_error("TYPE-0021", Name=type_name(fn) or type(fn).__name__)
