"""
The runtime facade: owns the frozen dispatch tables, the metadata registry
and the root environment, and creates per-evaluation contexts.

Public entry points (`bind`, `dispatch`, `call_builtin`, `call`) return
error values instead of raising ParsleyError.
"""
import random
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from parsley.parsley_binder import BindMode, BindResult, bind
from parsley.parsley_config import Settings, dbg
from parsley.parsley_datatypes import Builtin, Environment, Pattern
from parsley.parsley_dispatch import (
    Dispatcher, EvalContext, MethodEntry, builtin_table, call_value, method_tables,
)
from parsley.parsley_errors import ParsleyError, arity_error, undefined_identifier
from parsley.parsley_registry import Info, MetadataRegistry


class Runtime:
    """Loads the executable tables and metadata once, then serves evaluations."""

    _methods: Optional[Mapping[str, Mapping[str, MethodEntry]]] = None
    _builtins: Optional[Mapping[str, Builtin]] = None
    _default_checked = False

    def __init__(self, seed: Optional[int] = None, metadata_path: Union[str, Path, None] = None,
                 settings: Optional[Settings] = None):
        self.settings = settings or Settings.from_env()
        self.seed = seed if seed is not None else self.settings.seed

        if Runtime._methods is None:
            Runtime._methods = method_tables()
            Runtime._builtins = builtin_table()
        self.methods = Runtime._methods
        self.builtins = Runtime._builtins

        # A metadata mismatch aborts construction. The packaged table is checked once per process.
        if metadata_path is None:
            self.registry = MetadataRegistry.default()
            if not Runtime._default_checked:
                self.registry.check_consistency(self.methods, self.builtins, debug=self.settings.debug)
                Runtime._default_checked = True
        else:
            self.registry = MetadataRegistry.load(metadata_path, debug=self.settings.debug)
            self.registry.check_consistency(self.methods, self.builtins, debug=self.settings.debug)

        self.dispatcher = Dispatcher(self.methods, debug=self.settings.debug)
        self.root_env = Environment()
        for name, fn in self.builtins.items():
            self.root_env.define(name, fn, let=False, protected=True)
        # Contexts created without a seed share one seeded stream when a seed is configured.
        self._seed_source = random.Random(self.seed) if self.seed is not None else None
        dbg("runtime ready", "seed", self.seed, force=self.settings.debug)

    # -----------------------------------------------------------------
    # Contexts and scopes
    # -----------------------------------------------------------------

    def new_context(self, seed: Optional[int] = None, env: Optional[Environment] = None) -> EvalContext:
        """A fresh evaluation context with its own randomness source."""
        if seed is None and self._seed_source is not None:
            seed = self._seed_source.getrandbits(64)
        return EvalContext.seeded(seed, env=env if env is not None else self.new_scope(), runtime=self)

    def new_scope(self) -> Environment:
        """A top-level frame for one evaluation, enclosed by the root frame."""
        return self.root_env.enclosed()

    # -----------------------------------------------------------------
    # Public boundary
    # -----------------------------------------------------------------

    def bind(self, pattern: Pattern, value: Any, env: Environment, *, mode: BindMode = 'let') -> BindResult:
        return bind(pattern, value, env, mode=mode, debug=self.settings.debug)

    def dispatch(self, receiver: Any, method_name: str, args: Optional[List[Any]] = None,
                 ctx: Optional[EvalContext] = None) -> Any:
        return self.dispatcher.dispatch(receiver, method_name, list(args or []), ctx or self.new_context())

    def call_builtin(self, name: str, args: Optional[List[Any]] = None,
                     ctx: Optional[EvalContext] = None) -> Any:
        args = list(args or [])
        fn = self.builtins.get(name)
        if fn is None:
            return undefined_identifier(name, list(self.builtins))
        if not fn.arity.accepts(len(args)):
            return arity_error(name, fn.arity, len(args))
        try:
            return fn.fn(ctx or self.new_context(), *args)
        except ParsleyError as e:
            return e

    def call(self, fn: Any, args: Optional[List[Any]] = None, ctx: Optional[EvalContext] = None) -> Any:
        """Calls a function or builtin value, returning errors as values."""
        try:
            return call_value(fn, list(args or []), ctx or self.new_context())
        except ParsleyError as e:
            return e

    def lookup(self, name: str, env: Environment) -> Any:
        """Resolves an identifier, or returns an Undefined error with a suggestion."""
        owner = env.find_owner(name)
        if owner is None:
            return undefined_identifier(name, env.all_identifiers())
        return owner.bindings[name]

    # -----------------------------------------------------------------
    # Introspection
    # -----------------------------------------------------------------

    def describe(self, name: str) -> Optional[Info]:
        return self.registry.describe(name)

    def describe_line(self, name: str) -> Optional[str]:
        return self.registry.describe_line(name)

    def inspect(self, name: str) -> Optional[dict]:
        info = self.registry.describe(name)
        return self.registry.inspect_record(info) if info is not None else None
