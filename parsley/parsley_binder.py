"""
Destructuring: binds array and dictionary patterns against runtime values.

Binding is all-or-nothing. Every name is first staged in a private frame
(whose parent is the target environment, so defaults can see both outer
names and earlier names of the same pattern); the staged names are only
committed when the whole pattern matched.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional

from parsley.parsley_config import dbg
from parsley.parsley_datatypes import (
    ArrayPattern, DictPattern, Environment, NamePattern, PlaceholderPattern,
    Pattern, type_name,
)
from parsley.parsley_errors import ParsleyError, PatternShapeError, new_error

BindMode = Literal['let', 'assign']


@dataclass
class BindResult:
    """The outcome of one destructuring."""
    status: Literal['success', 'error']
    bindings: Dict[str, Any] = field(default_factory=dict)
    error: Optional[ParsleyError] = None

    @property
    def ok(self) -> bool:
        return self.status == 'success'


class PatternBinder:
    def __init__(self, env: Environment, mode: BindMode = 'let', debug: bool = False):
        if mode not in ('let', 'assign'):
            raise ValueError(f"unknown bind mode: {mode!r}")
        self.env = env
        self.mode = mode
        self.debug = debug
        self.staging = Environment(parent=env)

    def run(self, pattern: Pattern, value: Any) -> BindResult:
        try:
            self._bind(pattern, value)
            if self.mode == 'assign':
                # Reject protected targets before anything is written.
                for name in self.staging.bindings:
                    if self.env.is_protected(name):
                        raise new_error("STATE-0001", Name=name)
        except ParsleyError as e:
            dbg("bind failed", e.code, "pattern", type(pattern).__name__, force=self.debug)
            return BindResult(status='error', error=e)
        staged = dict(self.staging.bindings)
        self._commit(staged)
        dbg("bind committed", self.mode, list(staged), force=self.debug)
        return BindResult(status='success', bindings=staged)

    def _commit(self, staged: Dict[str, Any]):
        for name, value in staged.items():
            if self.mode == 'let':
                self.env.define(name, value)
            else:
                self.env.assign(name, value)

    def _bind(self, pattern: Pattern, value: Any):
        match pattern:
            case NamePattern(name=name):
                self.staging.bindings[name] = value
            case PlaceholderPattern():
                pass
            case ArrayPattern():
                self._bind_array(pattern, value)
            case DictPattern():
                self._bind_dict(pattern, value)
            case _:
                raise PatternShapeError(f"not a pattern: {pattern!r}")

    def _bind_array(self, pattern: ArrayPattern, value: Any):
        if not isinstance(value, list):
            raise new_error("DEST-0003", Got=type_name(value) or type(value).__name__)
        for i, element in enumerate(pattern.elements):
            self._bind(element, value[i] if i < len(value) else None)
        if pattern.rest is not None and pattern.rest != "_":
            self.staging.bindings[pattern.rest] = list(value[len(pattern.elements):])

    def _bind_dict(self, pattern: DictPattern, value: Any):
        if not isinstance(value, dict):
            raise new_error("DEST-0001", Got=type_name(value) or type(value).__name__)
        for entry in pattern.entries:
            if entry.key in value:
                operand = value[entry.key]
            elif entry.default is not None:
                operand = entry.default(self.staging)
            else:
                operand = None
            self._bind(entry.pattern, operand)
        if pattern.rest is not None and pattern.rest != "_":
            named = {entry.key for entry in pattern.entries}
            self.staging.bindings[pattern.rest] = {k: v for k, v in value.items() if k not in named}


def bind(pattern: Pattern, value: Any, env: Environment, *, mode: BindMode = 'let',
         debug: bool = False) -> BindResult:
    """Destructures value into env; the environment is untouched on failure."""
    return PatternBinder(env, mode, debug).run(pattern, value)
