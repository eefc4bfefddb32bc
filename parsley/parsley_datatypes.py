"""
Defines the core data types for the Parsley runtime.

Runtime values are plain host values (None, bool, int, float, str, list,
dict) plus the callable and error types defined here. This module also holds
the Environment (lexical scope chain), the destructuring pattern variants,
and the Arity notation shared by the dispatcher and the metadata registry.
"""
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from parsley.parsley_errors import ParsleyError, PatternShapeError, new_error


# =================================================================
# Environment
# =================================================================

class Environment:
    """A binding frame with a parent link.

    A frame is created for every lexical scope entry (let-block, function
    call). Lookup walks the parent chain; an existing binding is only ever
    mutated in the frame that declared it. Closures keep their defining
    frame alive simply by holding a reference to it.
    """
    def __init__(self, parent: Optional['Environment'] = None):
        self.bindings: Dict[str, Any] = {}
        self.parent = parent
        self.let_names: set = set()
        self.protected: set = set()

    def __getitem__(self, name: str) -> Any:
        owner = self.find_owner(name)
        if owner is None:
            raise KeyError(f"'{name}'")
        return owner.bindings[name]

    def __contains__(self, name: Any) -> bool:
        return isinstance(name, str) and self.find_owner(name) is not None

    def get(self, name: str, default: Any = None) -> Any:
        owner = self.find_owner(name)
        if owner is None:
            return default
        return owner.bindings[name]

    def find_owner(self, name: str) -> Optional['Environment']:
        """Finds the frame in the chain (self → parent → ...) that declares name."""
        env = self
        while env is not None:
            if name in env.bindings:
                return env
            env = env.parent
        return None

    def enclosed(self) -> 'Environment':
        """Creates a child frame whose parent is this one."""
        return Environment(parent=self)

    def define(self, name: str, value: Any, *, let: bool = True, protected: bool = False) -> Any:
        """Declares name in this frame, shadowing any outer binding."""
        self.bindings[name] = value
        if let:
            self.let_names.add(name)
        if protected:
            self.protected.add(name)
        return value

    def is_protected(self, name: str) -> bool:
        owner = self.find_owner(name)
        return owner is not None and name in owner.protected

    def assign(self, name: str, value: Any) -> Any:
        """Updates name in its declaring frame, or declares it here when unbound."""
        if self.is_protected(name):
            raise new_error("STATE-0001", Name=name)
        owner = self.find_owner(name) or self
        owner.bindings[name] = value
        return value

    def is_let_binding(self, name: str) -> bool:
        # Each frame tracks its own let declarations; outer frames are not consulted.
        return name in self.let_names

    def all_identifiers(self) -> List[str]:
        """All visible names, innermost first, without duplicates."""
        seen: Dict[str, None] = {}
        env = self
        while env is not None:
            for name in env.bindings:
                seen.setdefault(name, None)
            env = env.parent
        return list(seen)

    def user_variables(self) -> Dict[str, Any]:
        """Visible non-protected bindings; inner frames shadow outer ones."""
        out: Dict[str, Any] = {}
        env = self
        while env is not None:
            for name, value in env.bindings.items():
                if name in out or name in env.protected:
                    continue
                out[name] = value
            env = env.parent
        return out

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        parent_id = f", parent=#{id(self.parent)}" if self.parent else ""
        return f"<Environment bindings=[{keys}]{parent_id}>"


# =================================================================
# Destructuring patterns
# =================================================================

PLACEHOLDER_NAME = "_"


def _check_name(name: Any, what: str):
    if not isinstance(name, str) or not name:
        raise PatternShapeError(f"{what} must be a non-empty name, got {name!r}")


@dataclass(frozen=True)
class NamePattern:
    """Binds the whole operand to `name`."""
    name: str

    def __post_init__(self):
        _check_name(self.name, "NamePattern")
        if self.name == PLACEHOLDER_NAME:
            raise PatternShapeError("use Placeholder for '_', not NamePattern('_')")


@dataclass(frozen=True)
class PlaceholderPattern:
    """Discards its operand (`_`)."""


Placeholder = PlaceholderPattern()


@dataclass(frozen=True)
class ArrayPattern:
    """`[a, b, ...rest]`. Rest is a trailing field, never a list position."""
    elements: Tuple['Pattern', ...] = ()
    rest: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "elements", tuple(self.elements))
        for element in self.elements:
            if not isinstance(element, PATTERN_TYPES):
                raise PatternShapeError(f"array pattern element is not a pattern: {element!r}")
        if self.rest is not None:
            _check_name(self.rest, "rest")


@dataclass(frozen=True)
class DictEntry:
    """One `key`, `key: alias`, `key: {nested}` or `key = default` entry.

    `default` is a callable taking the staging Environment; it runs only
    when the key is missing from the operand.
    """
    key: str
    target: Optional['Pattern'] = None
    default: Optional[Callable[[Environment], Any]] = None

    def __post_init__(self):
        _check_name(self.key, "dict pattern key")
        if self.target is not None and not isinstance(self.target, PATTERN_TYPES):
            raise PatternShapeError(f"dict entry target is not a pattern: {self.target!r}")
        if self.default is not None and not callable(self.default):
            raise PatternShapeError(f"dict entry default must be callable, got {self.default!r}")

    @property
    def pattern(self) -> 'Pattern':
        if self.target is not None:
            return self.target
        if self.key == PLACEHOLDER_NAME:
            return Placeholder
        return NamePattern(self.key)


@dataclass(frozen=True)
class DictPattern:
    """`{a, b: alias, ...rest}`."""
    entries: Tuple[DictEntry, ...] = ()
    rest: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "entries", tuple(self.entries))
        seen = set()
        for entry in self.entries:
            if not isinstance(entry, DictEntry):
                raise PatternShapeError(f"dict pattern entry is not a DictEntry: {entry!r}")
            if entry.key in seen:
                raise PatternShapeError(f"duplicate key {entry.key!r} in dict pattern")
            seen.add(entry.key)
        if self.rest is not None:
            _check_name(self.rest, "rest")


PATTERN_TYPES = (NamePattern, PlaceholderPattern, ArrayPattern, DictPattern)
Pattern = Union[NamePattern, PlaceholderPattern, ArrayPattern, DictPattern]


def const(value: Any) -> Callable[[Environment], Any]:
    """Wraps a literal as a dict-entry default."""
    return lambda env: value


# =================================================================
# Arity notation: "n", "a-b", "a+"
# =================================================================

_ARITY_RE = re.compile(r"^(\d+)(?:(\+)|-(\d+))?$")


@dataclass(frozen=True)
class Arity:
    minimum: int
    maximum: Optional[int]
    spec: str

    @classmethod
    def parse(cls, spec: str) -> 'Arity':
        text = str(spec).strip()
        m = _ARITY_RE.match(text)
        if not m:
            raise ValueError(f"invalid arity spec: {spec!r}")
        low = int(m.group(1))
        if m.group(2):
            return cls(low, None, text)
        if m.group(3) is not None:
            high = int(m.group(3))
            if high < low:
                raise ValueError(f"invalid arity range: {spec!r}")
            return cls(low, high, text)
        return cls(low, low, text)

    def accepts(self, count: int) -> bool:
        if count < self.minimum:
            return False
        return self.maximum is None or count <= self.maximum

    def matches_params(self, params) -> bool:
        """Checks the arity against parameter names (`x?` optional, `xs...` variadic)."""
        required = optional = 0
        variadic = False
        for p in params:
            if variadic:
                return False  # a variadic param must come last
            if p.endswith("..."):
                variadic = True
            elif p.endswith("?"):
                optional += 1
            elif optional:
                return False  # required after optional
            else:
                required += 1
        if variadic:
            return self.maximum is None and self.minimum >= required
        return self.minimum == required and self.maximum == required + optional

    def __str__(self) -> str:
        return self.spec


# =================================================================
# Callables
# =================================================================

class Builtin:
    """A native global function. `fn` is called as fn(ctx, *args)."""
    def __init__(self, name: str, fn: Callable, arity: Arity):
        self.name = name
        self.fn = fn
        self.arity = arity

    def __repr__(self) -> str:
        return f"<Builtin {self.name}>"


class ParsleyFunction:
    """A closure: parameter patterns, a host-compiled body, and the defining scope.

    The body is called as body(env, ctx) in a fresh frame enclosed by the
    closure, after the arguments were bound to `params` (plus `rest`).
    """
    def __init__(self, params: List[Pattern], body: Callable, closure: Environment,
                 rest: Optional[str] = None, name: Optional[str] = None):
        self.params = list(params)
        self.rest = rest
        self.body = body
        self.closure = closure
        self.name = name

    @property
    def pattern(self) -> ArrayPattern:
        return ArrayPattern(tuple(self.params), self.rest)

    def __repr__(self) -> str:
        from parsley.parsley_printer import Printer
        return Printer().pformat(self)


# =================================================================
# Type tags
# =================================================================

TYPE_NAMES = (
    "null", "boolean", "integer", "float", "string",
    "array", "dictionary", "function", "builtin", "error",
)


def type_name(value: Any) -> Optional[str]:
    """Returns the runtime type tag of value, or None for a foreign object."""
    if value is None: return 'null'
    # bool is a subclass of int, so check it first
    if isinstance(value, bool): return 'boolean'
    if isinstance(value, int): return 'integer'
    if isinstance(value, float): return 'float'
    if isinstance(value, str): return 'string'
    if isinstance(value, list): return 'array'
    if isinstance(value, dict): return 'dictionary'
    if isinstance(value, ParsleyFunction): return 'function'
    if isinstance(value, Builtin): return 'builtin'
    if isinstance(value, ParsleyError): return 'error'
    return None


def is_error(value: Any) -> bool:
    return isinstance(value, ParsleyError)
