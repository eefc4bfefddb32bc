"""
Structured errors for the Parsley runtime.

A ParsleyError is both a runtime value (the `error` variant returned to
callers of bind/dispatch) and a Python exception, so native method
implementations can simply raise it. Messages are rendered from a catalog
of mustache templates keyed by error code.
"""
from typing import Any, Dict, List, Optional

import pystache

# Error kinds surfaced to the evaluation driver.
TYPE_MISMATCH = "TypeMismatch"
INVALID_ARGUMENT = "InvalidArgument"
METHOD_NOT_FOUND = "MethodNotFound"
UNDEFINED = "Undefined"
STATE_ERROR = "StateError"
USER_ERROR = "UserError"

# code -> (kind, class, message template, hint templates)
ERROR_CATALOG: Dict[str, tuple] = {
    "TYPE-0012": (TYPE_MISMATCH, "type", "Argument to `{{Function}}` must be {{Expected}}, got {{Got}}", []),
    "TYPE-0020": (TYPE_MISMATCH, "type", "{{Context}} must be {{Expected}}, got {{Got}}", []),
    "TYPE-0021": (TYPE_MISMATCH, "type", "'{{Name}}' is not a function", []),
    "ARITY-0001": (INVALID_ARGUMENT, "arity", "Wrong number of arguments to `{{Function}}`. got={{Got}}, want={{Want}}", []),
    "ARITY-0004": (INVALID_ARGUMENT, "arity", "`{{Function}}` expects {{Min}}-{{Max}} arguments, got {{Got}}", []),
    "ARITY-0005": (INVALID_ARGUMENT, "arity", "`{{Function}}` expects at least {{Min}} argument(s), got {{Got}}", []),
    "UNDEF-0001": (UNDEFINED, "undefined", "Identifier not found: {{Name}}", []),
    "UNDEF-0002": (METHOD_NOT_FOUND, "undefined", "Unknown method '{{Method}}' for {{Type}}", []),
    "VAL-0004": (INVALID_ARGUMENT, "value", "Argument to `{{Method}}` must be non-negative, got {{Got}}", []),
    "VAL-0005": (INVALID_ARGUMENT, "value", "Cannot {{Method}} from empty array", []),
    "VAL-0006": (INVALID_ARGUMENT, "value", "Cannot take {{Requested}} unique items from array of length {{Length}}",
                 ["cannot take more unique elements than exist; use pick({{Requested}}) to sample with replacement"]),
    "VAL-0007": (INVALID_ARGUMENT, "value", "Cannot convert '{{Value}}' to {{Target}}", []),
    "INDEX-0001": (INVALID_ARGUMENT, "index", "Index {{Index}} out of range for array of length {{Length}}", []),
    "DEST-0001": (TYPE_MISMATCH, "type", "Dictionary destructuring requires a dictionary value, got {{Got}}", []),
    "DEST-0003": (TYPE_MISMATCH, "type", "Array destructuring requires an array value, got {{Got}}", []),
    "STATE-0001": (STATE_ERROR, "state", "cannot reassign protected variable '{{Name}}'", []),
    "USER-0001": (USER_ERROR, "value", "{{Message}}", []),
}

_renderer = pystache.Renderer(escape=lambda u: u)


def _render(template: str, data: Dict[str, Any]) -> str:
    return _renderer.render(template, data)


class ParsleyError(Exception):
    """A runtime error value; raised internally, returned at the core boundary."""

    def __init__(self, code: str, message: str, *, kind: str, error_class: str,
                 hints: Optional[List[str]] = None, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.kind = kind
        self.error_class = error_class
        self.hints = list(hints or [])
        self.data = dict(data or {})

    def pretty(self) -> str:
        """Multi-line rendering used by the CLI."""
        lines = [f"Runtime error:\n  {self.message}"]
        for i, hint in enumerate(self.hints):
            lines.append(("  Use: " if i == 0 else "   or: ") + hint)
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"<ParsleyError {self.code} {self.message!r}>"

    def __eq__(self, other):
        if not isinstance(other, ParsleyError):
            return NotImplemented
        return self.code == other.code and self.message == other.message

    def __hash__(self):
        return hash((self.code, self.message))


def new_error(code: str, **data: Any) -> ParsleyError:
    """Builds a ParsleyError from the catalog entry for `code`."""
    kind, error_class, template, hint_templates = ERROR_CATALOG[code]
    return ParsleyError(
        code,
        _render(template, data),
        kind=kind,
        error_class=error_class,
        hints=[_render(h, data) for h in hint_templates],
        data=data,
    )


def arity_error(function: str, arity, got: int) -> ParsleyError:
    """Maps a parsed Arity onto the matching ARITY-* catalog entry."""
    if arity.maximum is None:
        return new_error("ARITY-0005", Function=function, Min=arity.minimum, Got=got)
    if arity.minimum == arity.maximum:
        return new_error("ARITY-0001", Function=function, Got=got, Want=arity.minimum)
    return new_error("ARITY-0004", Function=function, Min=arity.minimum, Max=arity.maximum, Got=got)


# -----------------------------------------------------------------
# Internal failures. These are raised, never returned as values.
# -----------------------------------------------------------------

class PatternShapeError(AssertionError):
    """A malformed pattern reached the runtime."""


class RegistryInconsistency(RuntimeError):
    """Metadata and executable tables disagree; fatal at startup."""


class DispatchTableError(RuntimeError):
    """A value's type tag has no method table."""


# -----------------------------------------------------------------
# Fuzzy matching for "did you mean" hints
# -----------------------------------------------------------------

def levenshtein(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def _threshold(text: str) -> int:
    # 1-3 chars: 1 edit, 4-6: 2 edits, 7+: 3 edits
    if len(text) >= 7:
        return 3
    if len(text) >= 4:
        return 2
    return 1


def find_closest_match(text: str, candidates) -> Optional[str]:
    """Returns the closest candidate within the edit threshold, or None."""
    if not text:
        return None
    best, best_distance = None, -1
    lowered = text.lower()
    for candidate in candidates:
        distance = levenshtein(lowered, candidate.lower())
        if best_distance == -1 or distance < best_distance:
            best, best_distance = candidate, distance
    if best_distance <= 0 or best_distance > _threshold(text):
        return None
    return best


def find_top_matches(text: str, candidates, n: int) -> List[str]:
    if not text or n <= 0:
        return []
    lowered = text.lower()
    scored = []
    for candidate in candidates:
        distance = levenshtein(lowered, candidate.lower())
        if distance > 0:
            scored.append((distance, candidate))
    scored.sort(key=lambda pair: pair[0])
    limit = _threshold(text)
    return [c for d, c in scored[:n] if d <= limit]


def undefined_method(method: str, type_name: str, available) -> ParsleyError:
    err = new_error("UNDEF-0002", Method=method, Type=type_name)
    suggestion = find_closest_match(method, available)
    if suggestion:
        err.hints.append(f"Did you mean `{suggestion}`?")
    return err


def undefined_identifier(name: str, available) -> ParsleyError:
    err = new_error("UNDEF-0001", Name=name)
    suggestion = find_closest_match(name, available)
    if suggestion:
        err.hints.append(f"Did you mean `{suggestion}`?")
    return err
