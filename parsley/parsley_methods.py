"""
Native value methods for strings, arrays, dictionaries and numbers.

Every method is pure: it returns a new value and never mutates its
receiver. The randomized array methods live in parsley_random.
"""
import math
from typing import Any

import pystache

from parsley.parsley_datatypes import TYPE_NAMES, type_name
from parsley.parsley_dispatch import call_value, method
from parsley.parsley_errors import new_error
from parsley.parsley_printer import to_display_string


def require_int(value: Any, function: str) -> int:
    # bool is a subclass of int, so it is excluded explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise new_error("TYPE-0012", Function=function, Expected="an integer", Got=type_name(value))
    return value


def require_type(value: Any, expected_tag: str, function: str, article: str = "a"):
    if type_name(value) != expected_tag:
        raise new_error("TYPE-0012", Function=function, Expected=f"{article} {expected_tag}", Got=type_name(value))
    return value


def require_callable(value: Any, function: str):
    if type_name(value) not in ("function", "builtin"):
        raise new_error("TYPE-0012", Function=function, Expected="a function", Got=type_name(value))
    return value


# --- Shared by every type ---

@method(TYPE_NAMES, "type")
def _type(ctx, receiver):
    return type_name(receiver)


# --- Array ---

@method("array", "length")
def _array_length(ctx, arr): return len(arr)


@method("array", "reverse")
def _array_reverse(ctx, arr): return list(reversed(arr))


def _natural_key(value):
    # Numbers before strings; everything else compared by its printed form.
    if isinstance(value, bool):
        return (2, to_display_string(value))
    if isinstance(value, (int, float)):
        return (0, value)
    if isinstance(value, str):
        return (1, value)
    return (2, to_display_string(value))


@method("array", "sort")
def _array_sort(ctx, arr): return sorted(arr, key=_natural_key)


@method("array", "join", arity="0-1")
def _array_join(ctx, arr, separator=""):
    require_type(separator, "string", "join")
    return separator.join(to_display_string(item) for item in arr)


def values_equal(a: Any, b: Any) -> bool:
    """Equality without Python's bool/int coercion; integers and floats compare numerically."""
    ta, tb = type_name(a), type_name(b)
    if ta in ("integer", "float") and tb in ("integer", "float"):
        return a == b
    if ta != tb:
        return False
    if ta == "array":
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    if ta == "dictionary":
        return a.keys() == b.keys() and all(values_equal(a[k], b[k]) for k in a)
    return a == b


@method("array", "has", arity="1")
def _array_has(ctx, arr, item): return any(values_equal(x, item) for x in arr)


@method("array", "insert", arity="2")
def _array_insert(ctx, arr, index, value):
    require_int(index, "insert")
    position = index + len(arr) if index < 0 else index
    if position < 0 or position > len(arr):
        raise new_error("INDEX-0001", Index=index, Length=len(arr))
    return arr[:position] + [value] + arr[position:]


@method("array", "map", arity="1")
def _array_map(ctx, arr, fn):
    require_callable(fn, "map")
    return [call_value(fn, [item], ctx) for item in arr]


@method("array", "filter", arity="1")
def _array_filter(ctx, arr, fn):
    require_callable(fn, "filter")
    return [item for item in arr if call_value(fn, [item], ctx)]


@method("array", "reduce", arity="2")
def _array_reduce(ctx, arr, fn, initial):
    require_callable(fn, "reduce")
    accumulator = initial
    for item in arr:
        accumulator = call_value(fn, [accumulator, item], ctx)
    return accumulator


# --- String ---

@method("string", "length")
def _str_length(ctx, s): return len(s)


@method("string", "toUpper")
def _str_upper(ctx, s): return s.upper()


@method("string", "toLower")
def _str_lower(ctx, s): return s.lower()


@method("string", "trim")
def _str_trim(ctx, s): return s.strip()


@method("string", "split", arity="1")
def _str_split(ctx, s, separator):
    require_type(separator, "string", "split")
    if separator == "":
        return list(s)
    return s.split(separator)


@method("string", "replace", arity="2")
def _str_replace(ctx, s, old, new):
    require_type(old, "string", "replace")
    require_type(new, "string", "replace")
    return s.replace(old, new)


@method("string", "includes", arity="1")
def _str_includes(ctx, s, needle):
    require_type(needle, "string", "includes")
    return needle in s


_renderer = pystache.Renderer(escape=lambda u: u)


def _template_value(value):
    """Convert runtime values into plain Python types for Mustache."""
    if isinstance(value, dict):
        return {k: _template_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_template_value(v) for v in value]
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return to_display_string(value)


def _render(template: str, values: dict) -> str:
    return _renderer.render(template, _template_value(values))


@method("string", "render", arity="0-1")
def _str_render(ctx, s, values=None):
    if values is None:
        values = ctx.env.user_variables() if ctx.env is not None else {}
    require_type(values, "dictionary", "render")
    return _render(s, values)


# --- Dictionary ---

@method("dictionary", "keys")
def _dict_keys(ctx, d): return list(d.keys())


@method("dictionary", "values")
def _dict_values(ctx, d): return list(d.values())


@method("dictionary", "entries")
def _dict_entries(ctx, d): return [[k, v] for k, v in d.items()]


@method("dictionary", "has", arity="1")
def _dict_has(ctx, d, key):
    require_type(key, "string", "has")
    return key in d


@method("dictionary", "delete", arity="1")
def _dict_delete(ctx, d, key):
    require_type(key, "string", "delete")
    return {k: v for k, v in d.items() if k != key}


@method("dictionary", "render", arity="1")
def _dict_render(ctx, d, template):
    require_type(template, "string", "render")
    return _render(template, d)


# --- Numbers ---

@method(("integer", "float"), "abs")
def _num_abs(ctx, n): return abs(n)


@method("integer", "format", arity="0-1")
def _int_format(ctx, n, separator=","):
    require_type(separator, "string", "format")
    return f"{n:,}".replace(",", separator)


@method("float", "format", arity="0-2")
def _float_format(ctx, x, decimals=2, separator=","):
    require_int(decimals, "format")
    require_type(separator, "string", "format")
    if decimals < 0:
        raise new_error("VAL-0004", Method="format", Got=decimals)
    return f"{x:,.{decimals}f}".replace(",", separator)


def _require_finite(x):
    if not math.isfinite(x):
        raise new_error("VAL-0007", Value=to_display_string(x), Target="integer")
    return x


@method("float", "round", arity="0-1")
def _float_round(ctx, x, decimals=0):
    require_int(decimals, "round")
    if decimals == 0:
        _require_finite(x)
        return int(math.floor(x + 0.5)) if x >= 0 else -int(math.floor(-x + 0.5))
    return round(x, decimals)


@method("float", "floor")
def _float_floor(ctx, x): return math.floor(_require_finite(x))


@method("float", "ceil")
def _float_ceil(ctx, x): return math.ceil(_require_finite(x))


# --- Error ---

@method("error", "message")
def _error_message(ctx, err): return err.message


@method("error", "code")
def _error_code(ctx, err): return err.code
