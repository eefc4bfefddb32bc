"""
Global builtin functions: introspection, conversion and `fail`.
"""
import re
from typing import Any, List

from parsley.parsley_datatypes import Builtin, ParsleyFunction, type_name
from parsley.parsley_dispatch import builtin
from parsley.parsley_errors import DispatchTableError, new_error
from parsley.parsley_methods import require_type
from parsley.parsley_printer import Printer, to_display_string
from parsley.parsley_registry import MetadataRegistry, signature


def _registry(ctx) -> MetadataRegistry:
    runtime = getattr(ctx, "runtime", None)
    if runtime is not None:
        return runtime.registry
    return MetadataRegistry.default()


def _tag(value: Any) -> str:
    tag = type_name(value)
    if tag is None:
        raise DispatchTableError(f"value of host type {type(value).__name__} has no type tag")
    return tag


def _param_names(fn: ParsleyFunction) -> List[str]:
    printer = Printer()
    names = [printer.pformat(p) for p in fn.params]
    if fn.rest is not None:
        names.append(f"...{fn.rest}")
    return names


# --- Introspection ---

@builtin("inspect")
def _inspect(ctx, value):
    registry = _registry(ctx)
    if isinstance(value, Builtin):
        info = registry.describe(value.name)
        if info is None:
            return {"type": "builtin", "name": value.name}
        return registry.inspect_record(info)

    tag = _tag(value)
    record = {
        "type": tag,
        "methods": [
            {"name": m.name, "arity": m.arity, "description": m.description}
            for m in registry.methods_for(tag)
        ],
    }
    if isinstance(value, ParsleyFunction):
        record["params"] = _param_names(value)
    if isinstance(value, dict):
        record["keys"] = list(value.keys())
    return record


@builtin("describe")
def _describe(ctx, value):
    registry = _registry(ctx)
    if isinstance(value, Builtin):
        line = registry.describe_line(value.name)
        return line if line is not None else f"{value.name} (no documentation available)"

    tag = _tag(value)
    lines = [f"Type: {tag}"]
    if isinstance(value, ParsleyFunction):
        params = _param_names(value)
        lines.append("Parameters: " + (", ".join(params) if params else "(none)"))
    if isinstance(value, dict):
        lines.append("Keys: " + ", ".join(value.keys()))

    methods = registry.methods_for(tag)
    if not methods:
        lines.append("Methods: (none)")
    else:
        lines.append("")
        lines.append("Methods:")
        signatures = ["." + signature(m, qualified=False) for m in methods]
        width = max(len(s) for s in signatures)
        for sig, m in zip(signatures, methods):
            lines.append(f"  {sig.ljust(width)}  - {m.description}")
    return "\n".join(lines) + "\n"


@builtin("builtins", arity="0-1")
def _builtins(ctx, category=None):
    if category is not None and not isinstance(category, str):
        raise new_error("TYPE-0012", Function="builtins", Expected="a category string", Got=type_name(category))
    grouped = _registry(ctx).builtins_by_category(category)
    result = {}
    for cat, infos in grouped.items():
        entries = []
        for info in infos:
            entry = {
                "name": info.name,
                "arity": info.arity,
                "description": info.description,
                "params": list(info.params),
            }
            if info.deprecated:
                entry["deprecated"] = info.deprecated
            entries.append(entry)
        result[cat] = entries
    return result


@builtin("repr")
def _repr(ctx, value):
    return Printer().pformat(value)


@builtin("type")
def _type(ctx, value):
    return _tag(value)


# --- Conversion ---

def _conversion_error(value, target):
    return new_error("VAL-0007", Value=to_display_string(value), Target=target)


# Plain decimal digits only: no digit-group underscores, no non-ASCII digits.
_INT_TEXT = re.compile(r"[+-]?[0-9]+")


def _parse_int(text: str):
    return int(text, 10) if _INT_TEXT.fullmatch(text) else None


def _parse_float(text: str):
    if "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _require_convertible(value, function):
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise new_error("TYPE-0012", Function=function, Expected="a string or number", Got=type_name(value))
    return value


@builtin("toInt")
def _to_int(ctx, value):
    _require_convertible(value, "toInt")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise _conversion_error(value, "integer")
        return int(value)
    result = _parse_int(value.strip())
    if result is None:
        raise _conversion_error(value, "integer")
    return result


@builtin("toFloat")
def _to_float(ctx, value):
    _require_convertible(value, "toFloat")
    if isinstance(value, (int, float)):
        return float(value)
    result = _parse_float(value.strip())
    if result is None:
        raise _conversion_error(value, "float")
    return result


@builtin("toNumber")
def _to_number(ctx, value):
    _require_convertible(value, "toNumber")
    if isinstance(value, (int, float)):
        return value
    text = value.strip()
    result = _parse_int(text)
    if result is None:
        result = _parse_float(text)
    if result is None:
        raise _conversion_error(value, "number")
    return result


@builtin("toString")
def _to_string(ctx, value):
    return to_display_string(value)


@builtin("toArray")
def _to_array(ctx, value):
    if isinstance(value, dict):
        return [[k, v] for k, v in value.items()]
    if isinstance(value, list):
        return list(value)
    raise new_error("TYPE-0012", Function="toArray", Expected="a dictionary", Got=type_name(value))


@builtin("toDict")
def _to_dict(ctx, pairs):
    require_type(pairs, "array", "toDict", article="an")
    result = {}
    for pair in pairs:
        if not isinstance(pair, list) or len(pair) != 2:
            raise new_error("TYPE-0020", Context="Each toDict element", Expected="a [key, value] pair",
                            Got=Printer().pformat(pair))
        key, value = pair
        if not isinstance(key, str):
            raise new_error("TYPE-0020", Context="A toDict key", Expected="a string", Got=type_name(key))
        result[key] = value
    return result


# --- Control ---

@builtin("fail")
def _fail(ctx, message):
    require_type(message, "string", "fail")
    raise new_error("USER-0001", Message=message)
