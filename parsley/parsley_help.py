"""
Topic-based help, as served by `pars.py describe <topic>`.

A topic is a type name (`array`), a method (`array.take`), a builtin name
(`toInt`), or one of the keywords `builtins` and `types`.
"""
import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from parsley.parsley_errors import find_top_matches
from parsley.parsley_registry import BuiltinInfo, MetadataRegistry

CATEGORY_TITLES = {
    "conversion": "Type Conversion",
    "introspection": "Introspection",
    "control": "Control Flow",
}

TYPE_GROUPS = (
    ("Primitives", ("string", "integer", "float", "boolean", "null")),
    ("Collections", ("array", "dictionary")),
    ("Callables", ("function", "builtin")),
)


class UnknownTopic(LookupError):
    """No type, method, builtin or keyword matches the topic."""

    def __init__(self, topic: str, suggestions: List[str]):
        self.topic = topic
        self.suggestions = suggestions
        if suggestions:
            message = f"unknown topic: {topic}\nDid you mean: {', '.join(suggestions)}?"
        else:
            message = f"unknown topic: {topic}\nTry: types, builtins, string, array, toInt"
        super().__init__(message)


@dataclass
class TopicResult:
    kind: str
    name: str
    description: str = ""
    methods: List[Dict[str, Any]] = field(default_factory=list)
    builtins: List[Dict[str, Any]] = field(default_factory=list)
    type_names: List[str] = field(default_factory=list)
    params: List[str] = field(default_factory=list)
    arity: str = ""
    category: str = ""
    deprecated: str = ""

    def to_dict(self) -> Dict[str, Any]:
        # Empty fields are omitted, except the two that identify the result.
        return {k: v for k, v in asdict(self).items() if v or k in ("kind", "name")}


def _method_entry(info) -> Dict[str, Any]:
    return {"name": info.name, "arity": info.arity, "params": list(info.params), "description": info.description}


def _builtin_entry(info: BuiltinInfo) -> Dict[str, Any]:
    entry = {
        "name": info.name,
        "arity": info.arity,
        "params": list(info.params),
        "category": info.category,
        "description": info.description,
    }
    if info.deprecated:
        entry["deprecated"] = info.deprecated
    return entry


def _suggestions(topic: str, registry: MetadataRegistry) -> List[str]:
    needle = topic.lower()
    candidates = registry.type_names() + sorted(registry.builtins)
    found = [name for name in candidates if needle in name.lower() or name.lower() in needle]
    if not found:
        found = find_top_matches(topic, candidates, 3)
    return found[:3]


def describe_topic(topic: str, registry: Optional[MetadataRegistry] = None) -> TopicResult:
    """Resolves a help topic; raises UnknownTopic (or ValueError when empty)."""
    registry = registry or MetadataRegistry.default()
    topic = (topic or "").strip()
    if not topic:
        raise ValueError("no topic specified (try: types, builtins, string, array)")

    lowered = topic.lower()
    if lowered in registry.methods:
        return TopicResult(
            kind="type",
            name=lowered,
            methods=[_method_entry(m) for m in registry.methods_for(lowered)],
        )
    if topic == "builtins":
        infos = [b for group in registry.builtins_by_category().values() for b in group]
        return TopicResult(kind="builtin-list", name="builtins", builtins=[_builtin_entry(b) for b in infos])
    if topic == "types":
        return TopicResult(kind="type-list", name="types", type_names=registry.type_names())

    info = registry.describe(topic)
    if isinstance(info, BuiltinInfo):
        return TopicResult(
            kind="builtin",
            name=info.name,
            description=info.description,
            params=list(info.params),
            arity=info.arity,
            category=info.category,
            deprecated=info.deprecated or "",
        )
    if info is not None:
        return TopicResult(
            kind="method",
            name=info.identifier,
            description=info.description,
            params=list(info.params),
            arity=info.arity,
            category=info.category,
        )
    raise UnknownTopic(topic, _suggestions(topic, registry))


# =================================================================
# Formatting
# =================================================================

def _aligned(rows, indent="  ") -> List[str]:
    if not rows:
        return []
    width = max(len(left) for left, _ in rows)
    return [f"{indent}{left.ljust(width)}  {right}" for left, right in rows]


def _format_type(result: TopicResult) -> List[str]:
    lines = [f"Type: {result.name}"]
    if not result.methods:
        return lines + ["", "(no methods)"]
    rows = [(f".{m['name']}({', '.join(m['params'])})", m["description"]) for m in result.methods]
    return lines + ["", "Methods:"] + _aligned(rows)


def _format_callable(result: TopicResult) -> List[str]:
    lines = [
        f"{result.name}({', '.join(result.params)})",
        "",
        result.description,
        "",
        f"Arity: {result.arity}",
        f"{'Receiver' if result.kind == 'method' else 'Category'}: {result.category}",
    ]
    if result.deprecated:
        lines += ["", f"DEPRECATED: {result.deprecated}"]
    return lines


def _format_builtin_list(result: TopicResult) -> List[str]:
    lines = ["Builtin Functions", "=================", ""]
    by_category: Dict[str, List[Dict[str, Any]]] = {}
    for b in result.builtins:
        by_category.setdefault(b["category"], []).append(b)
    for category in sorted(by_category):
        lines.append(f"{CATEGORY_TITLES.get(category, category.capitalize())}:")
        rows = [(f"{b['name']}({', '.join(b['params'])})", b["description"]) for b in by_category[category]]
        lines += _aligned(rows)
        lines.append("")
    return lines


def _format_type_list(result: TopicResult) -> List[str]:
    lines = ["Available Types", "===============", ""]
    remaining = list(result.type_names)
    for title, members in TYPE_GROUPS:
        group = [t for t in members if t in remaining]
        if group:
            lines += [f"{title}:", "  " + ", ".join(group), ""]
            remaining = [t for t in remaining if t not in group]
    if remaining:
        lines += ["Other:", "  " + ", ".join(remaining), ""]
    return lines


_FORMATTERS = {
    "type": _format_type,
    "builtin": _format_callable,
    "method": _format_callable,
    "builtin-list": _format_builtin_list,
    "type-list": _format_type_list,
}


def format_text(result: TopicResult) -> str:
    formatter = _FORMATTERS.get(result.kind)
    if formatter is None:
        return f"Unknown result kind: {result.kind}\n"
    return "\n".join(formatter(result)).rstrip("\n") + "\n"


def format_json(result: TopicResult) -> str:
    return json.dumps(result.to_dict(), indent=2)