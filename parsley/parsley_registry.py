"""
The metadata registry: documentation records for every builtin and method.

Records are loaded from a YAML table that lives beside, not inside, the
executable tables in parsley_dispatch. The two share one identifier
namespace (`name` for builtins, `type.method` for methods) and
`check_consistency` fails fast when they drift apart.
"""
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from parsley.parsley_config import dbg
from parsley.parsley_datatypes import TYPE_NAMES, Arity
from parsley.parsley_errors import RegistryInconsistency

DEFAULT_METADATA_PATH = Path(__file__).parent / "metadata.yaml"


@dataclass(frozen=True)
class BuiltinInfo:
    name: str
    arity: str
    description: str
    params: Tuple[str, ...] = ()
    category: str = ""
    deprecated: Optional[str] = None

    @property
    def identifier(self) -> str:
        return self.name


@dataclass(frozen=True)
class MethodInfo:
    name: str
    type_name: str
    arity: str
    description: str
    params: Tuple[str, ...] = ()

    @property
    def category(self) -> str:
        # A method is categorised by its receiver type.
        return self.type_name

    @property
    def identifier(self) -> str:
        return f"{self.type_name}.{self.name}"


Info = Union[BuiltinInfo, MethodInfo]


def signature(info: Info, qualified: bool = True) -> str:
    """`name(param1, param2?)`, or `type.name(...)` for a qualified method."""
    name = info.identifier if qualified else info.name
    return f"{name}({', '.join(info.params)})"


def _record_fields(where: str, record: Any) -> Dict[str, Any]:
    if not isinstance(record, dict):
        raise RegistryInconsistency(f"{where}: record must be a mapping, got {type(record).__name__}")
    for key in ("arity", "description"):
        if key not in record:
            raise RegistryInconsistency(f"{where}: missing '{key}'")
    params = record.get("params") or []
    if not isinstance(params, list) or not all(isinstance(p, str) for p in params):
        raise RegistryInconsistency(f"{where}: 'params' must be a list of names")
    return {
        "arity": str(record["arity"]),
        "description": str(record["description"]),
        "params": tuple(params),
    }


class MetadataRegistry:
    """Read-only lookup from identifier to BuiltinInfo / MethodInfo."""

    _default: Optional['MetadataRegistry'] = None

    def __init__(self, builtins: Dict[str, BuiltinInfo], methods: Dict[str, Dict[str, MethodInfo]]):
        self.builtins: Mapping[str, BuiltinInfo] = MappingProxyType(dict(builtins))
        self.methods: Mapping[str, Mapping[str, MethodInfo]] = MappingProxyType(
            {t: MappingProxyType(dict(table)) for t, table in methods.items()}
        )

    @classmethod
    def from_mapping(cls, data: Any) -> 'MetadataRegistry':
        if not isinstance(data, dict):
            raise RegistryInconsistency("metadata root must be a mapping")
        builtins: Dict[str, BuiltinInfo] = {}
        for name, record in (data.get("builtins") or {}).items():
            fields = _record_fields(f"builtin {name}", record)
            builtins[name] = BuiltinInfo(
                name=name,
                category=str(record.get("category", "")),
                deprecated=record.get("deprecated"),
                **fields,
            )
        methods: Dict[str, Dict[str, MethodInfo]] = {}
        for tag, table in (data.get("methods") or {}).items():
            if not isinstance(table, dict):
                raise RegistryInconsistency(f"methods for {tag}: expected a mapping")
            methods[tag] = {
                name: MethodInfo(name=name, type_name=tag, **_record_fields(f"method {tag}.{name}", record))
                for name, record in table.items()
            }
        return cls(builtins, methods)

    @classmethod
    def load(cls, path: Union[str, Path, None] = None, debug: bool = False) -> 'MetadataRegistry':
        path = Path(path) if path is not None else DEFAULT_METADATA_PATH
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        registry = cls.from_mapping(data)
        dbg("registry loaded", str(path), len(registry.builtins), "builtins",
            sum(len(t) for t in registry.methods.values()), "methods", force=debug)
        return registry

    @classmethod
    def default(cls) -> 'MetadataRegistry':
        """The packaged registry, loaded once per process."""
        if MetadataRegistry._default is None:
            MetadataRegistry._default = cls.load()
        return MetadataRegistry._default

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------

    def describe(self, name: str) -> Optional[Info]:
        """Looks up a builtin by name or a method by `type.method`."""
        if not isinstance(name, str):
            return None
        if name in self.builtins:
            return self.builtins[name]
        tag, dot, method = name.partition(".")
        if dot and tag in self.methods:
            return self.methods[tag].get(method)
        return None

    def describe_line(self, name: str) -> Optional[str]:
        info = self.describe(name)
        if info is None:
            return None
        return f"{signature(info)} - {info.description}"

    def inspect_record(self, info: Info) -> Dict[str, Any]:
        """The structured form of a record, as a dictionary value."""
        if isinstance(info, BuiltinInfo):
            record = {
                "type": "builtin",
                "name": info.name,
                "arity": info.arity,
                "description": info.description,
                "params": list(info.params),
                "category": info.category,
            }
            if info.deprecated:
                record["deprecated"] = info.deprecated
            return record
        return {
            "type": "method",
            "name": info.name,
            "receiver": info.type_name,
            "arity": info.arity,
            "description": info.description,
            "params": list(info.params),
        }

    def methods_for(self, type_name: str) -> List[MethodInfo]:
        return sorted(self.methods.get(type_name, {}).values(), key=lambda m: m.name)

    def builtins_by_category(self, category: Optional[str] = None) -> Dict[str, List[BuiltinInfo]]:
        grouped: Dict[str, List[BuiltinInfo]] = {}
        for info in self.builtins.values():
            if category is not None and info.category != category:
                continue
            grouped.setdefault(info.category, []).append(info)
        return {cat: sorted(grouped[cat], key=lambda b: b.name) for cat in sorted(grouped)}

    def type_names(self) -> List[str]:
        return sorted(self.methods)

    def identifiers(self) -> List[str]:
        names = list(self.builtins)
        for tag, table in self.methods.items():
            names.extend(f"{tag}.{m}" for m in table)
        return names

    # -----------------------------------------------------------------
    # Startup check
    # -----------------------------------------------------------------

    def check_consistency(self, method_tables, builtin_table, debug: bool = False):
        """Raises RegistryInconsistency unless metadata mirrors the executable tables."""
        problems: List[str] = []

        def compare(ident: str, info: Info, executable: Arity):
            try:
                declared = Arity.parse(info.arity)
            except ValueError:
                problems.append(f"{ident}: invalid arity {info.arity!r}")
                return
            if (declared.minimum, declared.maximum) != (executable.minimum, executable.maximum):
                problems.append(f"{ident}: metadata arity {info.arity} != implementation arity {executable}")
            if not declared.matches_params(info.params):
                problems.append(f"{ident}: arity {info.arity} does not fit params {list(info.params)}")

        for name in sorted(set(builtin_table) - set(self.builtins)):
            problems.append(f"builtin {name}: no metadata")
        for name in sorted(set(self.builtins) - set(builtin_table)):
            problems.append(f"builtin {name}: metadata without implementation")
        for name in sorted(set(builtin_table) & set(self.builtins)):
            compare(name, self.builtins[name], builtin_table[name].arity)

        for tag in TYPE_NAMES:
            if tag not in self.methods:
                problems.append(f"type {tag}: no method metadata")
        for tag in sorted(set(self.methods) - set(TYPE_NAMES)):
            problems.append(f"type {tag}: metadata for unknown type")

        for tag, table in method_tables.items():
            documented = self.methods.get(tag, {})
            for name in sorted(set(table) - set(documented)):
                problems.append(f"method {tag}.{name}: no metadata")
            for name in sorted(set(documented) - set(table)):
                problems.append(f"method {tag}.{name}: metadata without implementation")
            for name in sorted(set(table) & set(documented)):
                compare(f"{tag}.{name}", documented[name], table[name].arity)

        if problems:
            raise RegistryInconsistency("metadata does not match implementation:\n  " + "\n  ".join(problems))
        dbg("registry consistent", len(builtin_table), "builtins", force=debug)
