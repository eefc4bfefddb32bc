"""
A pretty-printer for Parsley values.
"""
from parsley.parsley_datatypes import (
    ArrayPattern, Builtin, DictPattern, NamePattern, ParsleyFunction, PlaceholderPattern,
)
from parsley.parsley_errors import ParsleyError


class Printer:
    """Formats Parsley values into their literal (repr) form."""

    def __init__(self, indent_width=2):
        self._indent_char = " " * indent_width
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj, level)

    def _get_handler(self, obj):
        """Dispatcher to find the correct formatting method."""
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, ParsleyError): return self._pformat_error
        if isinstance(obj, dict): return self._pformat_dict
        if isinstance(obj, list): return self._pformat_list
        # Default to Python's repr for unknown types
        return lambda o, l: repr(o)

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            int: self._pformat_primitive,
            float: self._pformat_float,
            bool: self._pformat_bool,
            type(None): self._pformat_none,
            list: self._pformat_list,
            dict: self._pformat_dict,
            ParsleyFunction: self._pformat_function,
            Builtin: self._pformat_builtin,
            ParsleyError: self._pformat_error,
            NamePattern: self._pformat_name_pattern,
            PlaceholderPattern: self._pformat_placeholder,
            ArrayPattern: self._pformat_array_pattern,
            DictPattern: self._pformat_dict_pattern,
        }

    def _pformat_primitive(self, obj, level):
        return str(obj)

    def _pformat_float(self, obj, level):
        text = repr(obj)
        return text[:-2] if text.endswith(".0") else text

    def _pformat_bool(self, obj, level):
        return "true" if obj else "false"

    def _pformat_none(self, obj, level):
        return "null"

    def _pformat_str(self, obj, level):
        escaped = obj.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'

    def _pformat_list(self, obj, level):
        return "[" + ", ".join(self.pformat(item, level + 1) for item in obj) + "]"

    def _pformat_dict(self, obj, level):
        if not obj:
            return "{}"
        parts = [f"{k}: {self.pformat(v, level + 1)}" for k, v in obj.items()]
        return "{" + ", ".join(parts) + "}"

    def _pformat_function(self, obj, level):
        params = [self.pformat(p, level) for p in obj.params]
        if obj.rest is not None:
            params.append(f"...{obj.rest}")
        return f"fn({', '.join(params)})"

    def _pformat_builtin(self, obj, level):
        return f"<builtin {obj.name}>"

    def _pformat_error(self, obj, level):
        return f"<error {obj.code}: {obj.message}>"

    def _pformat_name_pattern(self, obj, level):
        return obj.name

    def _pformat_placeholder(self, obj, level):
        return "_"

    def _pformat_array_pattern(self, obj, level):
        parts = [self.pformat(p, level) for p in obj.elements]
        if obj.rest is not None:
            parts.append(f"...{obj.rest}")
        return "[" + ", ".join(parts) + "]"

    def _pformat_dict_pattern(self, obj, level):
        parts = []
        for entry in obj.entries:
            text = entry.key
            if entry.target is not None:
                text += f": {self.pformat(entry.target, level)}"
            if entry.default is not None:
                text += " = ..."
            parts.append(text)
        if obj.rest is not None:
            parts.append(f"...{obj.rest}")
        return "{" + ", ".join(parts) + "}"


def to_display_string(value) -> str:
    """String form used when a value is embedded in text (no quotes on strings)."""
    if isinstance(value, str):
        return value
    return Printer().pformat(value)
