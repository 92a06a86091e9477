from __future__ import annotations

import json
import os
import tomllib
from typing import Any, Optional
import collections.abc

import toml
import xmltodict
import yaml

from envpath.envpath_datatypes import RawExpression, ResolvedPath

# Field name used when a bare expression has to live inside a table (TOML, XML).
DEFAULT_FIELD = "raw"
XML_ITEM = "item"

_EXTENSIONS = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".xml": "xml",
}


# --------------------------
# Helpers
# --------------------------

def _norm_text(data: bytes | bytearray | str) -> str:
    if isinstance(data, (bytes, bytearray)):
        return data.decode('utf-8', errors='replace')
    if isinstance(data, str):
        return data
    return str(data)


def to_builtin(obj: Any) -> Any:
    """Converts expressions and xmltodict mappings to plain lists and dicts.

    A ResolvedPath becomes its raw list; the resolved path is never written.
    """
    if isinstance(obj, ResolvedPath):
        return obj.raw.to_list()
    if isinstance(obj, RawExpression):
        return obj.to_list()
    if isinstance(obj, (list, tuple)):
        return [to_builtin(x) for x in obj]
    if isinstance(obj, collections.abc.Mapping):
        return {k: to_builtin(v) for k, v in obj.items()}
    return obj


def detect_format(data_hint: Optional[str] = None) -> Optional[str]:
    """
    Sniffs 'json' or 'xml' from the leading character of `data_hint`.
    Anything else is left to the caller's default.
    """
    if data_hint is None:
        return None
    s = data_hint.lstrip()
    if s.startswith('{') or s.startswith('['):
        return 'json'
    if s.startswith('<'):
        return 'xml'
    return None


def format_from_path(path: str) -> str:
    ext = os.path.splitext(path)[1].lower()
    try:
        return _EXTENSIONS[ext]
    except KeyError:
        raise ValueError(f"Cannot infer serialization format from {path!r}") from None


# --------------------------
# Documents
# --------------------------

def deserialize(data: bytes | bytearray | str,
                *,
                fmt: Optional[str] = None) -> Any:
    """
    Convert wire data (bytes/string) to plain Python structures.
    Supported fmt: 'json', 'yaml', 'toml', 'xml'.
    If fmt is None, sniffs JSON or XML, then falls back to YAML.
    """
    text = _norm_text(data)
    f = (fmt or detect_format(text) or 'yaml').lower()
    if f == 'json':
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            # Flow-style YAML is close enough to JSON that users mix them up.
            return yaml.safe_load(text)
    if f == 'yaml':
        return yaml.safe_load(text)
    if f == 'toml':
        return tomllib.loads(text)
    if f == 'xml':
        return to_builtin(xmltodict.parse(text))
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


def serialize(value: Any,
              *,
              fmt: str,
              pretty: bool = True,
              xml_root: str = "root") -> str:
    """
    Convert a plain value (expressions included) into a textual representation.
    - fmt: 'json' | 'yaml' | 'toml' | 'xml'
    - TOML and XML need a table at the top; anything else is wrapped
      under {DEFAULT_FIELD: value} or {xml_root: value}.
    """
    f = (fmt or '').lower()
    built = to_builtin(value)
    if f == 'json':
        return json.dumps(built, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(built, sort_keys=False, allow_unicode=True)
    if f == 'toml':
        if not isinstance(built, dict):
            built = {DEFAULT_FIELD: built}
        return toml.dumps(built)
    if f == 'xml':
        root = built if isinstance(built, dict) and len(built) == 1 else {xml_root: built}
        return xmltodict.unparse(_xml_lists(root), pretty=pretty)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


def _xml_lists(obj: Any) -> Any:
    # xmltodict repeats the parent tag for list values; nest them under <item> instead.
    if isinstance(obj, dict):
        return {k: _xml_lists(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return {XML_ITEM: [_xml_lists(x) for x in obj]}
    return obj


# --------------------------
# Raw expressions
# --------------------------

def _from_xml_list(node: Any) -> Any:
    if node is None:
        return []
    if isinstance(node, str) and not node.strip():
        return []
    if isinstance(node, dict):
        # Indentation between tags shows up as whitespace-only text.
        node = {k: v for k, v in node.items() if not (k == '#text' and not v.strip())}
    if isinstance(node, dict) and set(node) == {XML_ITEM}:
        items = node[XML_ITEM]
        if not isinstance(items, list):
            items = [items]
        # <item/> and <item></item> both parse to None.
        return ["" if i is None else i for i in items]
    return node


def dump_expression(raw, *, fmt: str, field: Optional[str] = None, pretty: bool = True) -> str:
    """Writes an expression (or a ResolvedPath's raw list) in `fmt`.

    With `field`, the list is written as that field of a one-key table.
    """
    items = to_builtin(raw if isinstance(raw, (RawExpression, ResolvedPath)) else RawExpression(raw))
    if fmt.lower() == 'xml':
        return serialize({field or DEFAULT_FIELD: items}, fmt='xml', pretty=pretty)
    value = {field: items} if field else items
    return serialize(value, fmt=fmt, pretty=pretty)


def load_expression(data: bytes | bytearray | str,
                    *,
                    fmt: Optional[str] = None,
                    field: Optional[str] = None) -> RawExpression:
    """Reads an expression written by `dump_expression`.

    A bare string document is accepted as a one-element expression.
    """
    text = _norm_text(data)
    f = (fmt or detect_format(text) or 'yaml').lower()

    if f == 'xml':
        # Element text is kept verbatim; leading spaces in an element are significant.
        doc = to_builtin(xmltodict.parse(text, strip_whitespace=False))
        if not isinstance(doc, dict) or len(doc) != 1:
            raise RuntimeError("XML expression document must have exactly one root element")
        (root_name, node), = doc.items()
        if field and root_name != field:
            raise RuntimeError(f"XML root is <{root_name}>, expected <{field}>")
        return RawExpression(_from_xml_list(node))

    doc = deserialize(text, fmt=f)
    if f == 'toml' and field is None and isinstance(doc, dict) and DEFAULT_FIELD in doc:
        field = DEFAULT_FIELD
    if field is not None:
        if not isinstance(doc, dict) or field not in doc:
            raise KeyError(field)
        doc = doc[field]
    if isinstance(doc, str):
        return RawExpression([doc])
    if not isinstance(doc, list):
        raise TypeError(f"Expected a list of strings, got {type(doc).__name__}")
    return RawExpression(doc)


__all__ = [
    "deserialize",
    "serialize",
    "detect_format",
    "format_from_path",
    "to_builtin",
    "dump_expression",
    "load_expression",
]
