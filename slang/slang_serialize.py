"""
Convert slang tokens, syntax trees and runtime values to plain data and text.

`to_data` produces JSON/YAML-safe builtins (dicts, lists, scalars). AST nodes
become tagged dicts, e.g. {'tag': 'Binary', 'op': '+', 'left': ..., 'right': ...};
`serialize` dumps that structure as 'json' or 'yaml'.
"""
from __future__ import annotations

import dataclasses
import json
from typing import Any

import yaml

from slang.slang_ast import ObjectLiteral
from slang.slang_datatypes import SlangObject, SlangFunction
from slang.slang_lexer import Token


def _loc_data(loc) -> dict | None:
    if loc is None:
        return None
    return {'line': loc.line, 'col': loc.col}


def _node_to_data(node: Any, with_loc: bool) -> dict:
    out: dict = {'tag': type(node).__name__}
    for f in dataclasses.fields(node):
        if f.name == 'loc':
            continue
        value = getattr(node, f.name)
        if isinstance(node, ObjectLiteral) and f.name == 'entries':
            out['entries'] = [{'key': k, 'value': to_data(v, with_loc=with_loc)} for k, v in value]
        else:
            out[f.name] = to_data(value, with_loc=with_loc)
    if with_loc:
        loc = _loc_data(getattr(node, 'loc', None))
        if loc is not None:
            out['loc'] = loc
    return out


def to_data(obj: Any, *, with_loc: bool = False, _seen: set | None = None) -> Any:
    """Convert a token, AST node, runtime value, or a list/tuple of them to builtins."""
    match obj:
        case None | bool() | int() | float() | str():
            return obj
        case Token():
            data = {'kind': obj.kind.value, 'text': obj.text}
            if with_loc:
                data['loc'] = {'line': obj.line, 'col': obj.col}
            return data
        case list() | tuple():
            return [to_data(x, with_loc=with_loc, _seen=_seen) for x in obj]
        case SlangFunction():
            return {'tag': 'Function', 'name': obj.name, 'params': list(obj.params)}
        case SlangObject():
            seen = _seen if _seen is not None else set()
            if id(obj) in seen:
                raise ValueError("cannot serialize a self-referencing object")
            seen.add(id(obj))
            try:
                return {k: to_data(v, with_loc=with_loc, _seen=seen) for k, v in obj.items()}
            finally:
                seen.discard(id(obj))
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return _node_to_data(obj, with_loc)
    raise TypeError(f"cannot convert {type(obj).__name__} to data")


def serialize(value: Any, *, fmt: str = 'yaml', pretty: bool = True, with_loc: bool = False) -> str:
    """
    Convert a slang token list, AST node or runtime value into text.
    - fmt: 'json' | 'yaml'
    """
    f = (fmt or '').lower()
    if f not in ('json', 'yaml'):
        raise ValueError(f"Unsupported serialization format: {fmt!r}")
    try:
        built = to_data(value, with_loc=with_loc)
        if f == 'json':
            return json.dumps(built, ensure_ascii=False, indent=2 if pretty else None)
        return yaml.safe_dump(built, sort_keys=False, allow_unicode=True)
    except RecursionError:
        raise ValueError("value is nested too deeply to serialize") from None


__all__ = [
    "to_data",
    "serialize",
]
