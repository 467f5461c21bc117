from __future__ import annotations

"""
Structural deep merge over untyped identity data.

Values are classified into a small tagged model (NULL, SCALAR, MAP, SEQUENCE)
and merged key by key. The merge adds or overwrites per leaf: keys only
present in the destination are never dropped.
"""

import copy
from enum import Enum
from typing import Any, List, Mapping, MutableMapping


class ValueKind(str, Enum):
    NULL = "null"
    SCALAR = "scalar"
    MAP = "map"
    SEQUENCE = "sequence"


def kind_of(value: Any) -> ValueKind:
    if value is None:
        return ValueKind.NULL
    if isinstance(value, Mapping):
        return ValueKind.MAP
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    return ValueKind.SCALAR


def _merge_value(src: Any, dst: Any) -> Any:
    """Return the new destination value for one slot."""
    sk, dk = kind_of(src), kind_of(dst)

    if sk != ValueKind.SCALAR and dk != ValueKind.SCALAR:
        if sk == ValueKind.NULL:
            # null source never clears an existing subtree
            return dst
        if dk == ValueKind.NULL:
            return copy.deepcopy(src)
        if sk == ValueKind.MAP and dk == ValueKind.MAP:
            if isinstance(dst, MutableMapping):
                return merge_into(src, dst)
            return merge_into(src, dict(dst))
        if sk == ValueKind.SEQUENCE and dk == ValueKind.SEQUENCE:
            return _merge_sequence(src, dst)
        # map vs sequence: index the sequence side and merge as maps
        if dk == ValueKind.SEQUENCE:
            return merge_into(src, _as_map(dst))
        return merge_into(_as_map(src), dst if isinstance(dst, MutableMapping) else dict(dst))

    if src != dst or type(src) is not type(dst):
        return copy.deepcopy(src)
    return dst


def _as_map(seq: Any) -> dict:
    return {str(i): copy.deepcopy(v) for i, v in enumerate(seq)}


def _merge_sequence(src: Any, dst: Any) -> List[Any]:
    out: List[Any] = dst if isinstance(dst, list) else list(dst)
    for i, item in enumerate(src):
        if i < len(out):
            out[i] = _merge_value(item, out[i])
        else:
            out.append(copy.deepcopy(item))
    return out


def merge_into(source: Mapping[str, Any], destination: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """
    Merge `source` into `destination` in place and return `destination`.

    Per key of `source`:
    - both non-scalar: recurse (null source is a no-op, null destination
      takes a copy of the source, a sequence meeting a map is merged as
      a map keyed by index)
    - otherwise overwrite when the values differ
    Keys only in `destination` are left untouched.
    """
    for k, v in source.items():
        if k in destination:
            destination[k] = _merge_value(v, destination[k])
        else:
            destination[k] = copy.deepcopy(v)
    return destination
