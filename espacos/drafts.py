"""
espacos.drafts
──────────────
Pure helpers for draft bookkeeping.

  • deep_equal       – structural comparison used by the dirty flag and
                       by step emission (never identity)
  • overlay          – shallow key overlay of one fragment onto another
  • merge_fragments  – fold every step fragment into one draft record
  • prune_blanks     – drop placeholder blanks from growable lists
"""
from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Mapping, Optional


def deep_equal(a: Any, b: Any) -> bool:
    """
    Compare two draft values by structure.

    Mappings compare by key set and per-key value (key order ignored),
    sequences element-wise in order, everything else with ``==``.
    ``bool`` is never equal to a number, so a checkbox ``True`` does not
    match a rating of ``1``.
    """
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(deep_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def overlay(base: Mapping[str, Any], patch: Mapping[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    out.update(patch)
    return out


def merge_fragments(fragments: Iterable[Mapping[str, Any]],
                    seed: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Key-wise union of all fragments, later steps win on a shared key."""
    merged: Dict[str, Any] = dict(seed or {})
    for frag in fragments:
        merged.update(frag)
    return copy.deepcopy(merged)


def is_blank(val: Any) -> bool:
    return val is None or (isinstance(val, str) and val.strip() == "")


def prune_blanks(items: Iterable[Any], item_key: Optional[str] = None) -> List[Any]:
    """
    Drop blank entries from a growable list.

    Plain strings are dropped when whitespace-only; mapping entries are
    dropped when their ``item_key`` value is blank.
    """
    out: List[Any] = []
    for item in items or []:
        if isinstance(item, Mapping):
            if item_key is not None and is_blank(item.get(item_key)):
                continue
            out.append(dict(item))
        elif not is_blank(item):
            out.append(item)
    return out


__all__ = ["deep_equal", "overlay", "merge_fragments", "is_blank", "prune_blanks"]
