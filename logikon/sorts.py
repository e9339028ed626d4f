from __future__ import annotations

from typing import Dict

from lark import Token, Tree

from .ast import Sort
from .errors import MalformedNode, UnrecognizedSort
from .nodes import node_loc, node_name, node_text

_SORTS: Dict[str, Sort] = {
    "Uint": Sort.UINT,
    "Bool": Sort.BOOL,
    "List": Sort.LIST,
    "Array": Sort.ARRAY,
}

_SPELLING_HINTS = {
    "Int": "Uint",
    "Nat": "Uint",
    "Boolean": "Bool",
}


def resolve_sort(node: Tree | Token) -> Sort:
    """Map a `logikon_type` node to its sort."""
    if node_name(node) != "logikon_type":
        raise MalformedNode(
            f"expected a sort, found '{node_name(node)}'",
            rule=node_name(node),
            loc=node_loc(node),
        )
    spelling = node_text(node)
    sort = _SORTS.get(spelling)
    if sort is not None:
        return sort
    hint = _SPELLING_HINTS.get(spelling)
    if hint:
        message = f"sort '{spelling}' is not defined. Use '{hint}' instead."
    else:
        message = f"sort '{spelling}' is not defined"
    raise UnrecognizedSort(message, rule="logikon_type", loc=node_loc(node))


def sort_name(sort: Sort) -> str:
    if sort is Sort.UNKNOWN:
        raise ValueError("the unknown sort has no source spelling")
    return sort.value
