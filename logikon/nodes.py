"""
Accessors for generic parse-tree nodes.

Builders only ever look at three things on a node: its rule tag, the source
text it matched and where it starts. Hand-built trees (tests, other front ends)
carry no position metadata, so locations are best-effort.
"""

from __future__ import annotations

from typing import List, Optional

from lark import Token, Tree

from .ast import Located


def node_name(node: Tree | Token) -> str:
    if isinstance(node, Tree):
        data = node.data
        if isinstance(data, Token):
            return data.value
        return data
    if isinstance(node, Token):
        return node.type
    return str(node)


def node_text(node: Tree | Token) -> str:
    if isinstance(node, Token):
        return node.value
    return "".join(tok.value for tok in node.scan_values(lambda v: isinstance(v, Token)))


def node_loc(node: Tree | Token) -> Optional[Located]:
    if isinstance(node, Token):
        if node.line is None:
            return None
        return Located(line=node.line, column=node.column)
    if not isinstance(node, Tree):
        return None
    meta = node.meta
    line = getattr(meta, "line", None)
    if line is None:
        return None
    return Located(line=line, column=meta.column)


def subtrees(node: Tree) -> List[Tree]:
    return [child for child in node.children if isinstance(child, Tree)]
