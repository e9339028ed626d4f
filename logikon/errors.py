"""
Translation faults.

Every fault is final: builders raise at the first malformed node and the
exception propagates unchanged to whoever asked for the contract. They are
`ValueError` subclasses so callers that already treat parse-time failures as
bad input keep working; the offending node's rule tag and location travel with
the exception so the driver can print a pinned diagnostic instead of a
traceback.
"""

from __future__ import annotations

from typing import Optional

from .ast import Located


class TranslationError(ValueError):
    """Base class for faults raised while turning a parse tree into an AST."""

    def __init__(self, message: str, *, rule: Optional[str] = None, loc: Optional[Located] = None) -> None:
        super().__init__(message)
        self.message = message
        self.rule = rule
        self.loc = loc

    def __str__(self) -> str:
        text = self.message
        if self.rule:
            text = f"{text} [{self.rule}]"
        if self.loc is not None:
            text = f"{self.loc.line}:{self.loc.column}: {text}"
        return text


class MalformedNode(TranslationError):
    """A node's tag, child count or child order differs from the grammar shape."""


class UnrecognizedSort(TranslationError):
    """A sort token outside Uint/Bool/Array/List."""


class UnknownOperator(TranslationError):
    """An operator outside the vocabulary of the sort and arity it appears in."""


class ArityMismatch(TranslationError):
    """Operand count disagrees with an operator's arity, or a case disagrees with its signature."""


__all__ = [
    "TranslationError",
    "MalformedNode",
    "UnrecognizedSort",
    "UnknownOperator",
    "ArityMismatch",
]
