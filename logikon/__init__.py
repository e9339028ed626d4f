"""
Logikon front end: turns contract source into a sorted, solver-ready AST.

`parse_contract` is the usual entry point; the `build_*` functions accept an
already parsed tree for callers that bring their own parse.
"""

from .ast import Contract, Function, Signature, Sort
from .errors import ArityMismatch, MalformedNode, TranslationError, UnknownOperator, UnrecognizedSort
from .parser import (
    build_array,
    build_boolean,
    build_case,
    build_contract,
    build_function,
    build_uint,
    parse_contract,
    parse_function,
    parse_statement,
    propagate_signature,
)
from .sorts import resolve_sort

__all__ = [
    "Contract",
    "Function",
    "Signature",
    "Sort",
    "TranslationError",
    "MalformedNode",
    "UnrecognizedSort",
    "UnknownOperator",
    "ArityMismatch",
    "build_array",
    "build_boolean",
    "build_case",
    "build_contract",
    "build_function",
    "build_uint",
    "parse_contract",
    "parse_function",
    "parse_statement",
    "propagate_signature",
    "resolve_sort",
]
