from __future__ import annotations

from typing import Iterable

from . import ast
from .sorts import sort_name

_BINARY_SYMBOLS = {
    ast.EqBool: "=",
    ast.NeBool: "!=",
    ast.EqUint: "=",
    ast.NeUint: "!=",
    ast.Lt: "<",
    ast.Gt: ">",
    ast.Le: "<=",
    ast.Ge: ">=",
    ast.And: "and",
    ast.Or: "or",
    ast.Plus: "+",
    ast.Minus: "-",
    ast.Times: "*",
    ast.Div: "/",
}


def format_expression(expr: ast.Expression) -> str:
    if isinstance(expr, (ast.BoolIdentifier, ast.UintIdentifier, ast.ArrayIdentifier)):
        return expr.name
    symbol = _BINARY_SYMBOLS.get(type(expr))
    if symbol is not None:
        return f"({symbol} {format_expression(expr.left)} {format_expression(expr.right)})"
    if isinstance(expr, ast.Not):
        return f"(not {format_expression(expr.operand)})"
    if isinstance(expr, (ast.BoolIte, ast.UintIte)):
        parts = (expr.condition, expr.then_value, expr.else_value)
        return f"(ite {_join(format_expression(p) for p in parts)})"
    if isinstance(expr, ast.Select):
        return f"(select {format_expression(expr.array)} {format_expression(expr.index)})"
    if isinstance(expr, ast.Store):
        parts = (expr.array, expr.index, expr.value)
        return f"(store {_join(format_expression(p) for p in parts)})"
    raise TypeError(f"not an expression: {expr!r}")


def format_case(case: ast.Case) -> str:
    params = _join(var.name for var in case.parameters)
    returns = _join(var.name for var in case.return_values)
    head = f"case ({params}) ({returns})"
    if not case.expressions:
        return f"{head}."
    body = ",\n        ".join(format_expression(expr) for expr in case.expressions)
    return f"{head} :-\n        {body}."


def format_function(fn: ast.Function) -> str:
    marker = "recursive " if fn.recursive else ""
    inputs = _join(sort_name(sort) for sort in fn.signature.inputs)
    outputs = _join(sort_name(sort) for sort in fn.signature.outputs)
    lines = [f"define {marker}{fn.name} ({inputs}) -> ({outputs})"]
    lines.extend(f"    {format_case(case)}" for case in fn.cases)
    return "\n".join(lines)


def format_state(var: ast.StateVariable) -> str:
    return f"state {var.name} : {sort_name(var.sort)}."


def format_contract(contract: ast.Contract) -> str:
    sections = []
    if contract.state:
        sections.append("\n".join(format_state(var) for var in contract.state))
    sections.extend(format_function(fn) for fn in contract.functions)
    return "\n\n".join(sections) + "\n"


def _join(parts: Iterable[str]) -> str:
    return " ".join(parts)
