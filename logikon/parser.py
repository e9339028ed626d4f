from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar

from lark import Lark, Tree

from .ast import (
    And,
    ArrayExpression,
    ArrayIdentifier,
    BoolIdentifier,
    BoolIte,
    BooleanExpression,
    Case,
    Contract,
    Div,
    EqBool,
    EqUint,
    Expression,
    Function,
    Ge,
    Gt,
    Le,
    Located,
    Lt,
    Minus,
    NeBool,
    NeUint,
    Not,
    Or,
    Plus,
    Select,
    Signature,
    Sort,
    StateVariable,
    Store,
    Times,
    UintExpression,
    UintIdentifier,
    UintIte,
    Variable,
)
from .errors import ArityMismatch, MalformedNode, UnknownOperator
from .nodes import node_loc as _loc
from .nodes import node_name as _name
from .nodes import node_text as _text
from .nodes import subtrees
from .sorts import resolve_sort

logger = logging.getLogger(__name__)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
    _GRAMMAR_SRC,
    parser="lalr",
    start=["contract", "function_def", "statement"],
    propagate_positions=True,
    maybe_placeholders=False,
)

# Sorts already fixed by declarations, keyed by variable name.
Scope = Mapping[str, Sort]

T = TypeVar("T")

_OPERATOR_ARITY = {"unary_op": 1, "binary_op": 2, "ternary_op": 3}

_ORDERINGS = {"<": Lt, ">": Gt, "<=": Le, ">=": Ge}
_CONNECTIVES = {"and": And, "or": Or}
_ARITHMETIC = {"+": Plus, "-": Minus, "*": Times, "/": Div}


def parse_contract(source: str) -> Contract:
    tree = _PARSER.parse(source, start="contract")
    return _bounded(build_contract, tree)


def parse_function(source: str, scope: Optional[Scope] = None) -> Function:
    tree = _PARSER.parse(source, start="function_def")
    return _bounded(build_function, tree, scope)


def parse_statement(source: str, sort: Sort = Sort.BOOL, scope: Optional[Scope] = None) -> Expression:
    """Parse a single statement and build it in the given sort position."""
    builder = _BUILDERS.get(sort)
    if builder is None:
        raise ValueError(f"no expressions of sort {sort}")
    tree = _PARSER.parse(source, start="statement")
    return _bounded(builder, tree, scope)


def _bounded(build: Callable[..., T], tree: Tree, *args: object) -> T:
    """Run a builder over a parsed tree, reporting nesting beyond the interpreter's depth as a fault."""
    try:
        return build(tree, *args)
    except RecursionError:
        raise MalformedNode("statements nest too deeply", rule="statement", loc=_loc(tree)) from None


def build_contract(tree: Tree) -> Contract:
    _expect_tag(tree, "contract")
    state: List[StateVariable] = []
    function_nodes: List[Tree] = []
    for child in subtrees(tree):
        kind = _name(child)
        if kind == "state_def":
            state.append(_build_state_variable(child))
        elif kind == "function_def":
            function_nodes.append(child)
        else:
            raise MalformedNode(f"unexpected '{kind}' at contract level", rule=kind, loc=_loc(child))
    scope = {var.name: var.sort for var in state}
    functions = [build_function(node, scope) for node in function_nodes]
    logger.debug("assembled contract: %d state variable(s), %d function(s)", len(state), len(functions))
    return Contract(state=state, functions=functions)


def _build_state_variable(tree: Tree) -> StateVariable:
    children = subtrees(tree)
    if [_name(child) for child in children] != ["identifier", "logikon_type"]:
        raise MalformedNode("state declaration expects a name and a sort", rule="state_def", loc=_loc(tree))
    name_node, sort_node = children
    return StateVariable(name=_text(name_node), sort=resolve_sort(sort_node), loc=_loc(tree))


def build_function(tree: Tree, scope: Optional[Scope] = None) -> Function:
    """
    Assemble a function definition and sort its cases from the signature.

    `scope` carries sorts declared outside the function (state variables); the
    case's own parameters and return values are layered on top of it before
    the case body is built.
    """
    _expect_tag(tree, "function_def")
    loc = _loc(tree)
    name: Optional[str] = None
    recursive = False
    inputs: List[Sort] = []
    outputs: Optional[List[Sort]] = None
    case_nodes: List[Tree] = []

    parsed_input_types = False
    for child in subtrees(tree):
        kind = _name(child)
        if kind == "identifier":
            if name is not None:
                raise MalformedNode(f"function '{name}' is named twice", rule=kind, loc=_loc(child))
            name = _text(child)
        elif kind == "case":
            case_nodes.append(child)
        elif kind == "recursive":
            if recursive:
                raise MalformedNode("duplicate recursive marker", rule=kind, loc=_loc(child))
            recursive = True
        elif kind == "type_list":
            sorts = [resolve_sort(t) for t in subtrees(child)]
            if not parsed_input_types:
                inputs = sorts
                parsed_input_types = True
            elif outputs is None:
                outputs = sorts
            else:
                raise MalformedNode("function declares more than two type lists", rule=kind, loc=_loc(child))
        else:
            raise MalformedNode(f"unexpected '{kind}' in function definition", rule=kind, loc=_loc(child))

    if name is None:
        raise MalformedNode("function definition is missing its name", rule="function_def", loc=loc)
    if outputs is None:
        raise MalformedNode(
            f"function '{name}' needs an input and an output type list",
            rule="function_def",
            loc=loc,
        )
    signature = Signature(inputs=tuple(inputs), outputs=tuple(outputs))
    cases = [_build_sorted_case(node, signature, scope) for node in case_nodes]
    logger.debug(
        "assembled function %s%s with %d case(s)",
        name,
        " (recursive)" if recursive else "",
        len(cases),
    )
    return Function(name=name, recursive=recursive, signature=signature, cases=cases, loc=loc)


def _build_sorted_case(tree: Tree, signature: Signature, scope: Optional[Scope]) -> Case:
    params_node, returns_node, _ = _case_parts(tree)
    loc = _loc(tree)
    bound = _resort(_variables(params_node), signature.inputs, "parameter", loc)
    bound += _resort(_variables(returns_node), signature.outputs, "return value", loc)
    case_scope: Dict[str, Sort] = dict(scope or {})
    case_scope.update((var.name, var.sort) for var in bound)
    return propagate_signature(build_case(tree, case_scope), signature)


def propagate_signature(case: Case, signature: Signature) -> Case:
    """Return a copy of an unsorted case whose variables take their sorts, by position, from `signature`."""
    parameters = _resort(case.parameters, signature.inputs, "parameter", case.loc)
    return_values = _resort(case.return_values, signature.outputs, "return value", case.loc)
    return Case(
        parameters=parameters,
        return_values=return_values,
        expressions=list(case.expressions),
        loc=case.loc,
    )


def _resort(
    variables: Sequence[Variable],
    sorts: Sequence[Sort],
    role: str,
    loc: Optional[Located],
) -> List[Variable]:
    # an empty list binds nothing on that side of the signature
    if not variables:
        return []
    if len(variables) != len(sorts):
        raise ArityMismatch(
            f"case binds {len(variables)} {role}(s) but the signature declares {len(sorts)}",
            rule="case",
            loc=loc,
        )
    resorted: List[Variable] = []
    for var, sort in zip(variables, sorts):
        if var.sort is not Sort.UNKNOWN:
            raise ValueError(f"variable '{var.name}' is already sorted as {var.sort}")
        resorted.append(replace(var, sort=sort))
    return resorted


def build_case(tree: Tree, scope: Optional[Scope] = None) -> Case:
    """Build one case with unsorted variables; body statements stay separate conjuncts."""
    params_node, returns_node, body_node = _case_parts(tree)
    expressions: List[BooleanExpression] = []
    if body_node is not None:
        expressions = [build_boolean(stmt, scope) for stmt in subtrees(body_node)]
    return Case(
        parameters=_variables(params_node),
        return_values=_variables(returns_node),
        expressions=expressions,
        loc=_loc(tree),
    )


def _case_parts(tree: Tree) -> Tuple[Tree, Tree, Optional[Tree]]:
    _expect_tag(tree, "case")
    lists: List[Tree] = []
    body: Optional[Tree] = None
    for child in subtrees(tree):
        kind = _name(child)
        if kind == "parameter_list":
            if body is not None:
                raise MalformedNode("variable list after the case body", rule=kind, loc=_loc(child))
            if len(lists) == 2:
                raise MalformedNode("case has more than two variable lists", rule=kind, loc=_loc(child))
            lists.append(child)
        elif kind == "case_body":
            if len(lists) != 2:
                raise MalformedNode("case body before its parameter and return lists", rule=kind, loc=_loc(child))
            if body is not None:
                raise MalformedNode("case has more than one body", rule=kind, loc=_loc(child))
            body = child
        else:
            raise MalformedNode(f"unexpected '{kind}' in case", rule=kind, loc=_loc(child))
    if len(lists) != 2:
        raise MalformedNode("case needs a parameter list and a return list", rule="case", loc=_loc(tree))
    return lists[0], lists[1], body


def _variables(tree: Tree) -> List[Variable]:
    variables: List[Variable] = []
    for child in subtrees(tree):
        if _name(child) != "identifier":
            raise MalformedNode(
                f"expected a variable name, found '{_name(child)}'",
                rule=_name(child),
                loc=_loc(child),
            )
        variables.append(Variable(name=_text(child)))
    return variables


# Expression builders. The caller always knows which sort a position holds and
# picks the builder accordingly; operator text alone never decides the sort.


def build_boolean(node: Tree, scope: Optional[Scope] = None) -> BooleanExpression:
    op, operands = _split_statement(node)
    kind = _name(op)
    if kind == "statement":
        _expect_no_operands(op, operands)
        return build_boolean(op, scope)
    if kind == "identifier":
        _expect_no_operands(op, operands)
        return BoolIdentifier(_text(op))
    text = _operator(op, operands)
    if kind == "unary_op":
        if text == "not":
            return Not(build_boolean(operands[0], scope))
    elif kind == "binary_op":
        left, right = operands
        if text in _ORDERINGS:
            return _ORDERINGS[text](build_uint(left, scope), build_uint(right, scope))
        if text in _CONNECTIVES:
            return _CONNECTIVES[text](build_boolean(left, scope), build_boolean(right, scope))
        if text in ("=", "!="):
            return _build_equality(op, left, right, scope)
    elif kind == "ternary_op":
        if text == "ite":
            condition, then_node, else_node = operands
            return BoolIte(
                build_boolean(condition, scope),
                build_boolean(then_node, scope),
                build_boolean(else_node, scope),
            )
    raise _unknown_operator(op, Sort.BOOL)


def build_uint(node: Tree, scope: Optional[Scope] = None) -> UintExpression:
    op, operands = _split_statement(node)
    kind = _name(op)
    if kind == "statement":
        _expect_no_operands(op, operands)
        return build_uint(op, scope)
    if kind == "identifier":
        _expect_no_operands(op, operands)
        return UintIdentifier(_text(op))
    text = _operator(op, operands)
    if kind == "binary_op":
        left, right = operands
        if text in _ARITHMETIC:
            return _ARITHMETIC[text](build_uint(left, scope), build_uint(right, scope))
        if text == "select":
            return Select(build_array(left, scope), build_uint(right, scope))
    elif kind == "ternary_op":
        if text == "ite":
            condition, then_node, else_node = operands
            return UintIte(
                build_boolean(condition, scope),
                build_uint(then_node, scope),
                build_uint(else_node, scope),
            )
    raise _unknown_operator(op, Sort.UINT)


def build_array(node: Tree, scope: Optional[Scope] = None) -> ArrayExpression:
    op, operands = _split_statement(node)
    kind = _name(op)
    if kind == "statement":
        _expect_no_operands(op, operands)
        return build_array(op, scope)
    if kind == "identifier":
        _expect_no_operands(op, operands)
        return ArrayIdentifier(_text(op))
    text = _operator(op, operands)
    if kind == "ternary_op" and text == "store":
        array, index, value = operands
        return Store(build_array(array, scope), build_uint(index, scope), build_uint(value, scope))
    raise _unknown_operator(op, Sort.ARRAY)


_BUILDERS: Dict[Sort, Callable[..., Expression]] = {
    Sort.BOOL: build_boolean,
    Sort.UINT: build_uint,
    Sort.ARRAY: build_array,
}


def _build_equality(op: Tree, left: Tree, right: Tree, scope: Optional[Scope]) -> BooleanExpression:
    """
    `=` and `!=` compare Uint operands when either side is declared Uint.

    Operand sorts come from `scope` and from operators whose result sort is
    fixed; with nothing declared the comparison is Boolean.
    """
    text = _text(op)
    sorts = {_operand_sort(left, scope), _operand_sort(right, scope)}
    if Sort.ARRAY in sorts or Sort.LIST in sorts:
        raise UnknownOperator(f"'{text}' is not defined over Array or List operands", rule=_name(op), loc=_loc(op))
    if Sort.UINT in sorts:
        if Sort.BOOL in sorts:
            raise UnknownOperator(f"'{text}' cannot compare Uint with Bool", rule=_name(op), loc=_loc(op))
        if text == "=":
            return EqUint(build_uint(left, scope), build_uint(right, scope))
        return NeUint(build_uint(left, scope), build_uint(right, scope))
    if text == "=":
        return EqBool(build_boolean(left, scope), build_boolean(right, scope))
    return NeBool(build_boolean(left, scope), build_boolean(right, scope))


def _operand_sort(node: Tree, scope: Optional[Scope]) -> Optional[Sort]:
    op, operands = _split_statement(node)
    kind = _name(op)
    if kind == "statement":
        return _operand_sort(op, scope)
    if kind == "identifier":
        if not scope:
            return None
        return scope.get(_text(op))
    text = _text(op)
    if kind == "binary_op":
        if text in _ARITHMETIC or text == "select":
            return Sort.UINT
        return Sort.BOOL
    if kind == "ternary_op":
        if text == "store":
            return Sort.ARRAY
        # ite takes the sort of whichever branch is declared
        for branch in operands[1:]:
            sort = _operand_sort(branch, scope)
            if sort is not None:
                return sort
        return None
    if kind == "unary_op":
        return Sort.BOOL
    return None


def _split_statement(node: Tree) -> Tuple[Tree, List[Tree]]:
    _expect_tag(node, "statement")
    children = list(node.children)
    if not children:
        raise MalformedNode("empty statement", rule="statement", loc=_loc(node))
    for child in children:
        if not isinstance(child, Tree):
            raise MalformedNode(f"unexpected token '{child}' in statement", rule=_name(child), loc=_loc(child))
    return children[0], children[1:]


def _operator(op: Tree, operands: List[Tree]) -> str:
    kind = _name(op)
    if kind == "function_identifier":
        raise MalformedNode(f"'{_text(op)}' applies a function; calls are not expressions", rule=kind, loc=_loc(op))
    arity = _OPERATOR_ARITY.get(kind)
    if arity is None:
        raise MalformedNode(f"unexpected '{kind}' in operator position", rule=kind, loc=_loc(op))
    if len(operands) != arity:
        raise ArityMismatch(
            f"'{_text(op)}' takes {arity} operand(s), found {len(operands)}",
            rule=kind,
            loc=_loc(op),
        )
    return _text(op)


def _expect_no_operands(op: Tree, operands: List[Tree]) -> None:
    if operands:
        raise MalformedNode(f"{_name(op)} cannot take operands", rule=_name(op), loc=_loc(op))


def _expect_tag(node: Tree, tag: str) -> None:
    if not isinstance(node, Tree) or _name(node) != tag:
        raise MalformedNode(f"expected '{tag}', found '{_name(node)}'", rule=_name(node), loc=_loc(node))


def _unknown_operator(op: Tree, sort: Sort) -> UnknownOperator:
    arity = _name(op).replace("_op", "")
    return UnknownOperator(f"'{_text(op)}' is not a {arity} {sort.value} operator", rule=_name(op), loc=_loc(op))
