from __future__ import annotations

import pytest
from lark import Token, Tree
from lark.exceptions import UnexpectedInput

from logikon import parser as p
from logikon.ast import (
    ArrayIdentifier,
    Contract,
    EqUint,
    Le,
    Plus,
    Select,
    Sort,
    StateVariable,
    Store,
    UintIdentifier,
    Variable,
)
from logikon.errors import MalformedNode, TranslationError, UnknownOperator, UnrecognizedSort

LEDGER = """
; balances are indexed by account number
state balances : Array.
state total : Uint.

define recursive sum (Uint) -> (Uint)
    case (n) (r) :-
        (= r (+ (select balances n) n)),
        (<= n total).

define put (Array Uint Uint) -> (Array)
    case (a i v) (b) :-
        (= (select b i) (select (store a i v) i)).
"""


def test_contract_collects_state_and_functions_in_order() -> None:
    contract = p.parse_contract(LEDGER)
    assert contract.state == [
        StateVariable("balances", Sort.ARRAY),
        StateVariable("total", Sort.UINT),
    ]
    assert [fn.name for fn in contract.functions] == ["sum", "put"]
    assert [fn.recursive for fn in contract.functions] == [True, False]


def test_state_sorts_reach_function_bodies() -> None:
    sum_fn = p.parse_contract(LEDGER).functions[0]
    assert sum_fn.cases[0].expressions == [
        EqUint(
            UintIdentifier("r"),
            Plus(Select(ArrayIdentifier("balances"), UintIdentifier("n")), UintIdentifier("n")),
        ),
        Le(UintIdentifier("n"), UintIdentifier("total")),
    ]


def test_store_operands_follow_their_positions() -> None:
    put = p.parse_contract(LEDGER).functions[1]
    case = put.cases[0]
    assert case.parameters == [
        Variable("a", Sort.ARRAY),
        Variable("i", Sort.UINT),
        Variable("v", Sort.UINT),
    ]
    assert case.return_values == [Variable("b", Sort.ARRAY)]
    assert case.expressions == [
        EqUint(
            Select(ArrayIdentifier("b"), UintIdentifier("i")),
            Select(
                Store(ArrayIdentifier("a"), UintIdentifier("i"), UintIdentifier("v")),
                UintIdentifier("i"),
            ),
        )
    ]


def test_empty_contract() -> None:
    assert p.parse_contract("; nothing declared yet\n") == Contract(state=[], functions=[])


def test_function_names_need_not_be_unique() -> None:
    contract = p.parse_contract(
        """
define f (Bool) -> (Bool) case (a) (x).
define f (Uint) -> (Uint) case (a) (x).
"""
    )
    assert [fn.name for fn in contract.functions] == ["f", "f"]
    assert contract.functions[1].cases[0].parameters == [Variable("a", Sort.UINT)]


def test_translation_is_deterministic() -> None:
    first = p.parse_contract(LEDGER)
    second = p.parse_contract(LEDGER)
    assert first == second
    assert repr(first) == repr(second)


def test_unrecognized_sort_in_signature() -> None:
    with pytest.raises(UnrecognizedSort) as excinfo:
        p.parse_contract(
            """
define f (Int) -> (Uint)
    case (a) (x).
"""
        )
    assert "Use 'Uint' instead" in str(excinfo.value)
    assert excinfo.value.loc is not None
    assert excinfo.value.loc.line == 2


def test_unrecognized_sort_in_state() -> None:
    with pytest.raises(UnrecognizedSort):
        p.parse_contract("state owners : Set.")


def test_unknown_operator_produces_no_contract() -> None:
    with pytest.raises(TranslationError):
        p.parse_contract(
            """
state total : Uint.
define ok (Uint) -> (Uint) case (a) (x) :- (= x a).
define bad (Uint) -> (Uint) case (a) (x) :- (select x a).
"""
        )


def test_unknown_operator_is_reported_as_such() -> None:
    with pytest.raises(UnknownOperator, match="'select' is not a binary Bool operator"):
        p.parse_contract("define bad (Uint) -> (Uint) case (a) (x) :- (select x a).")


def test_syntax_errors_come_from_the_grammar() -> None:
    with pytest.raises(UnexpectedInput):
        p.parse_contract("define f (Uint) -> (Uint)")
    with pytest.raises(UnexpectedInput):
        p.parse_contract("define f (uint) -> (Uint) case () ().")


def test_contract_rejects_foreign_nodes() -> None:
    node = Tree("contract", [Tree("case", [])])
    with pytest.raises(MalformedNode, match="contract level"):
        p.build_contract(node)


def test_state_declaration_shape_is_checked() -> None:
    node = Tree("contract", [Tree("state_def", [Tree("identifier", [Token("NAME", "x")])])])
    with pytest.raises(MalformedNode, match="name and a sort"):
        p.build_contract(node)


def test_build_contract_requires_contract_root() -> None:
    with pytest.raises(MalformedNode):
        p.build_contract(Tree("function_def", []))
