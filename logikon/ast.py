from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union


@dataclass(frozen=True)
class Located:
    line: int
    column: int


class Sort(Enum):
    UNKNOWN = "Unknown"
    UINT = "Uint"
    BOOL = "Bool"
    ARRAY = "Array"
    LIST = "List"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Variable:
    """A binding site in a case pattern; unsorted until its function's signature is applied."""

    name: str
    sort: Sort = Sort.UNKNOWN


@dataclass(frozen=True)
class StateVariable:
    name: str
    sort: Sort
    loc: Optional[Located] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Signature:
    inputs: Tuple[Sort, ...]
    outputs: Tuple[Sort, ...]


class BooleanExpression:
    pass


class UintExpression:
    pass


class ArrayExpression:
    pass


Expression = Union[BooleanExpression, UintExpression, ArrayExpression]


@dataclass(frozen=True)
class BoolIdentifier(BooleanExpression):
    name: str


@dataclass(frozen=True)
class EqBool(BooleanExpression):
    left: BooleanExpression
    right: BooleanExpression


@dataclass(frozen=True)
class NeBool(BooleanExpression):
    left: BooleanExpression
    right: BooleanExpression


@dataclass(frozen=True)
class EqUint(BooleanExpression):
    left: UintExpression
    right: UintExpression


@dataclass(frozen=True)
class NeUint(BooleanExpression):
    left: UintExpression
    right: UintExpression


@dataclass(frozen=True)
class Lt(BooleanExpression):
    left: UintExpression
    right: UintExpression


@dataclass(frozen=True)
class Gt(BooleanExpression):
    left: UintExpression
    right: UintExpression


@dataclass(frozen=True)
class Le(BooleanExpression):
    left: UintExpression
    right: UintExpression


@dataclass(frozen=True)
class Ge(BooleanExpression):
    left: UintExpression
    right: UintExpression


@dataclass(frozen=True)
class And(BooleanExpression):
    left: BooleanExpression
    right: BooleanExpression


@dataclass(frozen=True)
class Or(BooleanExpression):
    left: BooleanExpression
    right: BooleanExpression


@dataclass(frozen=True)
class Not(BooleanExpression):
    operand: BooleanExpression


@dataclass(frozen=True)
class BoolIte(BooleanExpression):
    condition: BooleanExpression
    then_value: BooleanExpression
    else_value: BooleanExpression


@dataclass(frozen=True)
class UintIdentifier(UintExpression):
    name: str


@dataclass(frozen=True)
class Plus(UintExpression):
    left: UintExpression
    right: UintExpression


@dataclass(frozen=True)
class Minus(UintExpression):
    left: UintExpression
    right: UintExpression


@dataclass(frozen=True)
class Times(UintExpression):
    left: UintExpression
    right: UintExpression


@dataclass(frozen=True)
class Div(UintExpression):
    left: UintExpression
    right: UintExpression


@dataclass(frozen=True)
class UintIte(UintExpression):
    condition: BooleanExpression
    then_value: UintExpression
    else_value: UintExpression


@dataclass(frozen=True)
class Select(UintExpression):
    array: ArrayExpression
    index: UintExpression


@dataclass(frozen=True)
class ArrayIdentifier(ArrayExpression):
    name: str


@dataclass(frozen=True)
class Store(ArrayExpression):
    array: ArrayExpression
    index: UintExpression
    value: UintExpression


@dataclass
class Case:
    parameters: List[Variable]
    return_values: List[Variable]
    expressions: List[BooleanExpression]
    loc: Optional[Located] = field(default=None, compare=False, repr=False)


@dataclass
class Function:
    name: str
    recursive: bool
    signature: Signature
    cases: List[Case]
    loc: Optional[Located] = field(default=None, compare=False, repr=False)


@dataclass
class Contract:
    state: List[StateVariable]
    functions: List[Function]
