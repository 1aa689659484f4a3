"""Operator expressions: comparisons, ranges, membership, null checks and arithmetic."""

from typing import Any, Iterable, Tuple

from pydantic import Field as PydanticField

from ..errors import QueryBuildError
from ..literals import string_literal
from ._bases import Expression


class Comparison(Expression):
    """`lhs <op> rhs`, or `<op> rhs` when used as the value of a where()."""

    operator: str
    rhs: Any = None
    lhs: Any = None
    unary: bool = False

    def compile(self, query, connection, grammar) -> None:
        if not self.unary:
            query.compile(self.lhs)
        query.raw(self.operator)
        query.compile(self.rhs)


class Operation(Expression):
    """Operands joined by a binary operator, e.g. `a + b` or `a || b || c`."""

    operator: str
    operands: Tuple[Any, ...] = PydanticField(default_factory=tuple)

    @classmethod
    def chain(cls, operator: str, operands: Iterable[Any]) -> "Operation":
        return cls(operator=operator, operands=tuple(operands))

    def compile(self, query, connection, grammar) -> None:
        for index, operand in enumerate(self.operands):
            if index > 0:
                query.raw(self.operator)
            query.compile(operand)


class Between(Expression):
    """`[lhs] between lower and upper`."""

    lower: Any
    upper: Any
    lhs: Any = None
    unary: bool = True

    def compile(self, query, connection, grammar) -> None:
        if not self.unary:
            query.compile(self.lhs)
        query.raw("between")
        query.compile(self.lower)
        query.raw("and")
        query.compile(self.upper)


class In(Expression):
    """`[lhs] in (a, b, ...)` or `not in`; the value list can never be empty."""

    values: Tuple[Any, ...]
    lhs: Any = None
    unary: bool = True
    negated: bool = False

    def compile(self, query, connection, grammar) -> None:
        if not self.values:
            raise QueryBuildError("An `in` expression needs at least one value.")
        if not self.unary:
            query.compile(self.lhs)
        query.raw("not in (" if self.negated else "in (")
        query.compile_multiple(self.values)
        query.raw(")")


class IsNull(Expression):
    """`[lhs] is null` or `is not null`."""

    lhs: Any = None
    unary: bool = True
    negated: bool = False

    def compile(self, query, connection, grammar) -> None:
        if not self.unary:
            query.compile(self.lhs)
        query.raw("is not null" if self.negated else "is null")


class Not(Expression):
    expression: Any

    def compile(self, query, connection, grammar) -> None:
        query.raw("not")
        query.compile(self.expression)


class Exists(Expression):
    """`exists (<subquery>)`, or `not exists`."""

    query: Any
    negated: bool = False

    def compile(self, query, connection, grammar) -> None:
        query.raw("not exists" if self.negated else "exists")
        query.compile(self.query)


class Like(Expression):
    """`[lhs] like <pattern>` where `value` is matched literally.

    Wildcard characters inside `value` are escaped by the dialect, then `%`
    is added on the open sides: both for contains, trailing only for
    starts-with, leading only for ends-with.
    """

    value: str
    lhs: Any = None
    unary: bool = True
    negated: bool = False
    leading: bool = True
    trailing: bool = True

    def compile(self, query, connection, grammar) -> None:
        pattern = grammar.f.escape_for_like(str(self.value))
        pattern = ("%" if self.leading else "") + pattern + ("%" if self.trailing else "")
        if not self.unary:
            query.compile(self.lhs)
        query.raw("not like" if self.negated else "like")
        query.compile(pattern)
        if grammar.LIKE_ESCAPE:
            query.raw("escape")
            query.compile(string_literal(grammar.LIKE_ESCAPE))
