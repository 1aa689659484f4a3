"""Function-call expressions."""

from typing import Any, Optional, Tuple

from pydantic import Field as PydanticField

from ..literals import string_literal
from ._bases import Expression


class Func(Expression):
    """`name(arg, arg, ...)`, or the dialect's own form of that function (`a || b` for concat on SQLite)."""

    name: str
    arguments: Tuple[Any, ...] = PydanticField(default_factory=tuple)

    def compile(self, query, connection, grammar) -> None:
        override = grammar.F.get(self.name)
        if override is not None:
            query.compile(override(*self.arguments))
            return
        query.raw(f"{self.name}(")
        query.compile_multiple(self.arguments)
        query.raw(")")


class Aggregate(Func):
    """An aggregate call, `name(distinct args)` when distinct; `count()` counts `*`."""

    distinct: bool = False

    def compile(self, query, connection, grammar) -> None:
        query.raw(f"{self.name}(")
        if self.distinct:
            query.raw("distinct")
        if self.arguments:
            query.compile_multiple(self.arguments)
        else:
            query.raw("*")
        query.raw(")")


class ConcatWs(Expression):
    """`concat_ws('<separator>', a, b, ...)`."""

    separator: str
    arguments: Tuple[Any, ...] = PydanticField(default_factory=tuple)

    def compile(self, query, connection, grammar) -> None:
        Func(name="concat_ws", arguments=(string_literal(self.separator), *self.arguments)).compile(
            query, connection, grammar
        )


class GroupConcat(Expression):
    """`group_concat([distinct] expr [order by x] [separator 's'] [limit n] [offset m])`."""

    expression: Any
    distinct: bool = False
    order_by: Any = None
    separator: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    def compile(self, query, connection, grammar) -> None:
        query.raw("group_concat(")
        if self.distinct:
            query.raw("distinct")
        query.compile(self.expression)
        if self.order_by is not None:
            query.raw("order by")
            query.compile(self.order_by)
        if self.separator is not None:
            query.raw("separator")
            query.compile(string_literal(self.separator))
        if self.limit is not None:
            query.raw(f"limit {int(self.limit)}")
        if self.offset is not None:
            query.raw(f"offset {int(self.offset)}")
        query.raw(")")


class Extract(Expression):
    """`extract(unit from date)`."""

    unit: str
    date: Any

    def compile(self, query, connection, grammar) -> None:
        query.raw(f"extract({self.unit}")
        query.raw("from")
        query.compile(self.date)
        query.raw(")")


class DateInterval(Expression):
    """`date_add(date, interval n unit)` or `date_sub(...)`."""

    name: str
    date: Any
    amount: Any
    unit: str

    def compile(self, query, connection, grammar) -> None:
        query.raw(f"{self.name}(")
        query.compile(self.date)
        query.raw(", interval")
        query.compile(self.amount)
        query.raw(f"{self.unit})")


class MatchAgainst(Expression):
    """`match(fields) against (expr [in boolean mode] [with query expansion])`."""

    fields: Tuple[Any, ...]
    expression: Any
    boolean_mode: bool = False
    query_expansion: bool = False

    def compile(self, query, connection, grammar) -> None:
        query.raw("match(")
        query.compile_multiple(self.fields)
        query.raw(")")
        query.raw("against (")
        query.compile(self.expression)
        if self.boolean_mode:
            query.raw("in boolean mode")
        if self.query_expansion:
            query.raw("with query expansion")
        query.raw(")")
