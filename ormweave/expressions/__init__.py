"""SQL expression nodes and the factory functions used to build them.

Strings passed as operands are bound as values; wrap identifiers in
`identifier()` or use a model's `col()` to reference columns.
"""

from typing import Any, Iterable, Optional, Sequence, Union

from ..errors import QueryBuildError
from ._bases import Expression, Identifier, Raw
from .function import Aggregate, ConcatWs, DateInterval, Extract, Func, GroupConcat, MatchAgainst
from .operators import Between, Comparison, Exists, In, IsNull, Like, Not, Operation
from .subquery import SubQuery, Variable

_UNSET = object()


def _comparison(operator: str, a: Any, b: Any) -> Comparison:
    if b is _UNSET:
        return Comparison(operator=operator, rhs=a, unary=True)
    return Comparison(operator=operator, lhs=a, rhs=b)


def eq(a: Any, b: Any = _UNSET) -> Comparison:
    """`a = b`; `eq(b)` gives the right-hand side only, for `where(col, eq(b))`."""
    return _comparison("=", a, b)


def neq(a: Any, b: Any = _UNSET) -> Comparison:
    return _comparison("<>", a, b)


def gt(a: Any, b: Any = _UNSET) -> Comparison:
    return _comparison(">", a, b)


def gte(a: Any, b: Any = _UNSET) -> Comparison:
    return _comparison(">=", a, b)


def lt(a: Any, b: Any = _UNSET) -> Comparison:
    return _comparison("<", a, b)


def lte(a: Any, b: Any = _UNSET) -> Comparison:
    return _comparison("<=", a, b)


def like(a: Any, b: Any = _UNSET) -> Comparison:
    return _comparison("like", a, b)


def contains(value: str, lhs: Any = _UNSET, negated: bool = False) -> Like:
    """`like '%value%'` with the wildcards inside `value` escaped."""
    return _like(value, lhs, negated, leading=True, trailing=True)


def starts_with(value: str, lhs: Any = _UNSET, negated: bool = False) -> Like:
    return _like(value, lhs, negated, leading=False, trailing=True)


def ends_with(value: str, lhs: Any = _UNSET, negated: bool = False) -> Like:
    return _like(value, lhs, negated, leading=True, trailing=False)


def _like(value: str, lhs: Any, negated: bool, leading: bool, trailing: bool) -> Like:
    if lhs is _UNSET:
        return Like(value=value, negated=negated, leading=leading, trailing=trailing)
    return Like(value=value, lhs=lhs, unary=False, negated=negated, leading=leading, trailing=trailing)


def between(lower: Any, upper: Any, lhs: Any = _UNSET) -> Between:
    if lhs is _UNSET:
        return Between(lower=lower, upper=upper)
    return Between(lower=lower, upper=upper, lhs=lhs, unary=False)


def in_(values: Iterable[Any], lhs: Any = _UNSET) -> In:
    values = tuple(values)
    if not values:
        raise QueryBuildError("An `in` expression needs at least one value.")
    if lhs is _UNSET:
        return In(values=values)
    return In(values=values, lhs=lhs, unary=False)


def not_in(values: Iterable[Any], lhs: Any = _UNSET) -> In:
    expression = in_(values, lhs)
    return expression.model_copy(update={"negated": True})


def is_null(lhs: Any = _UNSET) -> IsNull:
    if lhs is _UNSET:
        return IsNull()
    return IsNull(lhs=lhs, unary=False)


def is_not_null(lhs: Any = _UNSET) -> IsNull:
    if lhs is _UNSET:
        return IsNull(negated=True)
    return IsNull(lhs=lhs, unary=False, negated=True)


def not_(expression: Any) -> Not:
    return Not(expression=expression)


def exists(query: Any) -> Exists:
    return Exists(query=query)


def not_exists(query: Any) -> Exists:
    return Exists(query=query, negated=True)


def operation(lhs: Any, operator: str, rhs: Any) -> Operation:
    return Operation(operator=operator, operands=(lhs, rhs))


def identifier(name: str) -> Identifier:
    return Identifier(name=name)


def raw(value: str) -> Raw:
    return Raw(value=value)


def func(name: str, *arguments: Any) -> Func:
    return Func(name=name, arguments=arguments)


def coalesce(*arguments: Any) -> Func:
    return func("coalesce", *arguments)


def greatest(*arguments: Any) -> Func:
    return func("greatest", *arguments)


def least(*arguments: Any) -> Func:
    return func("least", *arguments)


def if_(condition: Any, then: Any, otherwise: Any) -> Func:
    return func("if", condition, then, otherwise)


def if_null(value: Any, fallback: Any) -> Func:
    return func("ifnull", value, fallback)


def null_if(value: Any, other: Any) -> Func:
    return func("nullif", value, other)


def concat(*arguments: Any) -> Func:
    return func("concat", *arguments)


def concat_ws(separator: str, *arguments: Any) -> ConcatWs:
    return ConcatWs(separator=separator, arguments=arguments)


def count(*arguments: Any, distinct: bool = False) -> Aggregate:
    return Aggregate(name="count", arguments=arguments, distinct=distinct)


def sum_(*arguments: Any, distinct: bool = False) -> Aggregate:
    return Aggregate(name="sum", arguments=arguments, distinct=distinct)


def avg(*arguments: Any, distinct: bool = False) -> Aggregate:
    return Aggregate(name="avg", arguments=arguments, distinct=distinct)


def min_(*arguments: Any, distinct: bool = False) -> Aggregate:
    return Aggregate(name="min", arguments=arguments, distinct=distinct)


def max_(*arguments: Any, distinct: bool = False) -> Aggregate:
    return Aggregate(name="max", arguments=arguments, distinct=distinct)


def group_concat(
    expression: Any,
    *,
    distinct: bool = False,
    order_by: Any = None,
    separator: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> GroupConcat:
    return GroupConcat(
        expression=expression,
        distinct=distinct,
        order_by=order_by,
        separator=separator,
        limit=limit,
        offset=offset,
    )


# math

def abs_(value: Any) -> Func:
    return func("abs", value)


def ceil(value: Any) -> Func:
    return func("ceil", value)


def floor(value: Any) -> Func:
    return func("floor", value)


def round_(value: Any, precision: int = 0) -> Func:
    return func("round", value, precision)


def sin(value: Any) -> Func:
    return func("sin", value)


def cos(value: Any) -> Func:
    return func("cos", value)


def tan(value: Any) -> Func:
    return func("tan", value)


def pow_(value: Any, exponent: Any) -> Func:
    return func("pow", value, exponent)


def sqrt(value: Any) -> Func:
    return func("sqrt", value)


# strings

def lower(value: Any) -> Func:
    return func("lower", value)


def upper(value: Any) -> Func:
    return func("upper", value)


def trim(value: Any) -> Func:
    return func("trim", value)


def length(value: Any) -> Func:
    return func("length", value)


# dates

def now() -> Func:
    return func("now")


def date(value: Any) -> Func:
    return func("date", value)


def extract(unit: str, value: Any) -> Extract:
    return Extract(unit=unit, date=value)


def date_add(value: Any, amount: Any, unit: str) -> DateInterval:
    return DateInterval(name="date_add", date=value, amount=amount, unit=unit)


def date_sub(value: Any, amount: Any, unit: str) -> DateInterval:
    return DateInterval(name="date_sub", date=value, amount=amount, unit=unit)


def match_against(
    fields: Union[Any, Sequence[Any]],
    expression: Any,
    *,
    boolean_mode: bool = False,
    query_expansion: bool = False,
) -> MatchAgainst:
    if not isinstance(fields, (list, tuple)):
        fields = (fields,)
    return MatchAgainst(
        fields=tuple(fields),
        expression=expression,
        boolean_mode=boolean_mode,
        query_expansion=query_expansion,
    )


def sub_query(query: Any) -> SubQuery:
    return SubQuery(query=query)


def variable(name: str, expression: Any) -> Variable:
    return Variable(name=name, expression=expression)


__all__ = [
    "Aggregate", "Between", "Comparison", "ConcatWs", "DateInterval", "Exists", "Expression",
    "Extract", "Func", "GroupConcat", "Identifier", "In", "IsNull", "Like", "MatchAgainst", "Not",
    "Operation", "Raw", "SubQuery", "Variable",
    "abs_", "avg", "between", "ceil", "coalesce", "concat", "concat_ws", "contains", "cos", "count",
    "date", "date_add", "date_sub", "ends_with", "eq", "exists", "extract", "floor", "func", "greatest", "group_concat",
    "gt", "gte", "identifier", "if_", "if_null", "in_", "is_not_null", "is_null", "least", "length",
    "like", "lower", "lt", "lte", "match_against", "max_", "min_", "neq", "not_", "not_exists",
    "not_in", "now", "null_if", "operation", "pow_", "raw", "round_", "sin", "sqrt", "sub_query",
    "starts_with", "sum_", "tan", "trim", "upper", "variable",
]
