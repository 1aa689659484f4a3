"""Query: a fluent, mutable SQL accumulator with per-clause parameter tracking."""

import datetime
import enum
import logging
from typing import Any, Callable, Iterable, Iterator, Optional, Union

from pydantic import BaseModel, Field, PrivateAttr

from ..dialects.base import PARAMETER_MARK
from ..errors import (
    MissingClauseError,
    MissingModelError,
    NotConnectedError,
    PrimaryKeyArityError,
    QueryBuildError,
    UnbalancedParenthesisError,
)
from ..expressions import Aggregate, Exists, Expression, In, IsNull
from ..literals import ColumnLiteral, Literal
from .paginated import Paginated
from .select import Select
from .statement import Statement

logger = logging.getLogger("ormweave")

UNSET = object()

_NULL_COMPARISONS = {"=": "is", "<>": "is not", "!=": "is not"}

CLAUSE_ORDER: tuple[str, ...] = (
    "explain",
    "",
    "with",
    "insert",
    "update",
    "delete",
    "select",
    "from",
    "join",
    "set",
    "values",
    "where",
    "group by",
    "having",
    "order by",
    "limit",
    "offset",
    "on duplicate key update",
    "returning",
    "union",
)

_CLAUSE_ALIASES: dict[str, str] = {
    "raw": "",
    "with recursive": "with",
    "insert into": "insert",
    "insert ignore into": "insert",
    "insert or ignore into": "insert",
    "replace into": "insert",
    "delete from": "delete",
    "select distinct": "select",
    "select sql_calc_found_rows": "select",
    "on": "join",
    "inner join": "join",
    "left join": "join",
    "left outer join": "join",
    "right join": "join",
    "full join": "join",
    "union all": "union",
}


def clause_key(name: str) -> str:
    """Normalize a clause keyword ("left join", "select distinct") to its slot name."""
    normalized = " ".join(name.lower().split())
    key = _CLAUSE_ALIASES.get(normalized, normalized)
    if key not in CLAUSE_ORDER:
        if normalized.startswith("select "):
            return "select"
        raise QueryBuildError(f"Unknown clause `{name}`.")
    return key


def _join_sql(text: str, piece: str) -> str:
    if not text:
        return piece
    if not piece:
        return text
    if text.endswith(("(", " ")) or piece.startswith((")", ",", " ")):
        return text + piece
    return f"{text} {piece}"


class Clause(BaseModel):
    """The SQL text of one clause slot and the parameters bound inside it."""

    key: str
    sql: str = ""
    params: list[Any] = Field(default_factory=list)


class Query(BaseModel):
    """Fluent SQL builder.

    Every builder method mutates the query in place and returns it; use
    `clone_query_with()` to branch. Clauses are rendered in a fixed order
    whatever the call order, and each clause carries the parameters bound
    inside it, so `params` always matches the placeholders of `to_sql()`.
    """

    model_config = {"arbitrary_types_allowed": True}

    connection: Any = None
    prepared: bool = True
    model: Optional[type] = None
    clauses: dict[str, Clause] = Field(default_factory=dict)
    paren_depth: int = 0
    include_deleted: bool = False
    eager_loads: list[str] = Field(default_factory=list)
    eager_load_disabled: list[str] = Field(default_factory=list)
    before_relations: list[Any] = Field(default_factory=list, exclude=True)

    _current: Optional[str] = PrivateAttr(default=None)
    _pending_parens: int = PrivateAttr(default=0)
    _joining: bool = PrivateAttr(default=False)
    _on_defined: bool = PrivateAttr(default=False)
    _joined: set = PrivateAttr(default_factory=set)

    # cloning

    def clone_query_with(self, **changes: Any) -> "Query":
        """Return an independent copy of this query, with `changes` applied to its fields."""
        data = {
            "connection": self.connection,
            "prepared": self.prepared,
            "model": self.model,
            "clauses": {key: clause.model_copy(deep=True) for key, clause in self.clauses.items()},
            "paren_depth": self.paren_depth,
            "include_deleted": self.include_deleted,
            "eager_loads": list(self.eager_loads),
            "eager_load_disabled": list(self.eager_load_disabled),
            "before_relations": list(self.before_relations),
        }
        data.update(changes)
        clone = Query(**data)
        clone._current = self._current
        clone._pending_parens = self._pending_parens
        clone._joining = self._joining
        clone._on_defined = self._on_defined
        clone._joined = set(self._joined)
        return clone

    # low-level accumulation

    @property
    def grammar(self):
        if self.connection is None:
            raise NotConnectedError("Query is not attached to a connection.")
        return self.connection.grammar

    def _clause(self, key: str) -> Clause:
        clause = self.clauses.get(key)
        if clause is None:
            clause = self.clauses[key] = Clause(key=key)
        return clause

    def _append(self, key: str, text: str) -> None:
        clause = self._clause(key)
        clause.sql = _join_sql(clause.sql, text)

    def _flush_parens(self) -> None:
        if self._pending_parens:
            text = "(" * self._pending_parens
            self._pending_parens = 0
            self._append(self._current or "", text)

    def raw(self, text: str) -> "Query":
        """Append raw SQL text to the clause being built."""
        if self._current is None:
            self._current = ""
        self._flush_parens()
        self._append(self._current, text)
        return self

    def add_piece(self, clause: str, data: Any = None, separator: Optional[str] = None) -> "Query":
        """Start (or continue, with `separator`) a clause, optionally followed by data.

        String data is appended raw, lists are compiled comma-separated and
        anything else is compiled.
        """
        key = clause_key(clause)
        existing = self.clauses.get(key)
        if existing is not None and existing.sql and separator is not None:
            self._append(key, separator)
        else:
            self._append(key, clause)
        self._current = key
        if data is None:
            return self
        if isinstance(data, str):
            return self.raw(data)
        if isinstance(data, (list, tuple)):
            return self.compile_multiple(data)
        return self.compile(data)

    def add_param(self, value: Any) -> str:
        """Bind a value and return its placeholder, or its inlined text when unprepared."""
        if isinstance(value, (Literal, ColumnLiteral)):
            return str(value)
        if isinstance(value, enum.Enum):
            value = value.value
        if isinstance(value, bool):
            value = int(value)
        if isinstance(value, datetime.datetime):
            value = value.isoformat(sep=" ")
        elif isinstance(value, (datetime.date, datetime.time)):
            value = value.isoformat()
        if not self.prepared:
            if value is None:
                return "null"
            if isinstance(value, (int, float)):
                return str(value)
            return self.grammar.quote(value)
        if self._current is None:
            self._current = ""
        self._clause(self._current).params.append(value)
        return PARAMETER_MARK

    def compile(self, value: Any) -> "Query":
        """Write any value into the clause being built.

        Queries become parenthesized sub-selects, expressions compile
        themselves, literals are inlined and everything else is bound.
        """
        if self.connection is None:
            raise NotConnectedError("Cannot compile a query that is not attached to a connection.")
        if isinstance(value, Query):
            return self.parenthesis(lambda query: query.merge(value), patch=False)
        if isinstance(value, Expression):
            value.compile(self, self.connection, self.grammar)
            return self
        if isinstance(value, (Literal, ColumnLiteral)):
            return self.raw(str(value))
        if value is None:
            return self.raw("null")
        return self.raw(self.add_param(value))

    def compile_multiple(self, values: Iterable[Any], separator: str = ",") -> "Query":
        for index, value in enumerate(values):
            if index > 0:
                self.raw(separator)
            self.compile(value)
        return self

    def compile_select_value(self, value: Any) -> "Query":
        if isinstance(value, str):
            return self.raw(self.grammar.escape(value))
        if isinstance(value, int) and not isinstance(value, bool):
            return self.raw(str(value))
        return self.compile(value)

    def merge(self, other: "Query") -> "Query":
        """Splice another query's SQL and parameters into the clause being built."""
        if not self.clauses and self._current is None:
            self.clauses = {key: clause.model_copy(deep=True) for key, clause in other.clauses.items()}
            self._current = other._current
            return self
        sql = other._render()
        params = other.params
        self.raw(sql)
        self._clause(self._current).params.extend(params)
        return self

    # parentheses

    def parenthesis_open(self) -> "Query":
        """Open a group; the `(` is written after the next clause keyword or connective."""
        self.paren_depth += 1
        self._pending_parens += 1
        return self

    def parenthesis_close(self) -> "Query":
        if self.paren_depth <= 0:
            raise UnbalancedParenthesisError(-1)
        self.paren_depth -= 1
        if self._pending_parens:
            self._pending_parens -= 1
        else:
            self._append(self._current or "", ")")
        return self

    def parenthesis(self, fn: Callable[["Query"], Any], patch: bool = True) -> "Query":
        if patch:
            self.parenthesis_open()
        else:
            self.raw("(")
            self.paren_depth += 1
        fn(self)
        return self.parenthesis_close()

    def conditional(self, condition: Any, fn: Callable[["Query"], Any]) -> "Query":
        if condition:
            fn(self)
        return self

    def conditional_parenthesis(self, condition: Any, fn: Callable[["Query"], Any], patch: bool = True) -> "Query":
        if condition:
            return self.parenthesis(fn, patch=patch)
        fn(self)
        return self

    # expressions

    def _field(self, name: Any) -> Any:
        """Resolve a string to the model's column when it names one, else to an escaped identifier."""
        if not isinstance(name, str):
            return name
        if self.model is not None:
            structure = self.model.structure()
            if structure.has_column(name):
                return structure.get_column(name)
        return Literal(value=self.grammar.escape(name))

    def _begin_term(self, clause: str, connective: Optional[str]) -> None:
        key = clause_key(clause)
        if key == "where" and self._joining:
            key = "join"
            connective = (connective or "and") if self._on_defined else "on"
            self._on_defined = True
        existing = self.clauses.get(key)
        if existing is not None and existing.sql:
            self._append(key, connective or "and")
        else:
            self._append(key, clause)
        self._current = key
        self._flush_parens()

    def add_expression(
        self,
        clause: str,
        lhs: Any = UNSET,
        cmp: Any = UNSET,
        rhs: Any = UNSET,
        *,
        connective: Optional[str] = None,
        rhs_is_field: bool = False,
    ) -> "Query":
        """Append `lhs cmp rhs` to a condition clause.

        With two arguments the second is the value and `=` is implied, unless
        the value is an expression (which then carries its own operator) or
        None (which renders `is null`).
        """
        if rhs is UNSET and cmp is not UNSET:
            rhs, cmp = cmp, UNSET
            if rhs is None:
                cmp = "="
            elif not isinstance(rhs, Expression):
                cmp = "="
        if rhs is None and isinstance(cmp, str) and cmp in _NULL_COMPARISONS:
            cmp, rhs = _NULL_COMPARISONS[cmp], Literal(value="null")
        self._begin_term(clause, connective)
        if lhs is not UNSET:
            if isinstance(lhs, str):
                lhs = self._field(lhs) if (cmp is not UNSET or rhs is not UNSET) else Literal(value=lhs)
            self.compile(lhs)
        if cmp is not UNSET:
            self.raw(cmp)
        if rhs is not UNSET:
            if rhs_is_field:
                rhs = self._field(rhs)
            self.compile(rhs)
        return self

    # select

    def _select(self, keyword: str, fields: Any) -> "Query":
        select = Select.of(fields)
        if select.is_empty:
            default = self.model.col("*") if self.model is not None else Literal(value="*")
            select = select.add(default)
        self.add_piece(keyword, separator=",")
        select.compile(self)
        return self

    def select(self, fields: Any = None) -> "Query":
        return self._select("select", fields)

    def select_distinct(self, fields: Any = None) -> "Query":
        return self._select("select distinct", fields)

    def select_found_rows(self, fields: Any = None) -> "Query":
        return self._select("select sql_calc_found_rows", fields)

    def select_suffix(self, suffix: str, fields: Any = None) -> "Query":
        return self._select(f"select {suffix}", fields)

    # from / joins

    def from_(self, tables: Union[str, Iterable[str], "Query"], alias: Optional[str] = None) -> "Query":
        grammar = self.grammar
        if isinstance(tables, Query):
            self.add_piece("from", separator=",")
            self.compile(tables)
            if alias:
                self.raw(f"as {grammar.escape(alias)}")
            return self
        if isinstance(tables, str):
            tables = [tables]
        text = grammar.TABLE_SEPARATOR.join(grammar.escape(table) for table in tables)
        if alias:
            text = f"{text} as {grammar.escape(alias)}"
        return self.add_piece("from", text, separator=",")

    def _join(self, kind: str, table: str, fn: Optional[Callable[["Query"], Any]], alias: Optional[str]) -> "Query":
        target = self.grammar.escape(table)
        if alias:
            target = f"{target} as {self.grammar.escape(alias)}"
        if target in self._joined:
            return self
        self._joined.add(target)
        self._append("join", f"{kind} {target}")
        self._current = "join"
        self._on_defined = False
        if fn is not None:
            self._joining = True
            try:
                fn(self)
            finally:
                self._joining = False
        return self

    def join(self, table: str, fn: Optional[Callable[["Query"], Any]] = None, alias: Optional[str] = None) -> "Query":
        return self._join("join", table, fn, alias)

    def inner_join(self, table: str, fn: Optional[Callable[["Query"], Any]] = None, alias: Optional[str] = None) -> "Query":
        return self._join("inner join", table, fn, alias)

    def left_join(self, table: str, fn: Optional[Callable[["Query"], Any]] = None, alias: Optional[str] = None) -> "Query":
        return self._join("left join", table, fn, alias)

    def left_outer_join(self, table: str, fn: Optional[Callable[["Query"], Any]] = None, alias: Optional[str] = None) -> "Query":
        return self._join("left outer join", table, fn, alias)

    def right_join(self, table: str, fn: Optional[Callable[["Query"], Any]] = None, alias: Optional[str] = None) -> "Query":
        return self._join("right join", table, fn, alias)

    def full_join(self, table: str, fn: Optional[Callable[["Query"], Any]] = None, alias: Optional[str] = None) -> "Query":
        return self._join("full join", table, fn, alias)

    def on(self, lhs: Any, cmp: Any = UNSET, rhs: Any = UNSET) -> "Query":
        """Add a join condition; a string right-hand side names a column."""
        connective = "and" if self._on_defined else "on"
        self._on_defined = True
        return self.add_expression("join", lhs, cmp, rhs, connective=connective, rhs_is_field=True)

    def or_on(self, lhs: Any, cmp: Any = UNSET, rhs: Any = UNSET) -> "Query":
        connective = "or" if self._on_defined else "on"
        self._on_defined = True
        return self.add_expression("join", lhs, cmp, rhs, connective=connective, rhs_is_field=True)

    # where

    def where(self, lhs: Any = UNSET, cmp: Any = UNSET, rhs: Any = UNSET) -> "Query":
        return self.add_expression("where", lhs, cmp, rhs)

    def or_where(self, lhs: Any = UNSET, cmp: Any = UNSET, rhs: Any = UNSET) -> "Query":
        return self.add_expression("where", lhs, cmp, rhs, connective="or")

    def _in(self, clause: str, field: Any, values: Any, negated: bool, connective: Optional[str]) -> "Query":
        if isinstance(values, Query):
            return self.add_expression(clause, field, "not in" if negated else "in", values, connective=connective)
        values = list(values)
        if len(values) == 1:
            return self.add_expression(clause, field, "<>" if negated else "=", values[0], connective=connective)
        if not values:
            raise QueryBuildError(f"`{clause} in` needs at least one value.")
        return self.add_expression(clause, field, In(values=tuple(values), negated=negated), connective=connective)

    def where_in(self, field: Any, values: Any) -> "Query":
        return self._in("where", field, values, False, None)

    def where_not_in(self, field: Any, values: Any) -> "Query":
        return self._in("where", field, values, True, None)

    def or_where_in(self, field: Any, values: Any) -> "Query":
        return self._in("where", field, values, False, "or")

    def or_where_not_in(self, field: Any, values: Any) -> "Query":
        return self._in("where", field, values, True, "or")

    def where_null(self, field: Any) -> "Query":
        return self.add_expression("where", field, IsNull())

    def where_not_null(self, field: Any) -> "Query":
        return self.add_expression("where", field, IsNull(negated=True))

    def or_where_null(self, field: Any) -> "Query":
        return self.add_expression("where", field, IsNull(), connective="or")

    def or_where_not_null(self, field: Any) -> "Query":
        return self.add_expression("where", field, IsNull(negated=True), connective="or")

    def where_exists(self, query: "Query") -> "Query":
        return self.add_expression("where", Exists(query=query))

    def where_not_exists(self, query: "Query") -> "Query":
        return self.add_expression("where", Exists(query=query, negated=True))

    def or_where_exists(self, query: "Query") -> "Query":
        return self.add_expression("where", Exists(query=query), connective="or")

    def or_where_not_exists(self, query: "Query") -> "Query":
        return self.add_expression("where", Exists(query=query, negated=True), connective="or")

    def _require_model(self, operation: str) -> type:
        if self.model is None:
            raise MissingModelError(operation)
        return self.model

    def _where_has(self, relation: str, fn: Optional[Callable], negated: bool, connective: Optional[str]) -> "Query":
        model = self._require_model("where_has")
        subquery = model.structure().get_relation(relation).raw_query()
        if fn is not None:
            fn(subquery)
        return self.add_expression("where", Exists(query=subquery, negated=negated), connective=connective)

    def where_has(self, relation: str, fn: Optional[Callable[["Query"], Any]] = None) -> "Query":
        """Keep rows for which the relation has at least one match (optionally filtered by fn)."""
        return self._where_has(relation, fn, False, None)

    def where_not_has(self, relation: str, fn: Optional[Callable[["Query"], Any]] = None) -> "Query":
        return self._where_has(relation, fn, True, None)

    def or_where_has(self, relation: str, fn: Optional[Callable[["Query"], Any]] = None) -> "Query":
        return self._where_has(relation, fn, False, "or")

    def or_where_not_has(self, relation: str, fn: Optional[Callable[["Query"], Any]] = None) -> "Query":
        return self._where_has(relation, fn, True, "or")

    def where_relation(self, relation: str, lhs: Any, cmp: Any = UNSET, rhs: Any = UNSET) -> "Query":
        return self.where_has(relation, lambda query: query.where(lhs, cmp, rhs))

    def or_where_relation(self, relation: str, lhs: Any, cmp: Any = UNSET, rhs: Any = UNSET) -> "Query":
        return self.or_where_has(relation, lambda query: query.where(lhs, cmp, rhs))

    def where_primary_key(self, model: type, primary_key: Any) -> "Query":
        keys = model.structure().primary_key_literals()
        values = list(primary_key) if isinstance(primary_key, (list, tuple)) else [primary_key]
        if len(values) != len(keys):
            raise PrimaryKeyArityError(model, len(keys), len(values))
        for key, value in zip(keys, values):
            self.where(key, value)
        return self

    def where_primary_key_in(self, model: type, primary_keys: Iterable[Any]) -> "Query":
        """Match any of several primary keys; composite keys become `((a and b) or (a and b))`."""
        keys = model.structure().primary_key_literals()
        rows = []
        for primary_key in primary_keys:
            values = tuple(primary_key) if isinstance(primary_key, (list, tuple)) else (primary_key,)
            if len(values) != len(keys):
                raise PrimaryKeyArityError(model, len(keys), len(values))
            rows.append(values)
        if not rows:
            raise QueryBuildError("`where_primary_key_in` needs at least one primary key.")
        if len(keys) == 1:
            return self.where_in(keys[0], [row[0] for row in rows])

        def all_rows(query: Query) -> None:
            for index, row in enumerate(rows):
                query.parenthesis(lambda q, index=index, row=row: _primary_key_row(q, keys, row, index > 0))

        return self.parenthesis(all_rows)

    # having

    def having(self, lhs: Any = UNSET, cmp: Any = UNSET, rhs: Any = UNSET) -> "Query":
        return self.add_expression("having", lhs, cmp, rhs)

    def or_having(self, lhs: Any = UNSET, cmp: Any = UNSET, rhs: Any = UNSET) -> "Query":
        return self.add_expression("having", lhs, cmp, rhs, connective="or")

    def having_in(self, field: Any, values: Any) -> "Query":
        return self._in("having", field, values, False, None)

    def having_not_in(self, field: Any, values: Any) -> "Query":
        return self._in("having", field, values, True, None)

    def having_null(self, field: Any) -> "Query":
        return self.add_expression("having", field, IsNull())

    def having_not_null(self, field: Any) -> "Query":
        return self.add_expression("having", field, IsNull(negated=True))

    def having_exists(self, query: "Query") -> "Query":
        return self.add_expression("having", Exists(query=query))

    def having_not_exists(self, query: "Query") -> "Query":
        return self.add_expression("having", Exists(query=query, negated=True))

    # grouping, ordering, paging

    def group_by(self, fields: Any, with_rollup: bool = False) -> "Query":
        if not isinstance(fields, (list, tuple)):
            fields = [fields]
        self.add_piece("group by", separator=",")
        self.compile_multiple([self._field(field) for field in fields])
        if with_rollup:
            self.raw("with rollup")
        return self

    def order_by(self, fields: Any) -> "Query":
        """Order by one or more fields; strings may end with ` asc` or ` desc`."""
        if not isinstance(fields, list):
            fields = [fields]
        self.add_piece("order by", separator=",")
        for index, field in enumerate(fields):
            if index > 0:
                self.raw(",")
            direction = None
            if isinstance(field, tuple):
                field, direction = field
            elif isinstance(field, str):
                lowered = field.lower()
                for suffix in (" asc", " desc"):
                    if lowered.endswith(suffix):
                        field, direction = field[: -len(suffix)].strip(), suffix.strip()
            self.compile(self._field(field))
            if direction:
                self.raw(direction.lower())
        return self

    def order_by_asc(self, field: Any) -> "Query":
        return self.order_by([(field, "asc")])

    def order_by_desc(self, field: Any) -> "Query":
        return self.order_by([(field, "desc")])

    def limit(self, limit: int, offset: int = 0) -> "Query":
        """Replace the limit and the offset; an offset of 0 drops an earlier `offset()`."""
        grammar = self.grammar
        if offset > 0 or grammar.LIMIT_NEEDS_OFFSET:
            self.offset(offset)
        else:
            self.clauses.pop("offset", None)
        self.clauses["limit"] = Clause(key="limit", sql=grammar.compile_limit(int(limit)))
        self._current = "limit"
        return self

    def offset(self, offset: int) -> "Query":
        self.clauses["offset"] = Clause(key="offset", sql=self.grammar.compile_offset(int(offset)))
        self._current = "offset"
        return self

    # set operations and CTEs

    def union(self, query: "Query") -> "Query":
        self.add_piece("union")
        return self.merge(query)

    def union_all(self, query: "Query") -> "Query":
        self.add_piece("union all")
        return self.merge(query)

    def with_(self, name: str, query: "Query") -> "Query":
        self.add_piece("with", separator=",")
        self.raw(f"{self.grammar.escape(name)} as")
        return self.compile(query)

    def with_recursive(self, name: str, query: "Query") -> "Query":
        self.add_piece("with recursive", separator=",")
        self.raw(f"{self.grammar.escape(name)} as")
        return self.compile(query)

    # writes

    def insert_into(self, table: str, fields: Iterable[str], keyword: str = "insert into") -> "Query":
        fields = list(fields)
        if not fields:
            raise QueryBuildError("There must be at least one column.")
        escape = self.grammar.escape
        self.add_piece(keyword, escape(table))
        return self.raw("(" + ", ".join(escape(field) for field in fields) + ")")

    def _insert_ignore_keyword(self) -> str:
        grammar = self.grammar
        if grammar.INSERT_IGNORE is None:
            raise QueryBuildError(f"{type(grammar).__name__} has no insert-ignore statement.")
        return grammar.INSERT_IGNORE

    def _replace_keyword(self) -> str:
        if not self.grammar.SUPPORTS_REPLACE:
            raise QueryBuildError(f"{type(self.grammar).__name__} has no replace statement.")
        return "replace into"

    def insert_ignore_into(self, table: str, fields: Iterable[str]) -> "Query":
        return self.insert_into(table, fields, self._insert_ignore_keyword())

    def replace_into(self, table: str, fields: Iterable[str]) -> "Query":
        return self.insert_into(table, fields, self._replace_keyword())

    def _insert_values(self, table: str, values: Union[dict, Iterable[dict]], keyword: str) -> "Query":
        rows = [values] if isinstance(values, dict) else list(values)
        if not rows:
            raise QueryBuildError("There must be at least one row.")
        fields = list(rows[0].keys())
        self.insert_into(table, fields, keyword)
        for row in rows:
            if set(row.keys()) != set(fields):
                raise QueryBuildError("Every inserted row must define the same columns.")
            self.values([row[field] for field in fields])
        return self

    def insert_into_values(self, table: str, values: Union[dict, Iterable[dict]]) -> "Query":
        return self._insert_values(table, values, "insert into")

    def insert_ignore_into_values(self, table: str, values: Union[dict, Iterable[dict]]) -> "Query":
        return self._insert_values(table, values, self._insert_ignore_keyword())

    def replace_into_values(self, table: str, values: Union[dict, Iterable[dict]]) -> "Query":
        return self._insert_values(table, values, self._replace_keyword())

    def values(self, values: Iterable[Any]) -> "Query":
        self.add_piece("values", separator=",")
        self.raw("(")
        self.compile_multiple(list(values))
        return self.raw(")")

    def update(self, table: str, pairs: Optional[dict] = None) -> "Query":
        self.add_piece("update", self.grammar.escape(table))
        for field, value in (pairs or {}).items():
            self.set(field, value)
        return self

    def set(self, field: Any, value: Any) -> "Query":
        self.add_piece("set", separator=",")
        if isinstance(field, str):
            field = Literal(value=self.grammar.escape(field))
        self.compile(field)
        self.raw("=")
        return self.compile(value)

    def delete(self, table: Optional[str] = None) -> "Query":
        return self.add_piece("delete", self.grammar.escape(table) if table else None)

    def delete_from(self, table: str) -> "Query":
        return self.add_piece("delete from", self.grammar.escape(table))

    def on_duplicate_key_update(self, fields: Iterable[str]) -> "Query":
        escape = self.grammar.escape
        parts = [field if "=" in field else f"{escape(field)} = VALUES({escape(field)})" for field in fields]
        return self.add_piece("on duplicate key update", ", ".join(parts), separator=",")

    def returning(self, columns: Union[str, Iterable[str]]) -> "Query":
        if isinstance(columns, str):
            columns = [columns]
        return self.add_piece("returning", ", ".join(self.grammar.escape(column) for column in columns), separator=",")

    # model integration

    def with_model(self, model: type) -> "Query":
        self.model = model
        return self

    def without_model(self) -> "Query":
        self.model = None
        self.eager_loads = []
        self.eager_load_disabled = []
        return self

    def is_model_query(self) -> bool:
        return self.model is not None

    def with_deleted(self) -> "Query":
        """Include soft-deleted rows."""
        self.include_deleted = True
        return self

    def eager_load(self, *relations: str) -> "Query":
        """Load these relations (dotted for nested: "posts.comments") with the results."""
        for relation in relations:
            if relation not in self.eager_loads:
                self.eager_loads.append(relation)
        return self

    def eager_load_disable(self, *relations: str) -> "Query":
        for relation in relations:
            if relation not in self.eager_load_disabled:
                self.eager_load_disabled.append(relation)
        return self

    def eager_load_reset(self) -> "Query":
        self.eager_loads = []
        self.eager_load_disabled = []
        return self

    def with_before_relations(self, fn: Callable[[list], Any]) -> "Query":
        """Run fn on the hydrated models before their relations are eager loaded."""
        self.before_relations.append(fn)
        return self

    # clause management

    def is_clause_defined(self, clause: str) -> bool:
        existing = self.clauses.get(clause_key(clause))
        return existing is not None and bool(existing.sql)

    def remove_clause(self, clause: str) -> "Query":
        key = clause_key(clause)
        self.clauses.pop(key, None)
        if self._current == key:
            self._current = None
        return self

    def replace_clause(self, clause: str, fn: Callable[[Clause], Union[Clause, str]]) -> "Query":
        key = clause_key(clause)
        if not self.is_clause_defined(clause):
            raise MissingClauseError(clause)
        replacement = fn(self.clauses[key])
        if isinstance(replacement, str):
            replacement = Clause(key=key, sql=replacement)
        self.clauses[key] = replacement
        return self

    # output

    def _render(self) -> str:
        """The SQL with parameter marks still in place, for splicing into another query."""
        if self.paren_depth != 0 or self._pending_parens:
            raise UnbalancedParenthesisError(self.paren_depth)
        grammar = self.grammar
        parts = []
        for key in CLAUSE_ORDER:
            if key == "offset":
                continue
            if key == "limit":
                parts.extend(self._paging_sql(grammar))
                continue
            clause = self.clauses.get(key)
            if clause is not None and clause.sql:
                parts.append(clause.sql)
        return " ".join(parts)

    def _paging_sql(self, grammar) -> list[str]:
        paging = [self.clauses[key].sql for key in grammar.PAGING_ORDER if self.is_clause_defined(key)]
        if paging and grammar.PAGING_ORDER_FALLBACK and not self.is_clause_defined("order by"):
            paging.insert(0, grammar.PAGING_ORDER_FALLBACK)
        return paging

    def to_sql(self) -> str:
        """The SQL handed to the driver, with the dialect's placeholders."""
        return self.grammar.render(self._render(), bool(self.params))

    @property
    def params(self) -> list[Any]:
        params = []
        for key in CLAUSE_ORDER:
            clause = self.clauses.get(key)
            if clause is not None:
                params.extend(clause.params)
        return params

    def __str__(self) -> str:
        return self.to_sql()

    # execution

    def _soft_delete_filtered(self) -> "Query":
        """Return the query with soft-deleted rows excluded, when that applies."""
        if self.model is None or self.include_deleted or not self.is_clause_defined("select"):
            return self
        column = self.model.structure().soft_delete_literal()
        if column is None:
            return self
        query = self.clone_query_with()
        where = query.clauses.get("where")
        if where is not None and where.sql:
            condition = where.sql[len("where "):]
            where.sql = f"where {column} is null and ({condition})"
        else:
            query.clauses["where"] = Clause(key="where", sql=f"where {column} is null")
        return query

    def statement(self) -> Statement:
        query = self._soft_delete_filtered()
        return Statement(
            self.connection,
            query.to_sql(),
            query.params,
            model=self.model,
            eager_load=self.eager_loads,
            eager_load_disable=self.eager_load_disabled,
            before_relations=self.before_relations,
        )

    def run(self) -> int:
        """Execute and return the number of affected rows."""
        return self.statement().run()

    def run_returning(self, column: Union[str, list[str]]) -> Any:
        """Execute a write and return the given column(s) of the affected row.

        A single column name returns its value, a list returns a dict. On
        drivers without `returning`, the last insert id is used.
        """
        columns = [column] if isinstance(column, str) else list(column)
        if self.grammar.SUPPORTS_RETURNING:
            query = self.clone_query_with(model=None).returning(columns)
            row = Statement(self.connection, query.to_sql(), query.params).single()
            if row is None:
                return None
            values = list(row.values())
        else:
            self.run()
            values = [self.connection.last_insert_id()]
        if isinstance(column, str):
            return values[0]
        return dict(zip(columns, values))

    def array(self) -> list:
        return self.statement().array()

    def array_list(self) -> list:
        return self.statement().array_list()

    def cursor(self) -> Iterator[Any]:
        return self.statement().cursor()

    def single(self) -> Any:
        return self.statement().single()

    def single_or_fail(self) -> Any:
        return self.statement().single_or_fail()

    def fetch_column(self) -> Any:
        return self.statement().fetch_column()

    def _count(self, drop_order: bool) -> int:
        query = self._soft_delete_filtered().clone_query_with(include_deleted=True)
        query.remove_clause("limit").remove_clause("offset").eager_load_reset()
        if drop_order:
            query.remove_clause("order by")
        select = query.clauses.get("select")
        grouped = (
            query.is_clause_defined("group by")
            or query.is_clause_defined("having")
            or query.is_clause_defined("union")
            or (select is not None and select.sql.startswith("select distinct"))
        )
        if grouped:
            inner = query.without_model()
            outer = Query(connection=self.connection).select([Aggregate(name="count")]).from_(inner, alias="counted")
        else:
            outer = query.without_model()
            outer.clauses["select"] = Clause(key="select", sql="select count(*)")
        value = outer.fetch_column()
        return int(value or 0)

    def result_count(self) -> int:
        """Count the rows this query matches, ignoring limit and offset."""
        return self._count(drop_order=False)

    def total_count(self) -> int:
        """Count every matching row, ignoring limit, offset and ordering."""
        return self._count(drop_order=True)

    def paginate(
        self,
        offset: int,
        limit: int,
        item_builder: Optional[Callable[[Any], Any]] = None,
        total_builder: Optional[Callable[["Query"], int]] = None,
    ) -> Paginated:
        total = total_builder(self.clone_query_with()) if total_builder is not None else self.total_count()
        items = self.clone_query_with().limit(limit, offset).array_list()
        if item_builder is not None:
            items = [item_builder(item) for item in items]
        return Paginated(items=list(items), offset=offset, limit=limit, total=total)

    def explain(self) -> dict[str, Any]:
        """Run the dialect's `explain` on this query."""
        query = self._soft_delete_filtered().clone_query_with()
        query.without_model()
        query.clauses["explain"] = Clause(key="explain", sql=self.grammar.EXPLAIN)
        rows = query.array()
        logger.debug("Explained %s", self.to_sql())
        return {"original_sql": self.to_sql(), "rows": rows}


def _primary_key_row(query: Query, keys: list, row: tuple, alternative: bool) -> None:
    for position, (key, value) in enumerate(zip(keys, row)):
        if position == 0 and alternative:
            query.or_where(key, value)
        else:
            query.where(key, value)
