"""Base Dialect type: identifier escaping, value quoting and driver access per engine."""

from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, Optional

from pydantic import BaseModel

PARAMETER_MARK = "\x00?\x00"
"""Stands for a bound parameter in builder SQL until the dialect renders it."""


class _DialectF:
    """Helper for dialect.f: __getattr__ returns the callable from the dialect's F config."""

    __slots__ = ("_dialect",)

    def __init__(self, dialect: "Dialect") -> None:
        self._dialect = dialect

    def __getattr__(self, name: str) -> Callable[..., Any]:
        F = type(self._dialect).F  # pylint: disable=invalid-name
        if name in F:
            return F[name]
        raise AttributeError(name)


class Dialect(BaseModel, ABC):
    """Base for database dialects (the query grammar).

    A dialect knows how to escape identifiers, quote values for unprepared
    queries, name the driver placeholder and open a raw driver connection.
    """

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ()
    """URL schemes this dialect handles (e.g. ('sqlite',), ('mssql', 'sqlserver'))."""

    ESCAPERS: ClassVar[tuple[str, str]] = ("", "")
    """Opening and closing identifier quote."""

    PLACEHOLDER: ClassVar[str] = "?"
    """Positional placeholder understood by the driver."""

    PYFORMAT: ClassVar[bool] = False
    """The driver %-formats SQL that comes with parameters, so literal `%` is doubled."""

    TABLE_SEPARATOR: ClassVar[str] = ", "

    EXPLAIN: ClassVar[str] = "explain"
    INSERT_IGNORE: ClassVar[Optional[str]] = "insert ignore into"
    SUPPORTS_REPLACE: ClassVar[bool] = True
    SUPPORTS_RETURNING: ClassVar[bool] = False

    LIKE_ESCAPE: ClassVar[Optional[str]] = None
    """Escape character declared after `like` patterns, when the engine has no default."""

    PAGING_ORDER: ClassVar[tuple[str, str]] = ("limit", "offset")
    LIMIT_NEEDS_OFFSET: ClassVar[bool] = False
    PAGING_ORDER_FALLBACK: ClassVar[Optional[str]] = None
    """`order by` written before paging clauses when the query has none."""

    F: ClassVar[dict[str, Callable[..., Any]]] = {}
    """Dialect-specific SQL helpers (e.g. concat, now). Access via dialect.f.concat(a, b, c).

    A function expression whose name has an entry here compiles to that
    entry's result instead of a plain call.
    """

    @property
    def f(self) -> _DialectF:
        """Access dialect-specific helpers by name (e.g. self.f.concat(a, b, c))."""
        return _DialectF(self)

    def render(self, sql: str, bound: bool) -> str:
        """Turn builder SQL into driver SQL, with `bound` telling whether parameters go along."""
        if self.PYFORMAT and bound:
            sql = sql.replace("%", "%%")
        return sql.replace(PARAMETER_MARK, self.PLACEHOLDER)

    def compile_limit(self, limit: int) -> str:
        return f"limit {limit}"

    def compile_offset(self, offset: int) -> str:
        return f"offset {offset}"

    def last_insert_id_sql(self) -> Optional[str]:
        """SQL returning the last generated id, for drivers whose cursors don't report it."""
        return None

    def escape(self, value: str) -> str:
        """Escape an identifier.

        Dotted names are escaped part by part, only the first word of a
        spaced name is escaped (`name desc`), and anything containing a
        parenthesis, `*` or an escaper is passed through untouched.
        """
        if not value or "(" in value:
            return value
        if "." in value:
            return ".".join(self.escape(part) for part in value.split("."))
        if " " in value:
            first, rest = value.split(" ", 1)
            return f"{self.escape(first)} {rest}"
        opening, closing = self.ESCAPERS
        if value == "*" or not opening or opening in value:
            return value
        return f"{opening}{value}{closing}"

    def quote(self, value: Any) -> str:
        """Quote a value as a SQL string literal."""
        return "'" + str(value).replace("'", "''") + "'"

    def compile_optimize_table(self, table: str) -> str:
        return f"optimize table {self.escape(table)}"

    def compile_truncate_table(self, table: str) -> str:
        return f"truncate table {self.escape(table)}"

    def list_tables_sql(self) -> str:
        """SQL returning one `name` column per table of the current database."""
        return (
            "select table_name as name from information_schema.tables "
            "where table_schema = database()"
        )

    def list_columns_sql(self) -> str:
        """SQL returning one `name` column per column of the table bound as only parameter."""
        return (
            "select column_name as name from information_schema.columns "
            f"where table_schema = database() and table_name = {self.PLACEHOLDER} "
            "order by ordinal_position"
        )

    @abstractmethod
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        """Return the exception classes raised by the underlying driver."""
        ...  # pylint: disable=unnecessary-ellipsis

    @abstractmethod
    def connect(self, url: str) -> Any:
        """Return a new raw driver connection for the given URL.

        The connection is opened in autocommit mode; transactions are driven
        explicitly by the Connection. The return value is engine-specific
        (e.g. sqlite3.Connection, pymysql.Connection).
        """
        ...  # pylint: disable=unnecessary-ellipsis
