"""Named connections: a registry of Connection objects wrapping DB-API drivers."""

import logging
import time
import urllib.parse
from contextlib import AbstractContextManager
from typing import Any, Callable, Optional, Sequence, Union

from .cache import Cache
from .dialects import Dialect, get_dialect_for_scheme
from .errors import ConnectionFailedError, ConnectionNotConfiguredError, ExecutionError, NotConnectedError
from .logger import QueryEvent, QueryLogger
from .query import Query, Statement
from .transaction import Transaction, TransactionManager

logger = logging.getLogger("ormweave")


class Connection:
    """A lazily opened database connection, its dialect, identity cache and query log."""

    def __init__(self, url: Union[str, Callable[[], str]], name: str = "default", dialect: Optional[Dialect] = None):
        self.name = name
        self._url = url
        self._grammar = dialect
        self._raw = None
        self._closed = False
        self._last_insert_id: Any = None
        self._transactions = TransactionManager(self)
        self.cache = Cache()
        self.logger = QueryLogger()

    def __repr__(self) -> str:
        return f"<Connection {self.name!r} {type(self.grammar).__name__}>"

    @property
    def url(self) -> str:
        return self._url() if callable(self._url) else self._url

    @property
    def grammar(self) -> Dialect:
        if self._grammar is None:
            self._grammar = get_dialect_for_scheme(urllib.parse.urlparse(self.url).scheme)
        return self._grammar

    # lifecycle

    @property
    def is_connected(self) -> bool:
        return self._raw is not None

    def connect(self) -> Any:
        """Open the driver connection if needed and return it."""
        if self._raw is not None:
            return self._raw
        if self._closed:
            raise NotConnectedError(f"Connection `{self.name}` was closed.")
        grammar = self.grammar
        try:
            self._raw = grammar.connect(self.url)
        except grammar.driver_errors() as error:
            raise ConnectionFailedError(f"Could not open connection `{self.name}`: {error}") from error
        logger.info("Connected `%s` using %s", self.name, type(self.grammar).__name__)
        return self._raw

    def close(self) -> None:
        if self._raw is not None:
            self._raw.close()
            self._raw = None
            logger.info("Disconnected `%s`", self.name)
        self._closed = True
        self.cache.flush()

    # statements

    def query(self, prepared: bool = True) -> Query:
        return Query(connection=self, prepared=prepared)

    def prepare(self, query: Union[str, Query], params: Sequence[Any] = ()) -> Statement:
        if isinstance(query, Query):
            return query.statement()
        return Statement(self, query, params)

    def execute_raw(self, sql: str, params: Sequence[Any] = ()):
        """Execute SQL on a fresh driver cursor and return that cursor.

        SQL without parameters is sent as is: %-formatting drivers only
        interpret `%` when parameters come along.
        """
        raw = self.connect()
        errors = self.grammar.driver_errors()
        started = time.perf_counter()
        try:
            cursor = raw.cursor()
        except errors as error:
            raise ExecutionError(sql, params, error) from error
        try:
            if params:
                cursor.execute(sql, tuple(params))
            else:
                cursor.execute(sql)
        except errors as error:
            cursor.close()
            raise ExecutionError(sql, params, error) from error
        self.logger.log(QueryEvent(sql=sql, params=tuple(params), duration=time.perf_counter() - started))
        last_row_id = getattr(cursor, "lastrowid", None)
        if last_row_id:
            self._last_insert_id = last_row_id
        return cursor

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Execute SQL and return the number of affected rows."""
        cursor = self.execute_raw(sql, params)
        count = cursor.rowcount
        cursor.close()
        return count

    def column(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Return the first column of the first row."""
        return Statement(self, sql, params).fetch_column()

    def quote(self, value: Any) -> str:
        return self.grammar.quote(value)

    def last_insert_id(self, name: Optional[str] = None) -> Any:
        """Return the id generated by the last insert (`name` is accepted for sequence-based engines)."""
        sql = self.grammar.last_insert_id_sql()
        if sql is not None:
            return self.column(sql)
        return self._last_insert_id

    def optimize_table(self, table: str) -> int:
        return self.execute(self.grammar.compile_optimize_table(table))

    def truncate_table(self, table: str) -> int:
        return self.execute(self.grammar.compile_truncate_table(table))

    # transactions

    def transaction(self) -> AbstractContextManager[Transaction]:
        """Run a block in a transaction; nested blocks use savepoints."""
        return self._transactions.transaction()

    def begin_transaction(self) -> int:
        return self._transactions.begin()

    def commit(self) -> None:
        self._transactions.commit()

    def roll_back(self) -> None:
        self._transactions.roll_back()

    def in_transaction(self) -> bool:
        return self._transactions.level > 0

    # introspection

    def table_names(self) -> list[str]:
        return [row["name"] for row in Statement(self, self.grammar.list_tables_sql()).array()]

    def table_exists(self, table: str) -> bool:
        return table in self.table_names()

    def table_columns(self, table: str) -> list[str]:
        rows = Statement(self, self.grammar.list_columns_sql(), [table]).array()
        return [row["name"] for row in rows]

    def table_column_exists(self, table: str, column: str) -> bool:
        return column in self.table_columns(table)

    def load_database_schema(self) -> dict[str, list[str]]:
        """Map every table name to its column names."""
        return {table: self.table_columns(table) for table in self.table_names()}


_connections: dict[str, Connection] = {}


def connect(database_url: Union[str, Callable[[], str]], name: str = "default") -> Connection:
    """Register (or replace) the connection called `name` and return it."""
    if not isinstance(database_url, str) and not callable(database_url):
        raise ValueError("`database_url` should be either a str or a method returning a str")
    previous = _connections.pop(name, None)
    if previous is not None:
        previous.close()
    connection = Connection(database_url, name=name)
    _connections[name] = connection
    return connection


def get_connection(name: str = "default") -> Connection:
    try:
        return _connections[name]
    except KeyError as error:
        raise ConnectionNotConfiguredError(name) from error


def disconnect(name: str = "default") -> None:
    connection = _connections.pop(name, None)
    if connection is not None:
        connection.close()
