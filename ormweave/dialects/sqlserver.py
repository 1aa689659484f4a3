"""SQL Server dialect."""

import urllib.parse
from typing import ClassVar, Optional

from ormweave.expressions import Raw

from .base import Dialect


class SqlserverDialect(Dialect):
    """Dialect for SQL Server (schemes mssql, sqlserver).

    Paging uses `offset ... rows fetch next ... rows only`, which T-SQL only
    accepts after an `order by`; queries without one are ordered by
    `(select null)`. pyodbc cursors don't expose the generated id, so it is
    read back with `@@identity`.
    """

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("mssql", "sqlserver")
    ESCAPERS: ClassVar[tuple[str, str]] = ("[", "]")
    PLACEHOLDER: ClassVar[str] = "?"
    INSERT_IGNORE: ClassVar[Optional[str]] = None
    SUPPORTS_REPLACE: ClassVar[bool] = False

    PAGING_ORDER: ClassVar[tuple[str, str]] = ("offset", "limit")
    LIMIT_NEEDS_OFFSET: ClassVar[bool] = True
    PAGING_ORDER_FALLBACK: ClassVar[Optional[str]] = "order by (select null)"

    F: ClassVar[dict[str, callable]] = {
        "now": lambda: Raw(value="getdate()"),
        "escape_for_like": lambda s: s.replace("[", "[[]").replace("%", "[%]").replace("_", "[_]"),
    }

    def compile_limit(self, limit: int) -> str:
        return f"fetch next {limit} rows only"

    def compile_offset(self, offset: int) -> str:
        return f"offset {offset} rows"

    def last_insert_id_sql(self) -> Optional[str]:
        return "select @@identity"

    def compile_optimize_table(self, table: str) -> str:
        return f"alter index all on {self.escape(table)} rebuild"

    def list_tables_sql(self) -> str:
        return "select table_name as name from information_schema.tables where table_type = 'BASE TABLE'"

    def list_columns_sql(self) -> str:
        return (
            "select column_name as name from information_schema.columns "
            "where table_name = ? order by ordinal_position"
        )

    def driver_errors(self):
        import pyodbc  # pylint: disable=import-outside-toplevel,import-error
        return (pyodbc.Error,)

    def connect(self, url: str):
        import pyodbc  # pylint: disable=import-outside-toplevel,import-error
        parsed = urllib.parse.urlparse(url)
        database = (parsed.path or "").lstrip("/") or None
        port = parsed.port or 1433
        server = parsed.hostname or "localhost"
        if port and port != 1433:
            server = f"{server},{port}"
        conn_str = (
            f"DRIVER={{ODBC Driver 17 for SQL Server}};"
            f"SERVER={server};"
            f"DATABASE={database or ''};"
            f"UID={parsed.username or ''};"
            f"PWD={parsed.password or ''}"
        )
        return pyodbc.connect(conn_str, autocommit=True)
