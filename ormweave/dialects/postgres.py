"""PostgreSQL dialect."""

import urllib.parse
from typing import ClassVar, Optional

from ormweave.expressions import Operation

from .base import Dialect


class PostgresDialect(Dialect):
    """Dialect for PostgreSQL (schemes postgresql, postgres)."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("postgresql", "postgres")
    ESCAPERS: ClassVar[tuple[str, str]] = ('"', '"')
    PLACEHOLDER: ClassVar[str] = "%s"
    PYFORMAT: ClassVar[bool] = True
    INSERT_IGNORE: ClassVar[Optional[str]] = None
    SUPPORTS_REPLACE: ClassVar[bool] = False
    SUPPORTS_RETURNING: ClassVar[bool] = True

    F: ClassVar[dict[str, callable]] = {
        "concat": lambda *args: Operation.chain("||", args),
        "escape_for_like": lambda s: s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_"),
    }

    def compile_optimize_table(self, table: str) -> str:
        return f"vacuum analyze {self.escape(table)}"

    def list_tables_sql(self) -> str:
        return "select table_name as name from information_schema.tables where table_schema = current_schema()"

    def list_columns_sql(self) -> str:
        return (
            "select column_name as name from information_schema.columns "
            "where table_schema = current_schema() and table_name = %s "
            "order by ordinal_position"
        )

    def driver_errors(self):
        import psycopg2  # pylint: disable=import-outside-toplevel,import-error
        return (psycopg2.Error,)

    def connect(self, url: str):
        import psycopg2  # pylint: disable=import-outside-toplevel,import-error
        parsed = urllib.parse.urlparse(url)
        connection = psycopg2.connect(
            host=parsed.hostname,
            user=parsed.username,
            password=parsed.password,
            database=(parsed.path or "")[1:] or None,
            port=parsed.port,
        )
        connection.autocommit = True
        return connection
