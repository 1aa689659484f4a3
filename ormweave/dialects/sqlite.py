"""SQLite dialect."""

import logging
import sqlite3
import urllib.parse

from typing import ClassVar, Optional

from ormweave.expressions import Operation, Raw

from .base import Dialect

logger = logging.getLogger(__name__)


class SqliteDialect(Dialect):
    """Dialect for SQLite (scheme sqlite)."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("sqlite",)
    ESCAPERS: ClassVar[tuple[str, str]] = ("`", "`")
    PLACEHOLDER: ClassVar[str] = "?"
    EXPLAIN: ClassVar[str] = "explain query plan"
    INSERT_IGNORE: ClassVar[Optional[str]] = "insert or ignore into"
    LIKE_ESCAPE: ClassVar[Optional[str]] = "\\"
    SUPPORTS_RETURNING: ClassVar[bool] = sqlite3.sqlite_version_info >= (3, 35, 0)

    F: ClassVar[dict[str, callable]] = {
        "concat": lambda *args: Operation.chain("||", args),
        "now": lambda: Raw(value="current_timestamp"),
        "escape_for_like": lambda s: s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_"),
    }

    def compile_optimize_table(self, table: str) -> str:
        return "vacuum"

    def compile_truncate_table(self, table: str) -> str:
        return f"delete from {self.escape(table)}"

    def list_tables_sql(self) -> str:
        return "select name from sqlite_master where type = 'table' and name not like 'sqlite_%' order by name"

    def list_columns_sql(self) -> str:
        return "select name from pragma_table_info(?)"

    def driver_errors(self):
        return (sqlite3.Error,)

    def connect(self, url: str):
        parsed = urllib.parse.urlparse(url)
        path = (parsed.path or "")[1:] or parsed.hostname or ":memory:"
        logger.info("Connecting to SQLite database %s", path)
        conn = sqlite3.connect(path, isolation_level=None)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn
