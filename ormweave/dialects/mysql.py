"""MySQL dialect."""

import urllib.parse
from typing import Any, ClassVar

from .base import Dialect


class MysqlDialect(Dialect):
    """Dialect for MySQL and MariaDB (scheme mysql)."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("mysql", "mariadb")
    ESCAPERS: ClassVar[tuple[str, str]] = ("`", "`")
    PLACEHOLDER: ClassVar[str] = "%s"
    PYFORMAT: ClassVar[bool] = True

    F: ClassVar[dict[str, callable]] = {
        "escape_for_like": lambda s: s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_"),
    }

    def quote(self, value: Any) -> str:
        """Quote a value, doubling backslashes as well as quotes."""
        return "'" + str(value).replace("\\", "\\\\").replace("'", "''") + "'"

    def driver_errors(self):
        import pymysql  # pylint: disable=import-outside-toplevel,import-error
        # pymysql reports malformed %-formatting as a plain ValueError
        return (pymysql.Error, ValueError)

    def connect(self, url: str):
        import pymysql  # pylint: disable=import-outside-toplevel,import-error
        parsed = urllib.parse.urlparse(url)
        return pymysql.connect(
            host=parsed.hostname,
            user=parsed.username,
            password=parsed.password,
            database=(parsed.path or "")[1:] or None,
            port=parsed.port or 3306,
            autocommit=True,
        )
