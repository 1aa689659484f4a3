"""Dialects by URL scheme.

The scheme of a database URL (`sqlite:///app.db`, `mysql+pymysql://...`)
picks the dialect; anything after a `+` names the driver and is ignored.
Extra dialects can be added with `register_dialect`.
"""

from typing import Optional

from ..errors import UnsupportedSchemeError
from .base import Dialect
from .mysql import MysqlDialect
from .postgres import PostgresDialect
from .sqlite import SqliteDialect
from .sqlserver import SqlserverDialect

_dialects_by_scheme: dict[str, type[Dialect]] = {}


def register_dialect(dialect_class: type[Dialect]) -> type[Dialect]:
    """Make every scheme in `dialect_class.SUPPORTED_SCHEMA` resolve to it; usable as a decorator."""
    for scheme in dialect_class.SUPPORTED_SCHEMA:
        _dialects_by_scheme[scheme.lower()] = dialect_class
    return dialect_class


for _builtin in (SqliteDialect, MysqlDialect, PostgresDialect, SqlserverDialect):
    register_dialect(_builtin)


def get_dialect_for_scheme(scheme: Optional[str]) -> Dialect:
    dialect_class = _dialects_by_scheme.get((scheme or "").split("+")[0].lower())
    if dialect_class is None:
        raise UnsupportedSchemeError(scheme)
    return dialect_class()


__all__ = [
    "Dialect",
    "MysqlDialect",
    "PostgresDialect",
    "SqliteDialect",
    "SqlserverDialect",
    "get_dialect_for_scheme",
    "register_dialect",
]
