"""Tests for ormweave.dialects.sqlite: F helpers, table statements and connect."""

import sqlite3

from ormweave.dialects import SqliteDialect
from ormweave.expressions import Operation


def test_sqlite_f_concat_returns_operation_chain():
    d = SqliteDialect()
    expr = d.f.concat("a", "b", "c")
    assert isinstance(expr, Operation)
    assert expr.operator == "||"
    assert expr.operands == ("a", "b", "c")


def test_sqlite_f_escape_for_like():
    d = SqliteDialect()
    assert d.f.escape_for_like("hello") == "hello"
    assert d.f.escape_for_like("50%") == "50\\%"
    assert d.f.escape_for_like("a_b") == "a\\_b"
    assert d.f.escape_for_like("\\") == "\\\\"
    assert d.f.escape_for_like("x%_\\y") == "x\\%\\_\\\\y"


def test_sqlite_table_statements():
    d = SqliteDialect()
    assert d.compile_truncate_table("user") == "delete from `user`"
    assert d.compile_optimize_table("user") == "vacuum"
    assert d.INSERT_IGNORE == "insert or ignore into"


def test_sqlite_connect_creates_connection(tmp_path):
    d = SqliteDialect()
    url = f"sqlite:///{tmp_path / 'test.db'}"
    conn = d.connect(url)
    assert isinstance(conn, sqlite3.Connection)
    assert conn.isolation_level is None
    conn.execute("SELECT 1")
    conn.close()


def test_sqlite_connect_defaults_to_memory():
    conn = SqliteDialect().connect("sqlite://")
    assert conn.execute("SELECT 1").fetchone() == (1,)
    conn.close()


def test_sqlite_declares_like_escape():
    assert SqliteDialect.LIKE_ESCAPE == "\\"
