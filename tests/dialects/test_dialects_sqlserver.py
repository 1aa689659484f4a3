"""Tests for ormweave.dialects.sqlserver: paging, generated ids, like escaping, connect."""

import sys
from unittest.mock import MagicMock

import pytest

from ormweave.connection import Connection
from ormweave.dialects import SqlserverDialect
from ormweave.errors import QueryBuildError
from ormweave.expressions import contains, now


@pytest.fixture
def sqlserver():
    return Connection("sqlserver://localhost/app")


@pytest.fixture
def pyodbc(monkeypatch):
    """A pyodbc double whose cursors, like real ones, have no `lastrowid`."""
    mock_pyodbc = MagicMock()
    mock_pyodbc.Error = type("Error", (Exception,), {})
    cursor = MagicMock(spec=["execute", "fetchone", "close", "rowcount", "description", "__iter__"])
    cursor.rowcount = 1
    cursor.fetchone.return_value = (7,)
    mock_pyodbc.connect.return_value.cursor.return_value = cursor
    monkeypatch.setitem(sys.modules, "pyodbc", mock_pyodbc)
    return mock_pyodbc


def test_sqlserver_f_escape_for_like():
    d = SqlserverDialect()
    assert d.f.escape_for_like("x%") == "x[%]"
    assert d.f.escape_for_like("a_b") == "a[_]b"


def test_like_uses_bracket_escapes(sqlserver):
    query = sqlserver.query().select().from_("user").where("name", contains("a_b"))
    assert query.to_sql() == "select * from [user] where [name] like ?"
    assert query.params == ["%a[_]b%"]


def test_now_is_getdate(sqlserver):
    query = sqlserver.query().select([now()])
    assert query.to_sql() == "select getdate()"


class TestPaging:

    def test_limit_and_offset(self, sqlserver):
        query = sqlserver.query().select().from_("user").order_by("id").limit(5, 10)
        assert query.to_sql() == (
            "select * from [user] order by [id] offset 10 rows fetch next 5 rows only"
        )

    def test_limit_alone_starts_at_zero(self, sqlserver):
        query = sqlserver.query().select().from_("user").order_by("id").limit(1)
        assert query.to_sql() == "select * from [user] order by [id] offset 0 rows fetch next 1 rows only"

    def test_unordered_query_gets_neutral_order(self, sqlserver):
        query = sqlserver.query().select().from_("user").limit(5)
        assert query.to_sql() == (
            "select * from [user] order by (select null) offset 0 rows fetch next 5 rows only"
        )

    def test_offset_alone(self, sqlserver):
        query = sqlserver.query().select().from_("user").order_by("id").offset(3)
        assert query.to_sql() == "select * from [user] order by [id] offset 3 rows"

    def test_counting_drops_paging(self, sqlserver):
        query = sqlserver.query().select().from_("user").limit(5)
        counted = query.clone_query_with().remove_clause("limit").remove_clause("offset")
        assert counted.to_sql() == "select * from [user]"


def test_insert_ignore_and_replace_are_rejected(sqlserver):
    with pytest.raises(QueryBuildError, match="insert-ignore"):
        sqlserver.query().insert_ignore_into("role", ["name"])
    with pytest.raises(QueryBuildError, match="replace"):
        sqlserver.query().replace_into_values("role", {"name": "a"})


class TestExecution:

    def test_statements_run_without_lastrowid(self, sqlserver, pyodbc):
        assert sqlserver.execute("update [user] set [name] = ?", ["x"]) == 1

    def test_last_insert_id_is_read_back(self, sqlserver, pyodbc):
        sqlserver.execute("insert into [role] ([name]) values (?)", ["a"])
        assert sqlserver.last_insert_id() == 7
        cursor = pyodbc.connect.return_value.cursor.return_value
        cursor.execute.assert_called_with("select @@identity")

    def test_run_returning_uses_identity(self, sqlserver, pyodbc):
        assert sqlserver.query().insert_into_values("role", {"name": "a"}).run_returning("id") == 7


def test_sqlserver_connect(monkeypatch):
    """connect() builds the ODBC string and calls pyodbc.connect; pyodbc is mocked."""
    mock_pyodbc = MagicMock()
    monkeypatch.setitem(sys.modules, "pyodbc", mock_pyodbc)
    d = SqlserverDialect()
    d.connect("sqlserver://localhost/db")
    mock_pyodbc.connect.assert_called_once()
    conn_str = mock_pyodbc.connect.call_args[0][0]
    assert "SERVER=localhost" in conn_str
    assert "DATABASE=db" in conn_str


def test_sqlserver_connect_with_port(monkeypatch):
    mock_pyodbc = MagicMock()
    monkeypatch.setitem(sys.modules, "pyodbc", mock_pyodbc)
    d = SqlserverDialect()
    d.connect("sqlserver://host:9999/mydb")
    conn_str = mock_pyodbc.connect.call_args[0][0]
    assert "SERVER=host,9999" in conn_str
