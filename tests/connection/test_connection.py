"""Tests for ormweave.connection: connect(), get_connection(), and the Connection object."""

import logging
import sqlite3
from unittest.mock import MagicMock

import pytest

from ormweave.connection import Connection, connect, disconnect, get_connection
from ormweave.dialects import MysqlDialect, SqliteDialect
from ormweave.errors import (
    ConnectionFailedError,
    ConnectionNotConfiguredError,
    ExecutionError,
    NotConnectedError,
)


def test_connect_rejects_non_string_non_callable():
    """connect() raises ValueError when database_url is neither str nor callable."""
    with pytest.raises(ValueError, match="database_url.*str.*or a method"):
        connect(123, name="bad")
    with pytest.raises(ValueError, match="database_url.*str.*or a method"):
        connect([], name="bad")


def test_get_connection_with_callable_url(tmp_path):
    """A callable database_url is resolved when the connection opens."""
    path = tmp_path / "callable.sqlite3"
    connection = connect(lambda: f"sqlite:///{path}", name="callable_db")
    try:
        assert get_connection("callable_db") is connection
        connection.execute("create table callable_foo (bar text)")
        assert connection.column("select count(*) from callable_foo") == 0
        assert path.exists()
    finally:
        disconnect("callable_db")


def test_unknown_connection_name():
    with pytest.raises(ConnectionNotConfiguredError):
        get_connection("nonexistent")
    with pytest.raises(ValueError):
        get_connection("nonexistent")


def test_named_connections_are_separate(tmp_path):
    first = connect(f"sqlite:///{tmp_path / 'a.sqlite3'}", name="first")
    second = connect(f"sqlite:///{tmp_path / 'b.sqlite3'}", name="second")
    try:
        first.execute("create table foo (bar text)")
        assert first.table_exists("foo")
        assert not second.table_exists("foo")
        assert first.cache is not second.cache
    finally:
        disconnect("first")
        disconnect("second")


def test_reconnecting_replaces_and_closes(tmp_path):
    old = connect(f"sqlite:///{tmp_path / 'a.sqlite3'}", name="replaced")
    old.connect()
    new = connect(f"sqlite:///{tmp_path / 'b.sqlite3'}", name="replaced")
    try:
        assert get_connection("replaced") is new
        assert not old.is_connected
        with pytest.raises(NotConnectedError):
            old.connect()
    finally:
        disconnect("replaced")


def test_grammar_follows_url_scheme():
    assert isinstance(Connection("sqlite://").grammar, SqliteDialect)
    assert isinstance(Connection("mysql://u:p@localhost/db").grammar, MysqlDialect)


def test_connection_is_lazy():
    connection = Connection("sqlite://")
    assert not connection.is_connected
    connection.query().select().from_("t").to_sql()
    assert not connection.is_connected


def test_failed_connection_is_wrapped(tmp_path):
    connection = Connection(f"sqlite:///{tmp_path / 'missing' / 'db.sqlite3'}")
    with pytest.raises(ConnectionFailedError):
        connection.connect()


class TestConnectionHelpers:

    def test_quote(self, setup_db):
        assert setup_db.quote("it's") == "'it''s'"

    def test_last_insert_id(self, setup_db):
        setup_db.execute("insert into role (name) values ('a')")
        setup_db.execute("insert into role (name) values ('b')")
        assert setup_db.last_insert_id() == 2

    def test_schema_introspection(self, setup_db):
        assert "user" in setup_db.table_names()
        assert setup_db.table_columns("role") == ["id", "name"]
        assert setup_db.table_column_exists("post", "deleted_at")
        assert not setup_db.table_column_exists("post", "nope")
        schema = setup_db.load_database_schema()
        assert schema["subscription"] == ["user_id", "channel", "level"]

    def test_truncate_and_optimize(self, setup_db):
        setup_db.execute("insert into role (name) values ('a')")
        setup_db.truncate_table("role")
        assert setup_db.column("select count(*) from role") == 0
        setup_db.optimize_table("role")

    def test_close_flushes_cache(self, tmp_path):
        connection = connect(f"sqlite:///{tmp_path / 'c.sqlite3'}", name="closing")
        connection.cache.set(object, 1, object())
        disconnect("closing")
        assert len(connection.cache) == 0

    def test_cursor_is_closed_when_execute_fails(self):
        connection = Connection("sqlite://")
        connection._raw = MagicMock()
        cursor = connection._raw.cursor.return_value
        cursor.execute.side_effect = sqlite3.OperationalError("no such table: nope")
        with pytest.raises(ExecutionError) as error:
            connection.execute("select * from nope")
        assert error.value.sql == "select * from nope"
        cursor.close.assert_called_once_with()


class TestQueryLogging:

    def test_query_logger_records_when_enabled(self, setup_db):
        setup_db.logger.enable()
        setup_db.execute("select 1")
        setup_db.logger.disable()
        setup_db.execute("select 2")
        assert [event.sql for event in setup_db.logger.queries] == ["select 1"]
        assert setup_db.logger.count() == 1
        setup_db.logger.clear()
        assert setup_db.logger.count() == 0

    def test_statements_go_to_the_ormweave_logger(self, setup_db, caplog):
        with caplog.at_level(logging.DEBUG, logger="ormweave"):
            setup_db.execute("select 42")
        assert any("select 42" in record.getMessage() for record in caplog.records)
