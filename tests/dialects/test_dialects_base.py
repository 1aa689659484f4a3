"""Tests for ormweave.dialects.base: Dialect.escape, Dialect.quote and the dialect.f helpers."""

import pytest

from ormweave.dialects import MysqlDialect, SqliteDialect, SqlserverDialect
from ormweave.dialects.base import Dialect


class _Dummy(Dialect):
    SUPPORTED_SCHEMA = ()
    ESCAPERS = ("`", "`")
    F = {"concat": lambda *a: ("concat", a)}

    def driver_errors(self):
        return (RuntimeError,)

    def connect(self, url):
        pass


def test_dialect_f_getattr_returns_callable():
    """dialect.f.concat etc. returns the F entry."""
    d = _Dummy()
    assert callable(d.f.concat)
    assert d.f.concat("a", "b") == ("concat", ("a", "b"))


def test_dialect_f_getattr_unknown_raises():
    """dialect.f.unknown raises AttributeError."""
    with pytest.raises(AttributeError, match="unknown"):
        _ = _Dummy().f.unknown


class TestEscape:

    def test_plain_identifier(self):
        assert SqliteDialect().escape("user") == "`user`"

    def test_dotted_identifier_is_escaped_per_part(self):
        assert SqliteDialect().escape("user.id") == "`user`.`id`"

    def test_star_is_left_alone(self):
        assert SqliteDialect().escape("user.*") == "`user`.*"
        assert SqliteDialect().escape("*") == "*"

    def test_only_first_word_is_escaped(self):
        assert SqliteDialect().escape("name desc") == "`name` desc"

    def test_function_calls_and_escaped_names_pass_through(self):
        d = SqliteDialect()
        assert d.escape("count(*)") == "count(*)"
        assert d.escape("`already`") == "`already`"

    def test_sqlserver_uses_brackets(self):
        assert SqlserverDialect().escape("order.total") == "[order].[total]"


class TestQuote:

    def test_single_quotes_are_doubled(self):
        assert SqliteDialect().quote("it's") == "'it''s'"

    def test_mysql_doubles_backslashes(self):
        assert MysqlDialect().quote("a\\b'c") == "'a\\\\b''c'"
