"""Tests for ormweave.transaction: nested transactions with savepoints."""

import pytest

from ormweave.errors import TransactionError


def _roles(connection):
    return [row["name"] for row in connection.query().select("name").from_("role").order_by("id").array()]


class TestTransactionContext:

    def test_commit_on_success(self, setup_db):
        with setup_db.transaction() as transaction:
            transaction.execute("insert into role (name) values ('a')")
            assert setup_db.in_transaction()
        assert not setup_db.in_transaction()
        assert _roles(setup_db) == ["a"]

    def test_rollback_on_error(self, setup_db):
        with pytest.raises(RuntimeError):
            with setup_db.transaction() as transaction:
                transaction.execute("insert into role (name) values ('a')")
                raise RuntimeError("boom")
        assert _roles(setup_db) == []

    def test_nested_rollback_keeps_outer_work(self, setup_db):
        with setup_db.transaction() as outer:
            outer.execute("insert into role (name) values ('outer')")
            with pytest.raises(RuntimeError):
                with setup_db.transaction() as inner:
                    assert inner.level == 2
                    inner.execute("insert into role (name) values ('inner')")
                    raise RuntimeError("boom")
            assert outer.level == 1
        assert _roles(setup_db) == ["outer"]

    def test_outer_transaction_is_locked_while_nested_one_is_open(self, setup_db):
        with setup_db.transaction() as outer:
            with setup_db.transaction():
                with pytest.raises(TransactionError):
                    outer.execute("insert into role (name) values ('x')")

    def test_finished_transaction_is_inactive(self, setup_db):
        with setup_db.transaction() as transaction:
            pass
        with pytest.raises(TransactionError):
            transaction.execute("select 1")


class TestExplicitTransactions:

    def test_begin_commit(self, setup_db):
        assert setup_db.begin_transaction() == 1
        setup_db.execute("insert into role (name) values ('a')")
        setup_db.commit()
        assert _roles(setup_db) == ["a"]

    def test_begin_roll_back(self, setup_db):
        setup_db.begin_transaction()
        setup_db.execute("insert into role (name) values ('a')")
        setup_db.roll_back()
        assert _roles(setup_db) == []

    def test_commit_without_transaction(self, setup_db):
        with pytest.raises(TransactionError):
            setup_db.commit()
        with pytest.raises(TransactionError):
            setup_db.roll_back()
