"""Tests for ormweave.query.Query: clause ordering, parameter alignment, parentheses and cloning."""

import pytest

from ormweave.connection import Connection
from ormweave.errors import MissingClauseError, QueryBuildError, UnbalancedParenthesisError
from ormweave.expressions import count


@pytest.fixture
def connection():
    return Connection("sqlite://")


class TestClauseOrder:

    def test_clauses_render_in_grammar_order(self, connection):
        """where() before select() and from_() still renders select ... from ... where."""
        query = connection.query().where("a", 1).select().from_("t")
        assert query.to_sql() == "select * from `t` where `a` = ?"

    def test_full_select(self, connection):
        query = (
            connection.query()
            .limit(10, 20)
            .order_by("name desc")
            .having("count(*)", ">", 1)
            .group_by("country_id")
            .where("active", 1)
            .from_("user")
            .select(["country_id", (count(), "total")])
        )
        assert query.to_sql() == (
            "select `country_id`, count(*) as `total` from `user` where `active` = ? "
            "group by `country_id` having count(*) > ? order by `name` desc limit 10 offset 20"
        )
        assert query.params == [1, 1]

    def test_with_comes_first_and_union_last(self, connection):
        recent = connection.query().select("id").from_("post").where("id", ">", 10)
        archived = connection.query().select("id").from_("archive").where("year", 2020)
        query = connection.query().union(archived).select("id").from_("recent").with_("recent", recent)
        assert query.to_sql() == (
            "with `recent` as (select `id` from `post` where `id` > ?) "
            "select `id` from `recent` union select `id` from `archive` where `year` = ?"
        )
        assert query.params == [10, 2020]

    def test_unknown_clause_is_rejected(self, connection):
        with pytest.raises(QueryBuildError):
            connection.query().add_piece("frobnicate")


class TestParams:

    def test_params_follow_placeholders(self, connection):
        query = connection.query().select().from_("t").where("a", 1).where("b", 2)
        assert query.to_sql() == "select * from `t` where `a` = ? and `b` = ?"
        assert query.params == [1, 2]

    def test_params_follow_clause_order_not_call_order(self, connection):
        query = connection.query().where("id", 7).update("user", {"name": "x"})
        assert query.to_sql() == "update `user` set `name` = ? where `id` = ?"
        assert query.params == ["x", 7]

    def test_unprepared_query_inlines_values(self, connection):
        query = connection.query(prepared=False).select().from_("user").where("name", "O'Neil").where("age", 3)
        assert query.to_sql() == "select * from `user` where `name` = 'O''Neil' and `age` = 3"
        assert query.params == []

    def test_booleans_and_none(self, connection):
        query = connection.query().select().from_("user").where("is_admin", True).where("email", None)
        assert query.to_sql() == "select * from `user` where `is_admin` = ? and `email` is null"
        assert query.params == [1]


class TestParentheses:

    def test_parenthesis_opens_after_the_keyword(self, connection):
        query = (
            connection.query().select().from_("t")
            .parenthesis_open().where("a", 1).or_where("b", 2).parenthesis_close()
            .where("c", 3)
        )
        assert query.to_sql() == "select * from `t` where (`a` = ? or `b` = ?) and `c` = ?"
        assert query.params == [1, 2, 3]

    def test_parenthesis_callback(self, connection):
        query = (
            connection.query().select().from_("t").where("c", 3)
            .parenthesis(lambda q: q.where("a", 1).or_where("b", 2))
        )
        assert query.to_sql() == "select * from `t` where `c` = ? and (`a` = ? or `b` = ?)"

    def test_unclosed_parenthesis_fails_on_render(self, connection):
        query = connection.query().select().from_("t").parenthesis_open().where("a", 1)
        with pytest.raises(UnbalancedParenthesisError):
            query.to_sql()

    def test_closing_unopened_parenthesis_fails(self, connection):
        with pytest.raises(UnbalancedParenthesisError):
            connection.query().select().from_("t").parenthesis_close()

    def test_conditional(self, connection):
        query = connection.query().select().from_("t")
        query.conditional(False, lambda q: q.where("a", 1)).conditional(True, lambda q: q.where("b", 2))
        assert query.to_sql() == "select * from `t` where `b` = ?"


class TestSelectAndJoins:

    def test_select_deduplicates_plain_names(self, connection):
        assert connection.query().select(["id", "id", "name"]).from_("t").to_sql() == "select `id`, `name` from `t`"

    def test_select_distinct(self, connection):
        assert connection.query().select_distinct("name").from_("t").to_sql() == "select distinct `name` from `t`"

    def test_aliases(self, connection):
        query = connection.query().select({"n": "name", "label": True}).from_("t", alias="x")
        assert query.to_sql() == "select `name` as `n`, `label` from `t` as `x`"

    def test_left_join_on_columns(self, connection):
        query = (
            connection.query().select().from_("user")
            .left_join("post", lambda j: j.on("post.user_id", "user.id").on("post.deleted_at", None))
        )
        assert query.to_sql() == (
            "select * from `user` left join `post` on `post`.`user_id` = `user`.`id` and `post`.`deleted_at` is null"
        )

    def test_joining_the_same_table_twice_is_ignored(self, connection):
        query = connection.query().select().from_("user")
        query.join("post", lambda j: j.on("post.user_id", "user.id"))
        query.join("post", lambda j: j.on("post.user_id", "user.id"))
        assert query.to_sql().count("join `post`") == 1

    def test_where_inside_join_callback_becomes_on(self, connection):
        query = connection.query().select().from_("user").join("post", lambda j: j.where("post.user_id", 3))
        assert query.to_sql() == "select * from `user` join `post` on `post`.`user_id` = ?"
        assert query.params == [3]


class TestClauseManagement:

    def test_remove_and_replace(self, connection):
        query = connection.query().select().from_("t").where("a", 1).limit(5)
        query.remove_clause("where")
        assert query.to_sql() == "select * from `t` limit 5"
        assert query.params == []
        query.replace_clause("limit", lambda clause: "limit 1")
        assert query.to_sql() == "select * from `t` limit 1"

    def test_limit_without_offset_drops_earlier_offset(self, connection):
        query = connection.query().select().from_("t").offset(3).limit(5)
        assert query.to_sql() == "select * from `t` limit 5"
        assert query.limit(5, 2).to_sql() == "select * from `t` limit 5 offset 2"

    def test_replace_missing_clause_fails(self, connection):
        with pytest.raises(MissingClauseError):
            connection.query().select().from_("t").replace_clause("where", lambda clause: "where 1")

    def test_clone_is_independent(self, connection):
        query = connection.query().select().from_("t").where("a", 1)
        clone = query.clone_query_with()
        clone.where("b", 2)
        assert query.to_sql() == "select * from `t` where `a` = ?"
        assert query.params == [1]
        assert clone.params == [1, 2]
