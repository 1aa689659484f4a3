"""Tests for running queries against SQLite: rows, counts, pagination and soft deletes."""

import pytest

from ormweave.errors import ExecutionError, NotFoundError, QueryBuildError
from ormweave.query import Paginated, Statement

from tests.models import Post, User


@pytest.fixture
def users(setup_db):
    for name in ("ann", "bob", "cid", "dee", "eve"):
        setup_db.execute("insert into user (name) values (?)", [name])
    return setup_db


class TestRows:

    def test_array_returns_dicts(self, users):
        rows = users.query().select(["id", "name"]).from_("user").order_by("id").limit(2).array()
        assert rows == [{"id": 1, "name": "ann"}, {"id": 2, "name": "bob"}]

    def test_single_and_fetch_column(self, users):
        query = users.query().select("name").from_("user").where("id", 3)
        assert query.single() == {"name": "cid"}
        assert query.fetch_column() == "cid"
        assert users.query().select("name").from_("user").where("id", 99).single() is None

    def test_single_or_fail(self, users):
        with pytest.raises(NotFoundError):
            users.query().select().from_("user").where("id", 99).single_or_fail()

    def test_cursor_is_lazy(self, users):
        names = [row["name"] for row in users.query().select("name").from_("user").order_by("id").cursor()]
        assert names == ["ann", "bob", "cid", "dee", "eve"]

    def test_run_returns_affected_rows(self, users):
        assert users.query().update("user", {"email": "x@y"}).where("id", "<", 3).run() == 2

    def test_run_returning(self, setup_db):
        first = setup_db.query().insert_into_values("role", {"name": "admin"}).run_returning("id")
        second = setup_db.query().insert_into_values("role", {"name": "staff"}).run_returning("id")
        assert second == first + 1

    def test_driver_errors_are_wrapped(self, setup_db):
        with pytest.raises(ExecutionError) as error:
            setup_db.query().select().from_("missing_table").array()
        assert "missing_table" in error.value.sql


class TestCounting:

    def test_result_count_ignores_limit(self, users):
        query = users.query().select().from_("user").where("id", ">", 1).limit(2)
        assert len(query.array()) == 2
        assert query.result_count() == 4
        assert query.total_count() == 4

    def test_grouped_queries_are_counted_as_sub_queries(self, users):
        users.execute("insert into country (name) values ('fr')")
        users.execute("update user set country_id = 1 where id < 3")
        query = users.query().select("country_id").from_("user").group_by("country_id")
        assert query.result_count() == 2

    def test_paginate(self, users):
        page = users.query().select("name").from_("user").order_by("id").paginate(2, 2)
        assert isinstance(page, Paginated)
        assert [row["name"] for row in page] == ["cid", "dee"]
        assert page.total == 5
        assert page.page == 2
        assert page.pages == 3
        assert page.has_more

    def test_paginate_after_offset(self, users):
        page = users.query().select("name").from_("user").order_by("id").offset(2).paginate(0, 2)
        assert [row["name"] for row in page] == ["ann", "bob"]
        assert page.total == 5

    def test_paginate_with_builders(self, users):
        page = users.query().select("name").from_("user").order_by("id").paginate(
            4, 2, item_builder=lambda row: row["name"].upper(), total_builder=lambda query: 42
        )
        assert page.items == ["EVE"]
        assert page.total == 42


class TestSoftDelete:

    @pytest.fixture
    def posts(self, setup_db):
        setup_db.execute("insert into user (name) values ('ann')")
        setup_db.execute("insert into post (user_id, title) values (1, 'kept')")
        setup_db.execute("insert into post (user_id, title, deleted_at) values (1, 'gone', '2024-01-01 00:00:00')")
        return setup_db

    def test_soft_deleted_rows_are_hidden(self, posts):
        assert [post.title for post in Post.select().array()] == ["kept"]
        assert Post.select().result_count() == 1

    def test_existing_conditions_are_kept(self, posts):
        assert Post.where("title", "gone").array() == []
        statement = Post.where("title", "gone").statement()
        assert statement.sql == (
            "select `post`.* from `post` where `post`.`deleted_at` is null and (`post`.`title` = ?)"
        )

    def test_with_deleted(self, posts):
        titles = [post.title for post in Post.select().with_deleted().order_by("id").array()]
        assert titles == ["kept", "gone"]
        assert Post.select().with_deleted().result_count() == 2


class TestStatement:

    def test_raw_statement(self, users):
        statement = Statement(users, "select name from user where id = ?", [2])
        assert statement.single() == {"name": "bob"}
        assert users.prepare("select count(*) from user").fetch_column() == 5

    def test_model_statement_hydrates(self, users):
        statement = Statement(users, "select * from user where id = ?", [1], model=User)
        user = statement.single()
        assert isinstance(user, User)
        assert user.name == "ann"

    def test_array_list(self, users):
        result = User.select().order_by("id").array_list()
        assert result.column("name") == ["ann", "bob", "cid", "dee", "eve"]

    def test_eager_load_needs_a_model(self, users):
        with pytest.raises(QueryBuildError):
            Statement(users, "select * from user", eager_load=["posts"]).array()

    def test_explain(self, users):
        plan = users.query().select().from_("user").where("id", 1).explain()
        assert plan["original_sql"] == "select * from `user` where `id` = ?"
        assert plan["rows"]
