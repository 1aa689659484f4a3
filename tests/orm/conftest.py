import pytest

BLOG_ROWS = (
    "insert into country (id, name) values (1, 'fr'), (2, 'de')",
    "insert into user (id, name, email, country_id) values"
    " (1, 'ann', 'ann@example.com', 1), (2, 'bob', 'bob@example.com', 1), (3, 'cid', null, 2)",
    "insert into profile (id, user_id, bio) values (1, 1, 'hi')",
    "insert into post (id, user_id, title) values (1, 1, 'a1'), (2, 1, 'a2'), (3, 2, 'b1'), (4, null, 'orphan')",
    "insert into comment (id, post_id, body) values (1, 1, 'ok'), (2, 1, 'spam'), (3, 3, 'ok')",
    "insert into role (id, name) values (1, 'admin'), (2, 'staff')",
    "insert into role_user (role_id, user_id) values (1, 1), (2, 1), (1, 2)",
)


@pytest.fixture
def blog(setup_db):
    """Countries, users, posts, comments and roles, then an empty identity cache."""
    for statement in BLOG_ROWS:
        setup_db.execute(statement)
    return setup_db


@pytest.fixture
def count_queries(setup_db):
    """Return a callable running fn and giving the number of statements it executed."""

    def run(fn):
        setup_db.logger.clear()
        setup_db.logger.enable()
        try:
            fn()
        finally:
            setup_db.logger.disable()
        return setup_db.logger.count()

    return run
