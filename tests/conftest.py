import pytest

from ormweave.connection import connect, disconnect

SCHEMA = (
    "create table country (id integer primary key autoincrement, name text not null)",
    "create table user (id integer primary key autoincrement, name text not null, email text,"
    " country_id integer references country(id), is_admin integer not null default 0, settings text)",
    "create table profile (id integer primary key autoincrement, user_id integer references user(id), bio text)",
    "create table post (id integer primary key autoincrement, user_id integer references user(id),"
    " title text not null, deleted_at text)",
    "create table comment (id integer primary key autoincrement, post_id integer references post(id), body text)",
    "create table role (id integer primary key autoincrement, name text not null)",
    "create table role_user (role_id integer references role(id), user_id integer references user(id))",
    "create table subscription (user_id integer not null, channel text not null, level integer,"
    " primary key (user_id, channel))",
    "create table animal (id integer primary key autoincrement, kind text, name text, user_id integer,"
    " lives integer)",
    "create table toy (id integer primary key autoincrement, animal_id integer, name text)",
)


@pytest.fixture(scope="function")
def setup_db(tmp_path):
    """Setup a temporary file SQLite database with the test schema for each test."""
    connection = connect(f"sqlite:///{tmp_path / 'test.sqlite3'}")
    for statement in SCHEMA:
        connection.execute(statement)
    yield connection
    disconnect()
