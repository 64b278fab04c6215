from __future__ import annotations

from src.shiftbot.shiftbot.database.bootstrap import DEFAULT_SCHEMA_PATH, split_statements
from src.shiftbot.shiftbot.database.connection import DBConfig, DatabaseConnection


def test_split_ignores_comments_and_quoted_semicolons():
    sql = """
    -- leading comment; not a statement
    CREATE DATABASE shiftbot;
    USE shiftbot;
    CREATE TABLE a (x VARCHAR(8) DEFAULT 'a;b'); -- trailing
    INSERT INTO a VALUES ('it''s -- fine');
    SELECT 1
    """

    statements = list(split_statements(sql))

    assert statements == [
        "CREATE TABLE a (x VARCHAR(8) DEFAULT 'a;b')",
        "INSERT INTO a VALUES ('it''s -- fine')",
        "SELECT 1",
    ]


def test_bundled_schema_creates_the_three_tables():
    statements = list(split_statements(DEFAULT_SCHEMA_PATH.read_text(encoding="utf-8")))
    created = [s.split("(")[0].split()[-1].strip("`") for s in statements if s.upper().startswith("CREATE TABLE")]
    assert sorted(created) == ["loa", "logs", "shifts"]


def test_db_config_coerce():
    config = DBConfig.coerce({"host": "db", "user": "bot", "password": "pw", "database": "x"})
    assert (config.host, config.port, config.pool_size) == ("db", 3306, 5)
    assert DBConfig.coerce(config) is config


class IdlePool:
    def __init__(self):
        self.drained = 0

    def _remove_connections(self):
        self.drained += 1
        return 3


def test_close_drains_idle_pool_connections():
    conn = DatabaseConnection(DBConfig.coerce({"database": "x"}))
    pool = IdlePool()
    conn._pool = pool

    conn.close()
    conn.close()

    assert pool.drained == 1
    assert not conn.is_open
