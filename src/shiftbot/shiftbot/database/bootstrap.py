"""Create the database and apply ``database/schema.sql``.

Used by ``scripts/init_db.py`` and by ``create_app`` when ``AUTO_INIT_DB`` is
set. Every statement in the schema is idempotent (``IF NOT EXISTS``).
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator, Union

import mysql.connector
import structlog

from .connection import DBConfig

logger = structlog.get_logger("shiftbot.database.bootstrap")

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parents[4] / "database" / "schema.sql"

# Quoted strings are kept whole so ';' or '--' inside them never split a statement.
_TOKENS = re.compile(
    r"""
    '(?:[^'\\]|\\.)*'
    | "(?:[^"\\]|\\.)*"
    | --[^\n]*
    | ;
    | [^'";-]+
    | -
    """,
    re.VERBOSE | re.DOTALL,
)

_DB_SELECTION = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$")


def split_statements(sql: str) -> Iterator[str]:
    """Yield the statements of a schema file without ``--`` comments."""
    current: list[str] = []
    for match in _TOKENS.finditer(_DB_SELECTION.sub("", sql)):
        token = match.group(0)
        if token.startswith("--"):
            continue
        if token == ";":
            statement = "".join(current).strip()
            current = []
            if statement:
                yield statement
            continue
        current.append(token)

    statement = "".join(current).strip()
    if statement:
        yield statement


def _connect(config: DBConfig, *, with_database: bool = True):
    args = {
        "host": config.host,
        "port": int(config.port),
        "user": config.user,
        "password": config.password,
        "use_pure": True,
    }
    if with_database:
        args["database"] = config.database
    return mysql.connector.connect(**args)


def ensure_database_exists(db_config: Union[dict, DBConfig]) -> None:
    config = DBConfig.coerce(db_config)
    conn = _connect(config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: Union[dict, DBConfig], *, schema_path: Union[str, Path] = DEFAULT_SCHEMA_PATH) -> int:
    """Apply the schema; returns the number of statements executed."""
    config = DBConfig.coerce(db_config)
    ensure_database_exists(config)

    statements = list(split_statements(Path(schema_path).read_text(encoding="utf-8")))
    conn = _connect(config)
    try:
        cur = conn.cursor()
        for statement in statements:
            cur.execute(statement)
        conn.commit()
    finally:
        conn.close()

    logger.info("schema_applied", database=config.database, schema=str(schema_path), statements=len(statements))
    return len(statements)


def list_tables(db_config: Union[dict, DBConfig]) -> list[str]:
    conn = _connect(DBConfig.coerce(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return sorted(str(row[0]) for row in cur.fetchall())
    finally:
        conn.close()
