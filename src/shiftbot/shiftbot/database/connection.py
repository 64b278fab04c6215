from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import mysql.connector
import structlog
from mysql.connector import pooling

logger = structlog.get_logger("shiftbot.database")


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    pool_size: int = 5

    @classmethod
    def coerce(cls, value: Union[dict, "DBConfig"]) -> "DBConfig":
        """Accept a settings-module ``DB_CONFIG`` dict or an existing config."""
        if isinstance(value, DBConfig):
            return value
        return cls(
            host=str(value.get("host", "localhost")),
            port=int(value.get("port", 3306)),
            user=str(value.get("user", "root")),
            password=str(value.get("password", "")),
            database=str(value.get("database", "shiftbot")),
            pool_size=int(value.get("pool_size", 5)),
        )


class DatabaseConnection:
    """Connection factory for the shared MySQL store.

    Lifecycle is open-on-start / close-on-shutdown: ``open()`` builds a small
    connection pool, ``connect()`` borrows a connection (closing it returns it
    to the pool). Without ``open()`` a fresh connection is made per operation.
    """

    def __init__(self, config: DBConfig):
        self._config = config
        self._pool: Optional[pooling.MySQLConnectionPool] = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def open(self) -> None:
        if self._pool is not None:
            return
        self._pool = pooling.MySQLConnectionPool(
            pool_name="shiftbot",
            pool_size=int(self._config.pool_size),
            **self._connect_args(),
        )
        logger.info("db_pool_opened", host=self._config.host, database=self._config.database)

    def close(self) -> None:
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        # Only idle connections are closed here.
        removed = pool._remove_connections()
        logger.info("db_pool_closed", database=self._config.database, connections=removed)

    def connect(self):
        if self._pool is not None:
            return self._pool.get_connection()
        return mysql.connector.connect(**self._connect_args())

    def _connect_args(self) -> dict:
        return {
            "host": self._config.host,
            "port": int(self._config.port),
            "user": self._config.user,
            "password": self._config.password,
            "database": self._config.database,
        }
