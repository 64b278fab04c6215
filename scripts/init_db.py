"""Create the MySQL database and tables for the current APP_ENV.

Usage: APP_ENV=production python scripts/init_db.py [path/to/schema.sql]
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.shiftbot.shiftbot.database.bootstrap import DEFAULT_SCHEMA_PATH, apply_schema, list_tables
from src.shiftbot.shiftbot.database.connection import DBConfig


def main(argv: list[str]) -> int:
    load_dotenv(REPO_ROOT / ".env", override=False)
    settings = importlib.import_module(get_settings_module())
    config = DBConfig.coerce(dict(settings.DB_CONFIG))
    schema_path = Path(argv[0]) if argv else DEFAULT_SCHEMA_PATH

    executed = apply_schema(config, schema_path=schema_path)
    tables = list_tables(config)
    print(
        f"OK: {executed} statements from {schema_path.name} -> "
        f"{config.user}@{config.host}:{config.port}/{config.database} "
        f"(tables: {', '.join(tables)})"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
