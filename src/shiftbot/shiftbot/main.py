from __future__ import annotations

import atexit
import importlib
from concurrent.futures import ThreadPoolExecutor

import structlog
from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .commands.controller import register as register_interactions
from .container import BotSettings, build_container
from .database.bootstrap import apply_schema, list_tables
from .logging_config import setup_logging

logger = structlog.get_logger("shiftbot")


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    setup_logging(debug=app.config["DEBUG"], json=bool(getattr(settings, "LOG_JSON", False)))

    store_backend = str(getattr(settings, "STORE_BACKEND", "mysql"))
    db_config = getattr(settings, "DB_CONFIG", None)
    bot_settings = BotSettings.from_settings(settings)

    if store_backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)
        logger.info("schema_ready", tables=len(list_tables(db_config)))

    executor = None if app.config["TESTING"] else ThreadPoolExecutor(max_workers=4, thread_name_prefix="effects")
    container = build_container(
        db_config=db_config,
        store_backend=store_backend,
        settings=bot_settings,
        executor=executor,
    )
    if container.conn is not None:
        container.conn.open()
    atexit.register(container.close)

    logger.info(
        "app_configured",
        settings=settings_module,
        store=store_backend,
        effects="discord" if bot_settings.bot_token else "log-only",
        broadcast=bool(bot_settings.log_channel_id),
    )

    app.extensions["shiftbot"] = container
    register_interactions(app, container)

    return app
