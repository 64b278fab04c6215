import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "shiftbot"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shiftbot"),
    "pool_size": int(os.getenv("DB_POOL_SIZE", "10")),
}

STORE_BACKEND = "mysql"

DISCORD_BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN", "")
DISCORD_APPLICATION_ID = os.getenv("DISCORD_APPLICATION_ID", "")
DISCORD_PUBLIC_KEY = os.getenv("DISCORD_PUBLIC_KEY", "")

ADMIN_ROLE_ID = os.getenv("ADMIN_ROLE_ID", "")
SHIFT_ROLE_ID = os.getenv("SHIFT_ROLE_ID", "")
LOG_CHANNEL_ID = os.getenv("LOG_CHANNEL_ID", "")
GUILD_ID = os.getenv("GUILD_ID", "")

EFFECT_TIMEOUT_SECONDS = float(os.getenv("EFFECT_TIMEOUT_SECONDS", "5"))

DEBUG = False
LOG_JSON = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
