import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shiftbot"),
}

# "mysql" or "memory" (process-local, lost on restart)
STORE_BACKEND = os.getenv("STORE_BACKEND", "mysql")

# Chat platform identity (token is needed for role/DM/broadcast effects)
DISCORD_BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN", "")
DISCORD_APPLICATION_ID = os.getenv("DISCORD_APPLICATION_ID", "")
DISCORD_PUBLIC_KEY = os.getenv("DISCORD_PUBLIC_KEY", "")

ADMIN_ROLE_ID = os.getenv("ADMIN_ROLE_ID", "")
SHIFT_ROLE_ID = os.getenv("SHIFT_ROLE_ID", "")
LOG_CHANNEL_ID = os.getenv("LOG_CHANNEL_ID", "")
GUILD_ID = os.getenv("GUILD_ID", "")

EFFECT_TIMEOUT_SECONDS = float(os.getenv("EFFECT_TIMEOUT_SECONDS", "5"))

DEBUG = True
LOG_JSON = False

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
