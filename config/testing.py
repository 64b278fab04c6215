import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shiftbot_test"),
}

STORE_BACKEND = "memory"

# No public key: interaction signatures are not checked in tests.
DISCORD_BOT_TOKEN = ""
DISCORD_PUBLIC_KEY = ""

ADMIN_ROLE_ID = "900"
SHIFT_ROLE_ID = "901"
LOG_CHANNEL_ID = ""
GUILD_ID = ""

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
