import os
from dotenv import load_dotenv

load_dotenv()

POSTGRES_USER = os.getenv("POSTGRES_USER")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD")
POSTGRES_DB = os.getenv("POSTGRES_DB_URL")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_DB}",
)
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "en")

# Languages whose tournament names get English ordinal suffixes ("3rd", "21st").
ORDINAL_SUFFIX_LANGUAGES = frozenset(
    code.strip()
    for code in os.getenv("ORDINAL_SUFFIX_LANGUAGES", "en").split(",")
    if code.strip()
)
