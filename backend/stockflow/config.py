# backend/stockflow/config.py
from __future__ import annotations
import os


STOCK_CHECK_MODES = ("consolidated", "single_row")


def parse_api_tokens(raw: str | None) -> dict[str, str]:
    """
    Parse "name:token,name2:token2" into {token: name}.

    Blank entries are ignored; an entry without a name uses the token itself
    as the caller name.
    """
    tokens: dict[str, str] = {}
    if not raw:
        return tokens
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        name, sep, token = entry.partition(":")
        if not sep:
            name, token = entry, entry
        tokens[token.strip()] = name.strip()
    return tokens


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockflow.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockflow.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "consolidated" checks stock against the sum of all rows for a product,
    # "single_row" against the first row only
    STOCK_CHECK_MODE = os.environ.get("STOCK_CHECK_MODE", "consolidated")

    # How long a processed sale-completed event is remembered
    SALE_EVENT_RETENTION_SECONDS = int(os.environ.get("SALE_EVENT_RETENTION_SECONDS", "3600"))

    # Empty -> API open, caller is anonymous
    API_TOKENS = parse_api_tokens(os.environ.get("API_TOKENS"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
