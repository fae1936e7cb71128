from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[2]
load_dotenv(BASE_DIR / ".env", override=False)

LOG_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_path(raw_value: str | Path | None, default_relative: str) -> Path:
    if raw_value is None or str(raw_value).strip() == "":
        path = BASE_DIR / default_relative
    else:
        path = Path(raw_value)
        if not path.is_absolute():
            path = BASE_DIR / path
    return path.resolve()


def _int_env(name: str, default: int | None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def resolve_credentials_path(path: str | Path | None = None) -> Path:
    return _resolve_path(
        path or os.getenv("GLASSROOM_CREDENTIALS_FILE"),
        "credentials/client_secrets.json",
    )


def resolve_token_path(path: str | Path | None = None) -> Path:
    return _resolve_path(
        path or os.getenv("GLASSROOM_TOKEN_FILE"),
        "credentials/token.json",
    )


def resolve_cache_dir(path: str | Path | None = None) -> Path:
    return _resolve_path(path or os.getenv("GLASSROOM_CACHE_DIR"), "cache")


def page_size() -> int | None:
    """Page size sent with list calls; None lets the server decide."""
    value = _int_env("GLASSROOM_PAGE_SIZE", None)
    if value is not None and value <= 0:
        return None
    return value


def archived_course_ids() -> set[str]:
    raw = os.getenv("GLASSROOM_ARCHIVED_COURSES") or ""
    return {item.strip() for item in raw.split(",") if item.strip()}


def log_level() -> str:
    raw = (os.getenv("GLASSROOM_LOG_LEVEL") or "INFO").strip().upper()
    return raw or "INFO"
