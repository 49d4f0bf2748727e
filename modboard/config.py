import logging
import os
from typing import Optional


def _env(name: str, default: str) -> str:
    return os.getenv(name, default)


def _int_env(name: str, default: int) -> int:
    try:
        return int(_env(name, str(default)))
    except Exception:
        return default


def _list_env(name: str) -> list[str]:
    items = _env(name, "").split(",")
    return [i.strip() for i in items if i.strip()]


def db_url() -> str:
    return _env("MODBOARD_DB_URL", "sqlite:///./modboard.db")


def secret_key() -> str:
    return _env("MODBOARD_SECRET_KEY", "dev-secret-change-me")


def admin_usernames() -> list[str]:
    return _list_env("MODBOARD_ADMIN_USERS")


def moderator_usernames() -> list[str]:
    return _list_env("MODBOARD_MODERATOR_USERS")


def score_sort_limit(default: int = 1000) -> int:
    # fetch cap per content kind when ranking by score
    return max(1, _int_env("MODBOARD_SCORE_SORT_LIMIT", default))


def dashboard_page_size(default: int = 20) -> int:
    return max(1, _int_env("MODBOARD_PAGE_SIZE", default))


def configure_logging(level: Optional[str] = None) -> None:
    name = (level or _env("MODBOARD_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
