"""
Application settings and logging setup.

Settings are read from the environment, with a `.env` file in the project
directory loaded first. Nothing here connects to anything; the storage handle
and the API consume a `Settings` instance.

Environment variables:
- SUPABASE_URL: Supabase project URL (required)
- SUPABASE_KEY: Supabase API key (required; use a server-side key only on the backend)
- REPORT_TIMEZONE: IANA timezone used for report dates and date windows (default: UTC)
- LOG_LEVEL: logging level name (default: INFO)
- CORS_ORIGINS: comma separated list of allowed browser origins
- SALE_MAX_ATTEMPTS: compare-and-set attempts per sale before giving up (default: 5)
- LEDGER_PAGE_SIZE: rows fetched per ledger page when building reports (default: 500)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

_DEFAULT_ENV_PATH = Path(__file__).parent / ".env"
_DEFAULT_CORS_ORIGINS = ("http://localhost:3000",)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: str
    supabase_key: str
    report_timezone: str = "UTC"
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = field(default=_DEFAULT_CORS_ORIGINS)
    sale_max_attempts: int = 5
    ledger_page_size: int = 500


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise RuntimeError(f"Environment variable {name} must be >= 1, got {value}")
    return value


def cors_origins_from_env() -> Tuple[str, ...]:
    """Allowed browser origins; needed before the app starts, so no required vars here."""

    load_dotenv(dotenv_path=_DEFAULT_ENV_PATH)
    origins_raw = os.getenv("CORS_ORIGINS")
    if not origins_raw:
        return _DEFAULT_CORS_ORIGINS
    return tuple(o.strip() for o in origins_raw.split(",") if o.strip())


def load_settings(env_path: Optional[Path] = None) -> Settings:
    """
    Build Settings from the environment.

    Raises:
        RuntimeError: if a required variable is missing or malformed
    """

    load_dotenv(dotenv_path=env_path or _DEFAULT_ENV_PATH)

    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_KEY")

    if not supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    return Settings(
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        report_timezone=os.getenv("REPORT_TIMEZONE", "UTC") or "UTC",
        log_level=(os.getenv("LOG_LEVEL", "INFO") or "INFO").upper(),
        cors_origins=cors_origins_from_env(),
        sale_max_attempts=_int_env("SALE_MAX_ATTEMPTS", 5),
        ledger_page_size=_int_env("LEDGER_PAGE_SIZE", 500),
    )


def configure_logging(level: str = "INFO") -> None:
    """Install a root handler once; later calls only adjust the level."""

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)


__all__ = ["Settings", "load_settings", "cors_origins_from_env", "configure_logging"]
