"""Environment-driven settings (``.env`` is honoured via python-dotenv)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv  # type: ignore[import-untyped]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64; rv:120.0) Gecko/20100101 Firefox/120.0"
)
BROWSER_ENGINES = {"chromium", "firefox", "webkit"}


def _env_path(var_name: str, default: str) -> Path:
    raw_value = os.getenv(var_name, default)
    normalised = raw_value.replace("\\", "/")
    return Path(normalised).expanduser()


def _env_optional_path(var_name: str) -> Optional[Path]:
    raw_value = os.getenv(var_name, "").strip()
    if not raw_value:
        return None
    return Path(raw_value.replace("\\", "/")).expanduser()


def _env_flag(var_name: str, default: str) -> bool:
    return os.getenv(var_name, default).lower() in {"1", "true", "yes"}


def _env_number(var_name: str, default: str) -> float:
    raw_value = os.getenv(var_name, default)
    try:
        return float(raw_value)
    except ValueError as exc:  # noqa: B904
        raise ValueError(f"{var_name} must be a number, got {raw_value!r}") from exc


@dataclass(frozen=True)
class Settings:
    browser: str = "chromium"
    browser_channel: Optional[str] = None
    browser_endpoint: Optional[str] = None
    local_fallback: bool = True
    headless: bool = True
    wait_timeout_ms: float = 30_000
    poll_interval_ms: float = 500
    nav_timeout_ms: float = 45_000
    http_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    selectors_path: Optional[Path] = None
    log_dir: Path = Path("logs")
    errors_json: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(find_dotenv(usecwd=True))

        browser = os.getenv("FWPULL_BROWSER", "chromium").strip().lower()
        if browser not in BROWSER_ENGINES:
            raise ValueError(
                f"FWPULL_BROWSER must be one of {sorted(BROWSER_ENGINES)}, got {browser!r}"
            )

        return cls(
            browser=browser,
            browser_channel=os.getenv("FWPULL_BROWSER_CHANNEL", "").strip() or None,
            browser_endpoint=os.getenv("FWPULL_BROWSER_ENDPOINT", "").strip() or None,
            local_fallback=_env_flag("FWPULL_LOCAL_FALLBACK", "true"),
            headless=_env_flag("FWPULL_HEADLESS", "true"),
            wait_timeout_ms=_env_number("FWPULL_WAIT_TIMEOUT_MS", "30000"),
            poll_interval_ms=_env_number("FWPULL_POLL_INTERVAL_MS", "500"),
            nav_timeout_ms=_env_number("FWPULL_NAV_TIMEOUT_MS", "45000"),
            http_timeout=_env_number("FWPULL_HTTP_TIMEOUT", "30"),
            user_agent=os.getenv("FWPULL_USER_AGENT", DEFAULT_USER_AGENT),
            selectors_path=_env_optional_path("FWPULL_SELECTORS_PATH"),
            log_dir=_env_path("FWPULL_LOG_DIR", "logs"),
            errors_json=_env_optional_path("FWPULL_ERRORS_JSON"),
        )
