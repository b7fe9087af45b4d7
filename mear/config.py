"""
MEAR Registry — Configuration
=============================
Centralised settings for the registry backend, draft persistence and the
alert / auto-save timing policy. Loads overrides from the project-level
.env file.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# ── Paths ───────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_DRAFT_CACHE_DIR = str(PROJECT_ROOT / ".mear_drafts")
DEFAULT_REPORT_DIR = str(PROJECT_ROOT / "reports")

# ── Load .env ───────────────────────────────────────────────────────────
load_dotenv(PROJECT_ROOT / ".env")

# ── Timing policy ───────────────────────────────────────────────────────
SAVE_DEBOUNCE_SECONDS = 2.0       # quiescence before an auto-save fires
SAVE_MAX_WAIT_SECONDS = 10.0      # absolute cap while edits keep coming
ALERT_DISPLAY_SECONDS = 3.0       # non-critical alerts auto-dismiss after this
STALE_ALERT_SECONDS = 5 * 60      # clear_stale_alerts window
REQUEST_TIMEOUT_SECONDS = 10.0


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings shared by the store, the services and the API."""
    api_base_url: str = "http://localhost:4000"
    api_token: Optional[str] = None
    draft_cache_dir: str = DEFAULT_DRAFT_CACHE_DIR
    report_output_dir: str = DEFAULT_REPORT_DIR
    save_debounce_seconds: float = SAVE_DEBOUNCE_SECONDS
    save_max_wait_seconds: float = SAVE_MAX_WAIT_SECONDS
    alert_display_seconds: float = ALERT_DISPLAY_SECONDS
    stale_alert_seconds: float = STALE_ALERT_SECONDS
    autosave_enabled: bool = True
    request_timeout: float = REQUEST_TIMEOUT_SECONDS
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build Settings from the environment (MEAR_* variables)."""
    return Settings(
        api_base_url=os.getenv("MEAR_API_BASE_URL", "http://localhost:4000").rstrip("/"),
        api_token=os.getenv("MEAR_API_TOKEN") or None,
        draft_cache_dir=os.getenv("MEAR_DRAFT_CACHE_DIR", DEFAULT_DRAFT_CACHE_DIR),
        report_output_dir=os.getenv("MEAR_REPORT_DIR", DEFAULT_REPORT_DIR),
        save_debounce_seconds=_env_float("MEAR_SAVE_DEBOUNCE_SECONDS", SAVE_DEBOUNCE_SECONDS),
        save_max_wait_seconds=_env_float("MEAR_SAVE_MAX_WAIT_SECONDS", SAVE_MAX_WAIT_SECONDS),
        alert_display_seconds=_env_float("MEAR_ALERT_DISPLAY_SECONDS", ALERT_DISPLAY_SECONDS),
        stale_alert_seconds=_env_float("MEAR_STALE_ALERT_SECONDS", STALE_ALERT_SECONDS),
        autosave_enabled=_env_bool("MEAR_AUTOSAVE", True),
        request_timeout=_env_float("MEAR_REQUEST_TIMEOUT", REQUEST_TIMEOUT_SECONDS),
        log_level=os.getenv("MEAR_LOG_LEVEL", "INFO"),
    )
