"""Centralized configuration for the GDG WhatsApp assistant.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/gdg-bot/<VARIABLE_NAME>``.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_ON_AWS = bool(os.getenv("AWS_EXECUTION_ENV"))


# ── Secret resolution ────────────────────────────────────────────────

def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store.

    Returns ``None`` if the parameter does not exist or boto3 cannot reach
    SSM, so that the caller can report a single clear error.
    """
    try:
        import boto3  # noqa: PLC0415 - lazy import, only needed on AWS

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"/gdg-bot/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed", name)
        return None


def _optional_env(name: str, default: str = "") -> str:
    """Return a config value from env-var or SSM, or *default*."""
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value
    if _ON_AWS:
        ssm_value = _get_ssm_parameter(name)
        if ssm_value:
            return ssm_value
    return default


def _require_env(name: str) -> str:
    """Return a config value from env-var or SSM, or raise a clear error."""
    value = _optional_env(name)
    if value:
        return value
    raise OSError(
        f"Missing required configuration: {name}. "
        f"Set it in .env (local) or SSM Parameter Store /gdg-bot/{name} (AWS)."
    )


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


# ── LLM ─────────────────────────────────────────────────────────────
# "google" (Gemini) or "anthropic"
LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "google").strip().lower()

GEMINI_API_KEY: str = (
    _require_env("GEMINI_API_KEY") if LLM_PROVIDER == "google" else _optional_env("GEMINI_API_KEY")
)
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

ANTHROPIC_API_KEY: str = (
    _require_env("ANTHROPIC_API_KEY")
    if LLM_PROVIDER == "anthropic"
    else _optional_env("ANTHROPIC_API_KEY")
)
ANTHROPIC_MODEL: str = os.getenv("ANTHROPIC_MODEL", "claude-haiku-4-5")

LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_MAX_OUTPUT_TOKENS: int = int(os.getenv("LLM_MAX_OUTPUT_TOKENS", "2048"))
LLM_TIMEOUT_SECONDS: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))

# Tool-call round trips allowed per user message before a text-only answer is forced
MAX_TOOL_ROUNDS: int = max(1, int(os.getenv("MAX_TOOL_ROUNDS", "1")))

# ── Twilio / WhatsApp ───────────────────────────────────────────────
TWILIO_ACCOUNT_SID: str = _require_env("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN: str = _require_env("TWILIO_AUTH_TOKEN")
TWILIO_WHATSAPP_NUMBER: str = _require_env("TWILIO_WHATSAPP_NUMBER")
TWILIO_VALIDATE_SIGNATURE: bool = _env_flag("TWILIO_VALIDATE_SIGNATURE")
TWILIO_TIMEOUT_SECONDS: float = float(os.getenv("TWILIO_TIMEOUT_SECONDS", "15"))

# ── Google Calendar / Sheets ────────────────────────────────────────
GOOGLE_CALENDAR_ID: str = _optional_env("GOOGLE_CALENDAR_ID", "primary")
GOOGLE_SHEET_ID: str = _optional_env("GOOGLE_SHEET_ID")
GOOGLE_SERVICE_ACCOUNT_FILE: str = os.getenv(
    "GOOGLE_SERVICE_ACCOUNT_FILE", "service-account.json",
)
GOOGLE_CLIENT_ID: str = _optional_env("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET: str = _optional_env("GOOGLE_CLIENT_SECRET")
GOOGLE_REFRESH_TOKEN: str = _optional_env("GOOGLE_REFRESH_TOKEN")
GOOGLE_API_KEY: str = _optional_env("GOOGLE_API_KEY")
GOOGLE_REQUEST_TIMEOUT_SECONDS: float = float(
    os.getenv("GOOGLE_REQUEST_TIMEOUT_SECONDS", "15"),
)
GOOGLE_CALENDAR_BASE_URL: str = "https://www.googleapis.com/calendar/v3"
GOOGLE_SHEETS_BASE_URL: str = "https://sheets.googleapis.com/v4"

# ── Server ──────────────────────────────────────────────────────────
SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "3000"))
CORS_ORIGINS: list[str] = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000",
).split(",")
