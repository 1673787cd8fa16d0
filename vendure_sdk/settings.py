"""
Settings — Default configuration values and environment loading.

This module provides the DEFAULT_SETTINGS dict used as fallback values when
neither an explicit argument nor an environment variable is set. Values are
usually loaded from a .env file via python-dotenv.

Configuration precedence (highest to lowest):
  1. Explicit arguments (Vendure.initialize(...), load_settings(overrides=...))
  2. Environment variables (from .env file or the process environment)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  VENDURE_ENDPOINT                   Shop API GraphQL URL (required)
  VENDURE_TOKEN                      Pre-obtained session token
  VENDURE_USERNAME / VENDURE_PASSWORD Native login credentials
  VENDURE_CHANNEL_TOKEN              Sent as the "vendure-token" header
  VENDURE_LANGUAGE_CODE              Sent as Accept-Language and ?languageCode=
  VENDURE_TIMEOUT                    Per-request timeout in seconds
  VENDURE_SESSION_DURATION           Seconds a fetched token stays valid
  VENDURE_GUEST_SESSION              Send no Authorization header at all
  VENDURE_DEBUG                      Shortcut for VENDURE_LOG_LEVEL=DEBUG
  VENDURE_LOG_LEVEL                  Client log level (WARNING by default)
  VENDURE_EXTENDED_FIELD_CACHE_SIZE  Max entities held by the extended field store
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from .logging_config import GENERAL, get_logger

logger = get_logger(GENERAL)

DEFAULT_SETTINGS = {
    "ENDPOINT": "",
    "TOKEN": "",
    "USERNAME": "",
    "PASSWORD": "",
    "CHANNEL_TOKEN": "",
    "LANGUAGE_CODE": "",
    "TIMEOUT": 10.0,
    "SESSION_DURATION": 60 * 60 * 24 * 365,
    "GUEST_SESSION": False,
    "DEBUG": False,
    "LOG_LEVEL": "WARNING",
    "EXTENDED_FIELD_CACHE_SIZE": 10000,
}

ENV_PREFIX = "VENDURE_"


def _as_bool(value: Any) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def load_settings(env_file: str = "./.env", overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Build the effective settings dict.

    Args:
        env_file: Path to a .env file. Loaded via python-dotenv if it exists;
                  otherwise only the process environment is used.
        overrides: Explicit values (DEFAULT_SETTINGS keys) that win over
                   the environment.

    Returns:
        A dict with every DEFAULT_SETTINGS key, values typed like the defaults.
    """
    env_path = Path(env_file)
    if env_path.exists():
        load_dotenv(env_path)
        logger.info("Loaded configuration from: %s", env_file)
    else:
        logger.debug("%s not found, using defaults/environment", env_file)

    settings: Dict[str, Any] = {}
    for key, default in DEFAULT_SETTINGS.items():
        raw = os.getenv(ENV_PREFIX + key)
        if overrides and overrides.get(key) is not None:
            raw = overrides[key]
        if raw is None or raw == "":
            settings[key] = default
        elif isinstance(default, bool):
            settings[key] = raw if isinstance(raw, bool) else _as_bool(raw)
        elif isinstance(default, float):
            settings[key] = float(raw)
        elif isinstance(default, int):
            settings[key] = int(raw)
        else:
            settings[key] = str(raw)

    if settings["DEBUG"]:
        settings["LOG_LEVEL"] = "DEBUG"
    return settings


def validate_settings(settings: Dict[str, Any]) -> List[str]:
    """Return configuration errors; an empty list means the settings are usable."""
    errors = []

    endpoint = settings.get("ENDPOINT", "")
    if not endpoint:
        errors.append("VENDURE_ENDPOINT is required")
    else:
        parsed = urlparse(endpoint)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(f"VENDURE_ENDPOINT is not a valid http(s) URL: {endpoint}")

    has_credentials = settings.get("USERNAME") and settings.get("PASSWORD")
    if not (settings.get("GUEST_SESSION") or settings.get("TOKEN") or has_credentials):
        errors.append("VENDURE_TOKEN or VENDURE_USERNAME/VENDURE_PASSWORD is required unless VENDURE_GUEST_SESSION is set")
    elif settings.get("USERNAME") and not settings.get("PASSWORD"):
        errors.append("VENDURE_PASSWORD is required when VENDURE_USERNAME is set")

    for key in ("TIMEOUT", "SESSION_DURATION", "EXTENDED_FIELD_CACHE_SIZE"):
        if settings.get(key, 1) <= 0:
            errors.append(f"VENDURE_{key} must be positive")

    return errors
