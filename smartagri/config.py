"""
Environment configuration for the SmartAgri dashboard.

Keys are read from the process environment, optionally seeded from a local
.env file. A missing key never stops the page: it switches the matching
feature off and shows up in ``Settings.diagnostics()``.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional

from dotenv import load_dotenv

from .errors import ConfigMissing

logger = logging.getLogger(__name__)

DEFAULT_SENSOR_PATH = "SmartAgri"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
DEFAULT_GEMINI_TIMEOUT = 30.0
DEFAULT_REFRESH_INTERVAL_MS = 5000

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _float_env(env: Dict[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", key, raw, default)
        return default


@dataclass
class Settings:
    firebase_database_url: str = ""
    firebase_key_b64: str = ""
    firebase_credentials: str = ""
    sensor_path: str = DEFAULT_SENSOR_PATH
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_timeout: float = DEFAULT_GEMINI_TIMEOUT
    refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            firebase_database_url=env.get("FIREBASE_DATABASE_URL", "").strip(),
            firebase_key_b64=env.get("FIREBASE_KEY_B64", "").strip(),
            firebase_credentials=env.get("FIREBASE_CREDENTIALS", "").strip(),
            sensor_path=env.get("FIREBASE_SENSOR_PATH", "").strip() or DEFAULT_SENSOR_PATH,
            gemini_api_key=env.get("GEMINI_API_KEY", "").strip(),
            gemini_model=env.get("GEMINI_MODEL", "").strip() or DEFAULT_GEMINI_MODEL,
            gemini_timeout=_float_env(env, "GEMINI_TIMEOUT", DEFAULT_GEMINI_TIMEOUT),
            refresh_interval_ms=int(_float_env(env, "REFRESH_INTERVAL_MS", DEFAULT_REFRESH_INTERVAL_MS)),
            log_level=(env.get("LOG_LEVEL", "").strip() or "INFO").upper(),
        )

    def missing_datastore_keys(self) -> List[str]:
        missing = []
        if not self.firebase_database_url:
            missing.append("FIREBASE_DATABASE_URL")
        if not (self.firebase_key_b64 or self.firebase_credentials):
            missing.append("FIREBASE_KEY_B64 or FIREBASE_CREDENTIALS")
        return missing

    def missing_advisory_keys(self) -> List[str]:
        return [] if self.gemini_api_key else ["GEMINI_API_KEY"]

    @property
    def datastore_enabled(self) -> bool:
        return not self.missing_datastore_keys()

    @property
    def advisory_enabled(self) -> bool:
        return not self.missing_advisory_keys()

    def require_datastore(self) -> None:
        missing = self.missing_datastore_keys()
        if missing:
            raise ConfigMissing(missing)

    def require_advisory(self) -> None:
        missing = self.missing_advisory_keys()
        if missing:
            raise ConfigMissing(missing)

    def diagnostics(self) -> List[str]:
        """Human-readable notes for every feature switched off by missing keys."""
        notes = []
        missing = self.missing_datastore_keys()
        if missing:
            notes.append("Live sensor data disabled, set " + ", ".join(missing) + " in .env")
        missing = self.missing_advisory_keys()
        if missing:
            notes.append("AI suggestions disabled, set " + ", ".join(missing) + " in .env")
        return notes


def load_settings(dotenv_path: Optional[str] = None, configure: bool = True) -> Settings:
    """
    Load .env (without overriding real environment variables) and build Settings.

    With ``configure`` the root logger is set up from LOG_LEVEL before any
    missing-key warning is emitted.
    """
    load_dotenv(dotenv_path)
    settings = Settings.from_env()
    if configure:
        configure_logging(settings.log_level)
    for note in settings.diagnostics():
        logger.warning(note)
    return settings


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
