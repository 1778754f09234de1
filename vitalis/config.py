import json
import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from vitalis.i18n_utils import DEFAULT_LANG, normalize_lang

BASE_DIR = Path(__file__).resolve().parent
INSTANCE_DIR = BASE_DIR / "instance"
SETTINGS_FILE = INSTANCE_DIR / "config.json"
LOCALES_DIR = BASE_DIR / "locales"

DEFAULT_SETTINGS = {
    "session_timeout_minutes": 30,
    "default_language": DEFAULT_LANG,
    "locales_dir": "",
    "locales_base_url": "",
    "request_timeout_seconds": 10,
    "auto_translate_limit": 10,
}

# Cache per settings file: path -> (mtime, settings)
_settings_cache: Dict[str, Tuple[Optional[float], Dict[str, Any]]] = {}

log = logging.getLogger(__name__)


def coerce_positive_int(value: Any, fallback: Optional[int]) -> Optional[int]:
    try:
        value_int = int(value)
        if value_int > 0:
            return value_int
    except (TypeError, ValueError):
        pass
    return fallback


def settings_file_for(app) -> Path:
    return Path(app.config.get("SETTINGS_FILE") or SETTINGS_FILE)


def _apply_session_timeout_setting(app, timeout_minutes: int) -> int:
    timeout_minutes = coerce_positive_int(
        timeout_minutes,
        DEFAULT_SETTINGS["session_timeout_minutes"],
    )
    app.permanent_session_lifetime = timedelta(minutes=timeout_minutes)
    return timeout_minutes


def normalize_settings(raw: Any) -> Dict[str, Any]:
    """
    Merges raw values onto DEFAULT_SETTINGS and coerces every field.
    Unknown keys are dropped.
    """
    settings = DEFAULT_SETTINGS.copy()
    if not isinstance(raw, dict):
        return settings

    settings["session_timeout_minutes"] = coerce_positive_int(
        raw.get("session_timeout_minutes"),
        DEFAULT_SETTINGS["session_timeout_minutes"],
    )
    settings["default_language"] = normalize_lang(raw.get("default_language"))
    settings["locales_dir"] = str(raw.get("locales_dir", "") or "").strip()
    settings["locales_base_url"] = str(raw.get("locales_base_url", "") or "").strip().rstrip("/")
    settings["request_timeout_seconds"] = coerce_positive_int(
        raw.get("request_timeout_seconds"),
        DEFAULT_SETTINGS["request_timeout_seconds"],
    )
    settings["auto_translate_limit"] = coerce_positive_int(
        raw.get("auto_translate_limit"),
        DEFAULT_SETTINGS["auto_translate_limit"],
    )
    return settings


def load_app_settings(app, force_reload: bool = False) -> Dict[str, Any]:
    """
    Loads the JSON settings file with fallback to defaults.
    External edits are detected via mtime and trigger a reload.
    """
    settings_file = settings_file_for(app)
    cache_key = str(settings_file)

    try:
        current_mtime = settings_file.stat().st_mtime
    except FileNotFoundError:
        current_mtime = None

    cached = _settings_cache.get(cache_key)
    if not force_reload and cached is not None and cached[0] == current_mtime:
        return cached[1]

    settings = DEFAULT_SETTINGS.copy()
    try:
        if current_mtime is not None:
            with settings_file.open("r", encoding="utf-8") as f:
                loaded = json.load(f)
            settings = normalize_settings(loaded)
    except Exception as exc:
        log.warning("Could not load settings from %s: %s", settings_file, exc)

    settings["session_timeout_minutes"] = _apply_session_timeout_setting(
        app,
        settings["session_timeout_minutes"],
    )
    _settings_cache[cache_key] = (current_mtime, settings)
    return settings


def save_app_settings(app, new_settings: Dict[str, Any]) -> Dict[str, Any]:
    """
    Writes settings to the JSON file and refreshes cache + session lifetime.
    """
    settings_file = settings_file_for(app)
    settings = normalize_settings(new_settings)
    settings["session_timeout_minutes"] = _apply_session_timeout_setting(
        app,
        settings["session_timeout_minutes"],
    )

    try:
        settings_file.parent.mkdir(parents=True, exist_ok=True)
        with settings_file.open("w", encoding="utf-8") as f:
            json.dump(settings, f, ensure_ascii=False, indent=2)
        _settings_cache[str(settings_file)] = (settings_file.stat().st_mtime, settings)
    except Exception as exc:
        log.error("Could not write settings to %s: %s", settings_file, exc)
        raise

    return settings


def resolve_locales_dir(app, settings: Optional[Dict[str, Any]] = None) -> Path:
    """Settings override > app.config["LOCALES_DIR"] > bundled locales."""
    settings = settings if settings is not None else load_app_settings(app)
    configured = settings.get("locales_dir") or app.config.get("LOCALES_DIR")
    return Path(configured) if configured else LOCALES_DIR


def secret_key_from_env() -> str:
    return os.environ.get("VITALIS_SECRET_KEY", "dev-secret-change-me")


def database_uri_from_env() -> str:
    return os.environ.get("VITALIS_DATABASE_URL") or f"sqlite:///{INSTANCE_DIR / 'vitalis.db'}"
