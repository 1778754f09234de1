from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from vitalis.errors import DictionaryLoadError, UnsupportedLanguageError
from vitalis.i18n_utils import SUPPORTED_LANGS

log = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _check_lang(lang: str) -> str:
    code = (lang or "").strip().lower()
    if code not in SUPPORTED_LANGS:
        raise UnsupportedLanguageError(lang)
    return code


def _ensure_dictionary(lang: str, data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise DictionaryLoadError(lang, "top level is not an object")
    return data


class FileDictionarySource:
    """
    Reads <locales_dir>/<lang>.json on every call. Nothing is cached.
    """

    def __init__(self, locales_dir):
        self.locales_dir = Path(locales_dir)

    def path_for(self, lang: str) -> Path:
        return self.locales_dir / f"{_check_lang(lang)}.json"

    def load(self, lang: str) -> Dict[str, Any]:
        file_path = self.path_for(lang)
        try:
            with file_path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise DictionaryLoadError(lang, str(exc)) from exc
        return _ensure_dictionary(lang, data)

    def save(self, lang: str, data: Dict[str, Any]) -> None:
        file_path = self.path_for(lang)
        _ensure_dictionary(lang, data)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = file_path.with_suffix(".json.tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.write("\n")
        tmp_path.replace(file_path)
        log.info("Saved %s dictionary to %s", lang, file_path)


class HttpDictionarySource:
    """
    GETs <base_url>/<lang>.json with a cache-busting timestamp and no-cache headers.
    """

    def __init__(self, base_url: str, timeout: Optional[float] = 10, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def url_for(self, lang: str) -> str:
        return f"{self.base_url}/{_check_lang(lang)}.json"

    def load(self, lang: str) -> Dict[str, Any]:
        url = self.url_for(lang)
        params = {"t": int(time.time() * 1000)}
        log.debug("Fetching dictionary %s", url)
        try:
            response = self.session.get(url, params=params, headers=NO_CACHE_HEADERS, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise DictionaryLoadError(lang, str(exc)) from exc
        except ValueError as exc:
            raise DictionaryLoadError(lang, f"invalid JSON: {exc}") from exc
        return _ensure_dictionary(lang, data)


def build_dictionary_source(settings: Dict[str, Any], default_dir):
    """HTTP when a base URL is configured, the locales directory otherwise."""
    base_url = (settings.get("locales_base_url") or "").strip()
    if base_url:
        return HttpDictionarySource(base_url, timeout=settings.get("request_timeout_seconds") or None)
    return FileDictionarySource(settings.get("locales_dir") or default_dir)
