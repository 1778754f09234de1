"""
Per-session language state.

A LanguageContext owns the current language, its loaded dictionary and the
callbacks that re-render when the language changes. Contexts are created
once per session by LanguageContextRegistry and closed on logout or expiry.

Overlapping loads resolve last-request-wins: every load gets a token and a
completion only lands if its token is still the newest one.
"""
from __future__ import annotations

import itertools
import logging
import threading
import time
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional

from vitalis.errors import DictionaryLoadError
from vitalis.i18n_utils import DEFAULT_LANG, language_direction, normalize_lang, resolve_key

log = logging.getLogger(__name__)

Listener = Callable[["LanguageContext", str, str], None]


class LanguageContext:
    def __init__(self, source, language: Optional[str] = None):
        self.source = source
        self._language = normalize_lang(language)
        self._dictionary: Optional[Dict[str, Any]] = None
        self._listeners: List[Listener] = []
        self._tokens = itertools.count(1)
        self._latest_token = 0
        self._lock = threading.Lock()
        self.last_used = time.monotonic()

    @property
    def language(self) -> str:
        return self._language

    @property
    def direction(self) -> str:
        return language_direction(self._language)

    @property
    def is_loaded(self) -> bool:
        return self._dictionary is not None

    @property
    def dictionary(self) -> Optional[Dict[str, Any]]:
        return self._dictionary

    def touch(self) -> None:
        self.last_used = time.monotonic()

    # Loading ---------------------------------------------------------------

    def begin_load(self, lang: str) -> int:
        with self._lock:
            token = next(self._tokens)
            self._latest_token = token
        log.debug("Load #%s requested for %s", token, lang)
        return token

    def complete_load(self, token: int, lang: str, dictionary: Dict[str, Any]) -> bool:
        """
        Applies a finished load. Returns False if a newer load was requested
        in the meantime (the result is discarded).
        """
        with self._lock:
            if token != self._latest_token:
                log.info("Discarding stale load #%s for %s", token, lang)
                return False
            old_language = self._language
            self._language = normalize_lang(lang)
            self._dictionary = dictionary
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(self, old_language, self._language)
            except Exception:
                log.exception("Language change listener failed")
        return True

    def set_language(self, lang: Optional[str]) -> bool:
        """
        Loads the dictionary for lang and switches to it.
        On failure the previous language and dictionary stay in use.
        """
        code = normalize_lang(lang)
        token = self.begin_load(code)
        try:
            dictionary = self.source.load(code)
        except DictionaryLoadError as exc:
            log.error("Failed to load translations for %s: %s", code, exc)
            return False
        return self.complete_load(token, code, dictionary)

    def ensure_loaded(self) -> bool:
        if self.is_loaded:
            return True
        return self.set_language(self._language)

    # Lookup ----------------------------------------------------------------

    def t(self, key: str, default: Optional[str] = None) -> str:
        if self._dictionary is None:
            return default or key
        value = resolve_key(self._dictionary, key, default)
        if value == (default or key):
            log.debug("Translation key not found: %s in language: %s", key, self._language)
        return value

    # Subscribers -----------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        with self._lock:
            self._listeners.clear()
            self._dictionary = None


class LanguageContextRegistry:
    """
    One LanguageContext per session id, created lazily.
    """

    def __init__(self, source_factory: Callable[[], Any]):
        self.source_factory = source_factory
        self._contexts: Dict[str, LanguageContext] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._contexts)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._contexts

    def get(self, session_id: str, language: Optional[str] = None) -> LanguageContext:
        with self._lock:
            context = self._contexts.get(session_id)
            if context is None:
                context = LanguageContext(self.source_factory(), language or DEFAULT_LANG)
                self._contexts[session_id] = context
                log.debug("Created language context for session %s", session_id)
        context.touch()
        return context

    def discard(self, session_id: Optional[str]) -> None:
        if not session_id:
            return
        with self._lock:
            context = self._contexts.pop(session_id, None)
        if context is not None:
            context.close()
            log.debug("Closed language context for session %s", session_id)

    def prune(self, max_idle: timedelta) -> int:
        cutoff = time.monotonic() - max_idle.total_seconds()
        with self._lock:
            stale = [sid for sid, ctx in self._contexts.items() if ctx.last_used < cutoff]
            contexts = [self._contexts.pop(sid) for sid in stale]
        for context in contexts:
            context.close()
        if stale:
            log.info("Pruned %s idle language contexts", len(stale))
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            contexts = list(self._contexts.values())
            self._contexts.clear()
        for context in contexts:
            context.close()
