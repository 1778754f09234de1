"""
Glue between Flask sessions and LanguageContext objects.
"""
from __future__ import annotations

import secrets
from typing import Optional

from flask import current_app, g, request, session
from flask_login import current_user

from vitalis.auth_utils import SESSION_ID_KEY, SESSION_LANGUAGE_KEY
from vitalis.config import load_app_settings
from vitalis.i18n_utils import SUPPORTED_LANGS, is_supported_lang, normalize_lang
from vitalis.language_context import LanguageContext, LanguageContextRegistry

REGISTRY_EXTENSION_KEY = "vitalis_languages"


def get_registry(app=None) -> LanguageContextRegistry:
    app = app or current_app
    return app.extensions[REGISTRY_EXTENSION_KEY]


def session_id(create: bool = True) -> Optional[str]:
    sid = session.get(SESSION_ID_KEY)
    if not sid and create:
        sid = secrets.token_hex(16)
        session[SESSION_ID_KEY] = sid
    return sid


def preferred_language() -> str:
    """
    Session choice > user profile > Accept-Language > configured default.
    """
    saved = session.get(SESSION_LANGUAGE_KEY)
    if is_supported_lang(saved):
        return saved

    if current_user.is_authenticated and is_supported_lang(getattr(current_user, "language", None)):
        return current_user.language

    best = request.accept_languages.best_match(SUPPORTED_LANGS)
    if best:
        return best

    settings = load_app_settings(current_app)
    return normalize_lang(settings.get("default_language"))


def get_language_context() -> LanguageContext:
    """
    The language context of the current session, loaded and ready for lookups.
    Cached on flask.g for the rest of the request.
    """
    context = g.get("language_context")
    if context is not None:
        return context

    registry = get_registry()
    sid = session_id()
    if sid not in registry:
        registry.prune(current_app.permanent_session_lifetime)
    context = registry.get(sid, preferred_language())
    context.ensure_loaded()
    g.language_context = context
    return context


def teardown_language_context() -> None:
    get_registry().discard(session_id(create=False))
    g.pop("language_context", None)
