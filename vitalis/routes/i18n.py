from __future__ import annotations

from flask import Blueprint, abort, current_app, jsonify, request, session
from flask_login import current_user

from vitalis.auth_utils import SESSION_LANGUAGE_KEY
from vitalis.config import load_app_settings, resolve_locales_dir
from vitalis.dictionary_loader import NO_CACHE_HEADERS, build_dictionary_source
from vitalis.errors import DictionaryLoadError, ValidationError
from vitalis.i18n_session import get_language_context
from vitalis.i18n_utils import SUPPORTED_LANGS, is_supported_lang
from vitalis.models import db
from vitalis.translation_service import get_language_name


def _language_state(context) -> dict:
    return {
        "language": context.language,
        "direction": context.direction,
        "name": get_language_name(context.language),
        "loaded": context.is_loaded,
        "supported": [{"code": code, "name": get_language_name(code)} for code in SUPPORTED_LANGS],
    }


def create_i18n_blueprint() -> Blueprint:
    bp = Blueprint("i18n", __name__)

    @bp.route("/locales/<lang>.json", endpoint="locale_file")
    def locale_file(lang):
        """Raw dictionary for client-side lookups, never cached."""
        if not is_supported_lang(lang):
            abort(404)

        settings = load_app_settings(current_app)
        source = build_dictionary_source(settings, resolve_locales_dir(current_app, settings))
        try:
            data = source.load(lang)
        except DictionaryLoadError as exc:
            current_app.logger.error("Could not serve dictionary %s: %s", lang, exc)
            abort(502)

        response = jsonify(data)
        response.headers.update(NO_CACHE_HEADERS)
        return response

    @bp.route("/api/language", methods=["GET"], endpoint="language_state")
    def language_state():
        return jsonify(_language_state(get_language_context()))

    @bp.route("/api/language", methods=["POST"], endpoint="language_switch")
    def language_switch():
        payload = request.get_json(silent=True) or {}
        lang = str(payload.get("language") or "").strip().lower()
        if not is_supported_lang(lang):
            raise ValidationError(
                "Unsupported language",
                {"language": lang, "supported": list(SUPPORTED_LANGS)},
            )

        context = get_language_context()
        switched = context.set_language(lang)
        if switched:
            session[SESSION_LANGUAGE_KEY] = context.language
            if current_user.is_authenticated and current_user.language != context.language:
                current_user.language = context.language
                db.session.commit()
        else:
            current_app.logger.warning("Language switch to %s failed, keeping %s", lang, context.language)

        state = _language_state(context)
        state["switched"] = switched
        return jsonify(state)

    @bp.route("/api/translate", endpoint="translate_key")
    def translate_key():
        key = request.args.get("key", "")
        default = request.args.get("default")
        context = get_language_context()
        return jsonify({"key": key, "value": context.t(key, default), "language": context.language})

    return bp
