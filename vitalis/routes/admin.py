from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from vitalis.auth_utils import roles_required
from vitalis.config import coerce_positive_int, load_app_settings, resolve_locales_dir, save_app_settings
from vitalis.dictionary_loader import FileDictionarySource
from vitalis.errors import ValidationError
from vitalis.i18n_utils import SUPPORTED_LANGS
from vitalis.translation_admin import TranslationCatalog
from vitalis.translation_service import get_language_name


def _catalog() -> TranslationCatalog:
    # Edits always target the local locales directory, even when lookups come over HTTP.
    return TranslationCatalog(FileDictionarySource(resolve_locales_dir(current_app)))


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def create_admin_blueprint() -> Blueprint:
    bp = Blueprint("admin", __name__, url_prefix="/admin")

    # Translation files ------------------------------------------------------

    @bp.route("/translations", endpoint="admin_translation_languages")
    @roles_required("admin")
    def admin_translation_languages():
        return jsonify([{"code": code, "name": get_language_name(code)} for code in SUPPORTED_LANGS])

    @bp.route("/translations/<lang>", methods=["GET"], endpoint="admin_translation_list")
    @roles_required("admin")
    def admin_translation_list(lang):
        entries = _catalog().entries(lang, request.args.get("q"))
        return jsonify({"language": lang, "count": len(entries), "entries": entries})

    @bp.route("/translations/<lang>", methods=["PUT"], endpoint="admin_translation_save")
    @roles_required("admin")
    def admin_translation_save(lang):
        entries = _json_body().get("entries")
        if not isinstance(entries, list):
            raise ValidationError("entries must be a list of {key, value} objects")
        count = _catalog().replace_entries(lang, entries)
        current_app.logger.info("Saved %s translations for %s", count, lang)
        return jsonify({"success": True, "language": lang, "count": count})

    @bp.route("/translations/<lang>/keys", methods=["POST"], endpoint="admin_translation_add")
    @roles_required("admin")
    def admin_translation_add(lang):
        payload = _json_body()
        entry = _catalog().add_entry(lang, payload.get("key"), payload.get("value"))
        return jsonify(entry), 201

    @bp.route("/translations/<lang>/keys/<path:key>", methods=["PATCH"], endpoint="admin_translation_edit")
    @roles_required("admin")
    def admin_translation_edit(lang, key):
        payload = _json_body()
        if "value" not in payload:
            raise ValidationError("value is required")
        return jsonify(_catalog().update_entry(lang, key, payload["value"]))

    @bp.route("/translations/<lang>/keys/<path:key>", methods=["DELETE"], endpoint="admin_translation_delete")
    @roles_required("admin")
    def admin_translation_delete(lang, key):
        _catalog().delete_entry(lang, key)
        return jsonify({"success": True, "key": key})

    @bp.route("/translations/<source>/missing/<target>", endpoint="admin_translation_missing")
    @roles_required("admin")
    def admin_translation_missing(source, target):
        keys = _catalog().missing_keys(source, target)
        return jsonify({"source": source, "target": target, "count": len(keys), "keys": keys})

    # Auto translation -------------------------------------------------------

    @bp.route("/translations/auto-translate", methods=["POST"], endpoint="admin_auto_translate")
    @roles_required("admin")
    def admin_auto_translate():
        payload = _json_body()
        settings = load_app_settings(current_app)
        limit = coerce_positive_int(payload.get("limit"), settings["auto_translate_limit"])
        source = payload.get("source") or ""
        target = payload.get("target") or ""
        keys = _catalog().auto_translate(source, target, limit)
        message = (
            f"Auto-translation from {get_language_name(source)} to {get_language_name(target)} "
            f"completed for {len(keys)} items."
            if keys
            else "No missing translations found. All keys already exist in the target language."
        )
        return jsonify({"success": True, "translated": keys, "count": len(keys), "message": message})

    @bp.route("/translations/test", methods=["POST"], endpoint="admin_translation_test")
    @roles_required("admin")
    def admin_translation_test():
        payload = _json_body()
        result = _catalog().test_translation(
            payload.get("text") or "",
            payload.get("source") or "",
            payload.get("target") or "",
        )
        return jsonify({"result": result})

    # Settings ---------------------------------------------------------------

    @bp.route("/settings", methods=["GET"], endpoint="admin_settings")
    @roles_required("admin")
    def admin_settings():
        return jsonify(load_app_settings(current_app, force_reload=True))

    @bp.route("/settings", methods=["POST"], endpoint="admin_settings_save")
    @roles_required("admin")
    def admin_settings_save():
        payload = _json_body()
        if "default_language" in payload and payload["default_language"] not in SUPPORTED_LANGS:
            raise ValidationError("Unsupported default language", {"supported": list(SUPPORTED_LANGS)})
        if "session_timeout_minutes" in payload and coerce_positive_int(payload["session_timeout_minutes"], None) is None:
            raise ValidationError("session_timeout_minutes must be a positive integer")

        updated_settings = load_app_settings(current_app, force_reload=True).copy()
        updated_settings.update(payload)
        try:
            settings = save_app_settings(current_app, updated_settings)
        except OSError:
            current_app.logger.exception("Failed to save admin settings")
            raise
        return jsonify({"success": True, "settings": settings})

    return bp
