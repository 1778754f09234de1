from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from vitalis.dictionary_loader import FileDictionarySource
from vitalis.errors import ConflictError, DictionaryLoadError, NotFoundError, ValidationError
from vitalis.i18n_utils import (
    KEY_SEPARATOR,
    SUPPORTED_LANGS,
    flatten_dict,
    is_valid_key,
    to_display_text,
    unflatten_dict,
)
from vitalis.translation_service import get_language_name, translate_text

log = logging.getLogger(__name__)

DEFAULT_AUTO_TRANSLATE_LIMIT = 10

Translator = Callable[[str, str, str], str]


def _require_lang(lang: str) -> str:
    code = (lang or "").strip().lower()
    if code not in SUPPORTED_LANGS:
        raise NotFoundError(f"Language '{lang}'")
    return code


def _entry_text(value: Any) -> str:
    return "" if value is None else to_display_text(value)


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _require_key(key: Any) -> str:
    key = str(key or "").strip()
    if not is_valid_key(key):
        raise ValidationError(f"Invalid key '{key}'", {"key": key})
    return key


def _overlapping_key(flat: Mapping[str, Any], key: str) -> Optional[str]:
    """
    An existing key that `key` would overwrite once unflattened: a leaf on
    its parent path, or any key nested below it. Empty groups are free.
    """
    segments = key.split(KEY_SEPARATOR)
    for end in range(1, len(segments)):
        parent = KEY_SEPARATOR.join(segments[:end])
        if parent in flat and flat[parent] != {}:
            return parent
    prefix = key + KEY_SEPARATOR
    for existing in flat:
        if existing.startswith(prefix):
            return existing
    return None


class TranslationCatalog:
    """
    Editing service for the per-language dictionaries.

    Every mutation loads the whole dictionary, edits its flattened form and
    writes it back unflattened.
    """

    def __init__(self, source: FileDictionarySource, translator: Translator = translate_text):
        self.source = source
        self.translator = translator

    def _load_flat(self, lang: str) -> Dict[str, Any]:
        code = _require_lang(lang)
        try:
            return flatten_dict(self.source.load(code))
        except DictionaryLoadError:
            if not self.source.path_for(code).exists():
                return {}
            raise

    def _save_flat(self, lang: str, flat: Mapping[str, Any]) -> None:
        self.source.save(_require_lang(lang), unflatten_dict(flat))

    def entries(self, lang: str, search: Optional[str] = None) -> List[Dict[str, Any]]:
        flat = self._load_flat(lang)
        term = (search or "").strip().lower()
        result = []
        for key, value in flat.items():
            if term and term not in key.lower() and term not in _entry_text(value).lower():
                continue
            result.append({"key": key, "value": value})
        return result

    def add_entry(self, lang: str, key: str, value: Any) -> Dict[str, Any]:
        if not str(key or "").strip() or _is_blank(value):
            raise ValidationError("Key and value are required")
        key = _require_key(key)
        flat = self._load_flat(lang)
        if key in flat:
            raise ConflictError(f"Key '{key}' already exists")
        clash = _overlapping_key(flat, key)
        if clash is not None:
            raise ConflictError(f"Key '{key}' collides with existing key '{clash}'")
        flat[key] = value
        self._save_flat(lang, flat)
        return {"key": key, "value": value}

    def update_entry(self, lang: str, key: str, value: Any) -> Dict[str, Any]:
        flat = self._load_flat(lang)
        if key not in flat:
            raise NotFoundError(f"Key '{key}'")
        flat[key] = value
        self._save_flat(lang, flat)
        return {"key": key, "value": value}

    def delete_entry(self, lang: str, key: str) -> None:
        flat = self._load_flat(lang)
        if key not in flat:
            raise NotFoundError(f"Key '{key}'")
        del flat[key]
        self._save_flat(lang, flat)

    def replace_entries(self, lang: str, entries: Iterable[Mapping[str, Any]]) -> int:
        flat: Dict[str, Any] = {}
        for entry in entries:
            if not isinstance(entry, Mapping):
                raise ValidationError("Each entry must be an object with key and value")
            key = _require_key(entry.get("key"))
            clash = _overlapping_key(flat, key)
            if clash is not None:
                raise ValidationError(f"Key '{key}' collides with key '{clash}'", {"key": key})
            flat[key] = entry.get("value")
        self._save_flat(lang, flat)
        return len(flat)

    def missing_keys(self, source_lang: str, target_lang: str) -> List[str]:
        source_flat = self._load_flat(source_lang)
        target_flat = self._load_flat(target_lang)
        return [key for key in source_flat if _is_blank(target_flat.get(key))]

    def auto_translate(self, source_lang: str, target_lang: str, limit: int = DEFAULT_AUTO_TRANSLATE_LIMIT) -> List[str]:
        """
        Fills up to `limit` keys missing in target_lang with machine
        translations of the source values. Returns the keys written.
        """
        source_code = _require_lang(source_lang)
        target_code = _require_lang(target_lang)
        if source_code == target_code:
            raise ValidationError("Source and target languages cannot be the same.")

        source_flat = self._load_flat(source_code)
        target_flat = self._load_flat(target_code)
        pending = [key for key in source_flat if _is_blank(target_flat.get(key))][:limit]
        if not pending:
            return []

        translated = []
        for key in pending:
            try:
                target_flat[key] = self.translator(_entry_text(source_flat[key]), source_code, target_code)
            except Exception:
                log.exception("Error translating key %s", key)
                continue
            translated.append(key)

        if translated:
            self._save_flat(target_code, target_flat)
        log.info(
            "Auto-translation from %s to %s completed for %s items",
            get_language_name(source_code),
            get_language_name(target_code),
            len(translated),
        )
        return translated

    def test_translation(self, text: str, source_lang: str, target_lang: str) -> str:
        if not (text or "").strip():
            raise ValidationError("Text to translate is required")
        return self.translator(text, _require_lang(source_lang), _require_lang(target_lang))
