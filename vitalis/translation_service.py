"""
Stand-in for a machine translation backend.

Only a handful of UI phrases are known; everything else comes back as a
bracketed placeholder so untranslated text stays visible in the catalog.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

log = logging.getLogger(__name__)

# (source, target) -> ordered (phrase, translation) pairs; first substring match wins
CANNED_TRANSLATIONS: Dict[Tuple[str, str], List[Tuple[str, str]]] = {
    ("en", "ar"): [
        ("Hello", "مرحبا"),
        ("Save", "حفظ"),
        ("Cancel", "إلغاء"),
        ("Edit", "تعديل"),
        ("Delete", "حذف"),
        ("Search", "بحث"),
    ],
    ("en", "fr"): [
        ("Hello", "Bonjour"),
        ("Save", "Enregistrer"),
        ("Cancel", "Annuler"),
        ("Edit", "Modifier"),
        ("Delete", "Supprimer"),
        ("Search", "Rechercher"),
    ],
    ("ar", "en"): [
        ("مرحبا", "Hello"),
        ("حفظ", "Save"),
        ("إلغاء", "Cancel"),
        ("تعديل", "Edit"),
        ("حذف", "Delete"),
        ("بحث", "Search"),
    ],
    ("fr", "en"): [
        ("Bonjour", "Hello"),
        ("Enregistrer", "Save"),
        ("Annuler", "Cancel"),
        ("Modifier", "Edit"),
        ("Supprimer", "Delete"),
        ("Rechercher", "Search"),
    ],
}

PLACEHOLDER_FORMATS = {
    ("en", "ar"): "[ترجمة: {text}]",
    ("en", "fr"): "[Traduit: {text}]",
    ("ar", "en"): "[Translated from Arabic: {text}]",
    ("fr", "en"): "[Translated from French: {text}]",
}

LANGUAGE_NAMES = {
    "en": "English",
    "fr": "French",
    "ar": "Arabic",
    "es": "Spanish",
    "de": "German",
    "zh": "Chinese",
    "ja": "Japanese",
    "ru": "Russian",
}


def translate_text(text: str, source_language: str, target_language: str) -> str:
    pair = (source_language, target_language)
    for phrase, translation in CANNED_TRANSLATIONS.get(pair, ()):
        if phrase in text:
            return translation

    placeholder = PLACEHOLDER_FORMATS.get(pair)
    if placeholder:
        return placeholder.format(text=text)
    return f"[Translation from {source_language} to {target_language}: {text}]"


def batch_translate(texts: Iterable[str], source_language: str, target_language: str) -> List[str]:
    return [translate_text(text, source_language, target_language) for text in texts]


def get_language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)
