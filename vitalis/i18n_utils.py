from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

DEFAULT_LANG = "en"
SUPPORTED_LANGS = ("en", "fr", "ar")
RTL_LANGS = ("ar",)

KEY_SEPARATOR = "."

_MISSING = object()


def normalize_lang(lang: Optional[str]) -> str:
    """
    Maps a language tag onto a supported code.
    "fr-CA" / "ar_EG" -> base code, anything unknown -> DEFAULT_LANG.
    """
    code = str(lang or "").strip().lower().replace("_", "-").split("-")[0]
    if code in SUPPORTED_LANGS:
        return code
    return DEFAULT_LANG


def is_supported_lang(lang: Optional[str]) -> bool:
    return str(lang or "").strip().lower() in SUPPORTED_LANGS


def language_direction(lang: Optional[str]) -> str:
    return "rtl" if normalize_lang(lang) in RTL_LANGS else "ltr"


def to_display_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(to_display_text(item) for item in value)
    return str(value)


def is_valid_key(key: Optional[str]) -> bool:
    """A dotted key with no empty segments ("a.b", not "a..b", ".a" or "a.")."""
    return bool(key) and all(key.split(KEY_SEPARATOR))


def resolve_key(dictionary: Optional[Mapping[str, Any]], key: str, default: Optional[str] = None) -> str:
    """
    Walks a dotted key through a nested dictionary.

    Any miss returns the default if given (and non-empty), else the key itself.
    A miss is: no dictionary, an empty key or empty segment, a missing
    segment, an intermediate that is not a mapping, a null leaf or a leaf
    that is still a mapping.
    """
    fallback = default or key
    if not dictionary or not is_valid_key(key):
        return fallback

    segments = key.split(KEY_SEPARATOR)

    current: Any = dictionary
    for segment in segments[:-1]:
        current = current.get(segment, _MISSING)
        if not isinstance(current, Mapping):
            return fallback

    value = current.get(segments[-1], _MISSING)
    if value is _MISSING or value is None or isinstance(value, Mapping):
        return fallback
    return to_display_text(value)


def _iter_flat(tree: Mapping[str, Any], prefix: str) -> Iterable[Tuple[str, Any]]:
    for key, value in tree.items():
        path = f"{prefix}{KEY_SEPARATOR}{key}" if prefix else str(key)
        if isinstance(value, Mapping) and value:
            yield from _iter_flat(value, path)
        else:
            # arrays and empty mappings are leaves
            yield path, value


def flatten_dict(tree: Mapping[str, Any]) -> Dict[str, Any]:
    """{"a": {"b": 1, "c": {"d": 2}}} -> {"a.b": 1, "a.c.d": 2}"""
    return dict(_iter_flat(tree, ""))


def unflatten_dict(flat: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Inverse of flatten_dict. Intermediate segments that hold a non-mapping
    are replaced by a new mapping; later leaves overwrite earlier nodes.
    """
    result: Dict[str, Any] = {}
    for dotted_key, value in flat.items():
        segments = str(dotted_key).split(KEY_SEPARATOR)
        current = result
        for segment in segments[:-1]:
            node = current.get(segment)
            if not isinstance(node, dict):
                node = {}
                current[segment] = node
            current = node
        leaf = segments[-1]
        if isinstance(value, Mapping):
            value = dict(value)
        current[leaf] = value
    return result
