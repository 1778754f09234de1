"""Tests for the file and HTTP dictionary sources."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from vitalis.dictionary_loader import (
    NO_CACHE_HEADERS,
    FileDictionarySource,
    HttpDictionarySource,
    build_dictionary_source,
)
from vitalis.errors import DictionaryLoadError, UnsupportedLanguageError


class TestFileDictionarySource:
    def test_load(self, locales_dir):
        source = FileDictionarySource(locales_dir)
        assert source.load("fr")["common"]["save"] == "Enregistrer"

    def test_reads_fresh_on_every_call(self, locales_dir):
        source = FileDictionarySource(locales_dir)
        assert source.load("ar")["common"]["save"] == "حفظ"
        (locales_dir / "ar.json").write_text(json.dumps({"common": {"save": "changed"}}), encoding="utf-8")
        assert source.load("ar")["common"]["save"] == "changed"

    def test_missing_file(self, tmp_path):
        with pytest.raises(DictionaryLoadError):
            FileDictionarySource(tmp_path).load("en")

    def test_malformed_file(self, tmp_path):
        (tmp_path / "en.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(DictionaryLoadError):
            FileDictionarySource(tmp_path).load("en")

    def test_top_level_must_be_object(self, tmp_path):
        (tmp_path / "en.json").write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(DictionaryLoadError):
            FileDictionarySource(tmp_path).load("en")

    def test_unsupported_language(self, locales_dir):
        with pytest.raises(UnsupportedLanguageError):
            FileDictionarySource(locales_dir).load("../en")

    def test_save_writes_utf8(self, tmp_path):
        source = FileDictionarySource(tmp_path / "out")
        source.save("ar", {"common": {"save": "حفظ"}})
        raw = (tmp_path / "out" / "ar.json").read_text(encoding="utf-8")
        assert "حفظ" in raw
        assert source.load("ar") == {"common": {"save": "حفظ"}}


def _session_returning(payload=None, exc=None, json_exc=None):
    response = MagicMock()
    if exc is not None:
        response.raise_for_status.side_effect = exc
    if json_exc is not None:
        response.json.side_effect = json_exc
    else:
        response.json.return_value = payload
    session = MagicMock()
    session.get.return_value = response
    return session


class TestHttpDictionarySource:
    def test_load_sends_no_cache_request(self):
        session = _session_returning({"common": {"save": "Save"}})
        source = HttpDictionarySource("https://cdn.example.com/locales/", timeout=5, session=session)

        assert source.load("en") == {"common": {"save": "Save"}}

        args, kwargs = session.get.call_args
        assert args[0] == "https://cdn.example.com/locales/en.json"
        assert kwargs["headers"] == NO_CACHE_HEADERS
        assert "t" in kwargs["params"]
        assert kwargs["timeout"] == 5

    def test_http_error(self):
        session = _session_returning(exc=requests.HTTPError("404 Not Found"))
        source = HttpDictionarySource("https://cdn.example.com", session=session)
        with pytest.raises(DictionaryLoadError):
            source.load("fr")

    def test_connection_error(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("unreachable")
        source = HttpDictionarySource("https://cdn.example.com", session=session)
        with pytest.raises(DictionaryLoadError):
            source.load("fr")

    def test_invalid_json(self):
        session = _session_returning(json_exc=ValueError("Expecting value"))
        source = HttpDictionarySource("https://cdn.example.com", session=session)
        with pytest.raises(DictionaryLoadError):
            source.load("ar")


class TestBuildDictionarySource:
    def test_files_by_default(self, locales_dir):
        source = build_dictionary_source({"locales_base_url": ""}, locales_dir)
        assert isinstance(source, FileDictionarySource)
        assert source.locales_dir == locales_dir

    def test_http_when_base_url_set(self, locales_dir):
        source = build_dictionary_source(
            {"locales_base_url": "https://cdn.example.com", "request_timeout_seconds": 3},
            locales_dir,
        )
        assert isinstance(source, HttpDictionarySource)
        assert source.timeout == 3
