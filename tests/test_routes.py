"""End-to-end tests through the Flask test client."""

from datetime import datetime, timedelta

from flask import render_template_string

from conftest import FR, read_locale
from vitalis.i18n_session import get_registry
from vitalis.models import User


class TestLocaleFiles:
    def test_serves_dictionary_without_caching(self, client):
        response = client.get("/locales/fr.json")
        assert response.status_code == 200
        assert response.get_json() == FR
        assert response.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
        assert response.headers["Pragma"] == "no-cache"
        assert response.headers["Expires"] == "0"

    def test_unknown_language(self, client):
        response = client.get("/locales/de.json")
        assert response.status_code == 404
        assert response.get_json()["success"] is False

    def test_unreadable_dictionary(self, client, locales_dir):
        (locales_dir / "en.json").write_text("{oops", encoding="utf-8")
        assert client.get("/locales/en.json").status_code == 502


class TestLanguageApi:
    def test_language_from_accept_header(self, client):
        data = client.get("/api/language", headers={"Accept-Language": "fr-FR,fr;q=0.9"}).get_json()
        assert data["language"] == "fr"
        assert data["direction"] == "ltr"
        assert data["loaded"] is True
        assert [item["code"] for item in data["supported"]] == ["en", "fr", "ar"]

    def test_switch_language(self, client):
        data = client.post("/api/language", json={"language": "ar"}).get_json()
        assert data["switched"] is True
        assert data["language"] == "ar"
        assert data["direction"] == "rtl"

        value = client.get("/api/translate?key=common.save").get_json()
        assert value == {"key": "common.save", "value": "حفظ", "language": "ar"}

    def test_switch_rejects_unknown_language(self, client):
        response = client.post("/api/language", json={"language": "de"})
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "VALIDATION_ERROR"

    def test_failed_switch_keeps_previous_language(self, client, locales_dir):
        client.post("/api/language", json={"language": "fr"})
        (locales_dir / "ar.json").unlink()

        data = client.post("/api/language", json={"language": "ar"}).get_json()
        assert data["switched"] is False
        assert data["language"] == "fr"
        assert client.get("/api/translate?key=common.save").get_json()["value"] == "Enregistrer"

    def test_translate_fallbacks(self, client):
        assert client.get("/api/translate?key=common.missing").get_json()["value"] == "common.missing"
        data = client.get("/api/translate?key=common.missing&default=Oops").get_json()
        assert data["value"] == "Oops"

    def test_one_context_per_session(self, app, client):
        client.get("/api/language")
        client.post("/api/language", json={"language": "fr"})
        client.get("/api/translate?key=common.save")
        assert len(get_registry(app)) == 1

        with app.test_client() as other:
            other.get("/api/language")
        assert len(get_registry(app)) == 2

    def test_template_helpers(self, app):
        with app.test_request_context(headers={"Accept-Language": "fr"}):
            rendered = render_template_string("{{ t('common.save') }}|{{ current_language() }}|{{ text_direction }}")
        assert rendered == "Enregistrer|fr|ltr"


class TestAuth:
    def test_login_applies_user_language(self, client):
        response = client.post("/login", json={"email": "member@example.com", "password": "secret"})
        assert response.status_code == 200
        assert response.get_json()["language"] == "fr"
        assert client.get("/api/translate?key=nav.home").get_json()["value"] == "Accueil"

    def test_invalid_credentials(self, client):
        response = client.post("/login", json={"email": "member@example.com", "password": "wrong"})
        assert response.status_code == 401

    def test_switch_is_saved_on_user(self, app, client):
        client.post("/login", json={"email": "member@example.com", "password": "secret"})
        client.post("/api/language", json={"language": "ar"})
        with app.app_context():
            assert User.query.filter_by(email="member@example.com").first().language == "ar"

    def test_logout_tears_down_context(self, app, admin_client):
        assert len(get_registry(app)) == 1
        assert admin_client.post("/logout").get_json() == {"success": True}
        assert len(get_registry(app)) == 0

    def test_session_timeout(self, app, admin_client):
        with admin_client.session_transaction() as sess:
            sess["last_active_utc"] = (datetime.utcnow() - timedelta(hours=2)).isoformat()

        response = admin_client.get("/admin/settings")
        assert response.status_code == 401
        assert response.get_json()["error"]["code"] == "SESSION_EXPIRED"
        assert len(get_registry(app)) == 0


class TestAdminTranslations:
    def test_requires_login(self, client):
        assert client.get("/admin/translations/en").status_code == 401

    def test_requires_admin_role(self, client):
        client.post("/login", json={"email": "member@example.com", "password": "secret"})
        assert client.get("/admin/translations/en").status_code == 403

    def test_list_and_search(self, admin_client):
        data = admin_client.get("/admin/translations/en?q=save").get_json()
        assert data["entries"] == [{"key": "common.save", "value": "Save"}]

    def test_add_edit_delete(self, admin_client, locales_dir):
        response = admin_client.post("/admin/translations/fr/keys", json={"key": "nav.admin", "value": "Admin"})
        assert response.status_code == 201

        assert admin_client.post(
            "/admin/translations/fr/keys", json={"key": "nav.admin", "value": "x"}
        ).status_code == 409

        response = admin_client.patch("/admin/translations/fr/keys/nav.admin", json={"value": "Administration"})
        assert response.get_json() == {"key": "nav.admin", "value": "Administration"}
        assert read_locale(locales_dir, "fr")["nav"]["admin"] == "Administration"

        assert admin_client.delete("/admin/translations/fr/keys/nav.admin").status_code == 200
        assert "admin" not in read_locale(locales_dir, "fr")["nav"]
        assert admin_client.delete("/admin/translations/fr/keys/nav.admin").status_code == 404

    def test_corrupt_dictionary_is_bad_gateway(self, admin_client, locales_dir):
        (locales_dir / "fr.json").write_text("{broken", encoding="utf-8")
        response = admin_client.get("/admin/translations/fr")
        assert response.status_code == 502
        error = response.get_json()["error"]
        assert error["code"] == "DICTIONARY_UNAVAILABLE"
        assert error["details"] == {"language": "fr"}

    def test_add_group_key_conflicts(self, admin_client, locales_dir):
        response = admin_client.post("/admin/translations/en/keys", json={"key": "common", "value": "x"})
        assert response.status_code == 409
        assert read_locale(locales_dir, "en")["common"]["save"] == "Save"

    def test_save_whole_dictionary(self, admin_client, locales_dir):
        entries = [{"key": "common.save", "value": "Sauver"}, {"key": "nav.home", "value": "Maison"}]
        response = admin_client.put("/admin/translations/fr", json={"entries": entries})
        assert response.get_json()["count"] == 2
        assert read_locale(locales_dir, "fr") == {"common": {"save": "Sauver"}, "nav": {"home": "Maison"}}

    def test_save_requires_entries_list(self, admin_client):
        assert admin_client.put("/admin/translations/fr", json={"entries": "nope"}).status_code == 400

    def test_missing_and_auto_translate(self, admin_client, locales_dir):
        missing = admin_client.get("/admin/translations/en/missing/fr").get_json()
        assert missing["count"] == 5

        data = admin_client.post(
            "/admin/translations/auto-translate", json={"source": "en", "target": "fr", "limit": 1}
        ).get_json()
        assert data["translated"] == ["common.cancel"]
        assert read_locale(locales_dir, "fr")["common"]["cancel"] == "Annuler"

    def test_auto_translate_same_language(self, admin_client):
        response = admin_client.post("/admin/translations/auto-translate", json={"source": "en", "target": "en"})
        assert response.status_code == 400

    def test_test_translation(self, admin_client):
        data = admin_client.post(
            "/admin/translations/test", json={"text": "Save", "source": "en", "target": "fr"}
        ).get_json()
        assert data == {"result": "Enregistrer"}

    def test_edits_are_visible_to_next_load(self, admin_client):
        admin_client.patch("/admin/translations/en/keys/common.save", json={"value": "Store"})
        admin_client.post("/api/language", json={"language": "en"})
        assert admin_client.get("/api/translate?key=common.save").get_json()["value"] == "Store"


class TestAdminSettings:
    def test_get_and_update(self, admin_client):
        assert admin_client.get("/admin/settings").get_json()["auto_translate_limit"] == 10

        data = admin_client.post("/admin/settings", json={"auto_translate_limit": 3, "default_language": "ar"}).get_json()
        assert data["settings"]["auto_translate_limit"] == 3
        assert data["settings"]["default_language"] == "ar"

    def test_rejects_bad_values(self, admin_client):
        assert admin_client.post("/admin/settings", json={"default_language": "de"}).status_code == 400
        assert admin_client.post("/admin/settings", json={"session_timeout_minutes": 0}).status_code == 400


class TestFitnessApi:
    def test_calculate(self, client):
        data = client.post("/api/fitness/calculate", json={"height": 175, "weight": 70, "age": 30, "gender": "male"}).get_json()
        assert data["bmi"] == 22.9
        assert data["category"] == "Normal weight"

    def test_invalid_input(self, client):
        response = client.post("/api/fitness/calculate", json={"height": 175, "weight": 0, "age": 30, "gender": "male"})
        assert response.status_code == 400
        assert response.get_json()["error"]["details"] == {"field": "weight"}


class TestCli:
    def test_create_admin(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["create-admin"], input="new@example.com\npw\n")
        assert "created" in result.output
        with app.app_context():
            assert User.query.filter_by(email="new@example.com").first().role == "admin"

    def test_version(self, app):
        result = app.test_cli_runner().invoke(args=["version"])
        assert "Vitalis version" in result.output
