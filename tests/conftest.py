import json

import pytest

from vitalis.app import create_app
from vitalis.models import User, db

EN = {
    "common": {"save": "Save", "cancel": "Cancel", "count": 3},
    "nav": {"home": "Home", "items": ["a", "b"]},
    "calculator": {"title": "BMI Calculator", "categories": {"normal": "Normal weight"}},
}
FR = {
    "common": {"save": "Enregistrer", "cancel": ""},
    "nav": {"home": "Accueil"},
}
AR = {
    "common": {"save": "حفظ"},
}


def write_locales(directory, **dictionaries):
    directory.mkdir(parents=True, exist_ok=True)
    for lang, data in dictionaries.items():
        (directory / f"{lang}.json").write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return directory


@pytest.fixture
def locales_dir(tmp_path):
    return write_locales(tmp_path / "locales", en=EN, fr=FR, ar=AR)


@pytest.fixture
def app(tmp_path, locales_dir):
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "SETTINGS_FILE": str(tmp_path / "instance" / "config.json"),
            "LOCALES_DIR": str(locales_dir),
        }
    )
    with app.app_context():
        db.create_all()
        admin = User(email="admin@example.com", role="admin", language="en")
        admin.set_password("secret")
        member = User(email="member@example.com", role="user", language="fr")
        member.set_password("secret")
        db.session.add_all([admin, member])
        db.session.commit()
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def admin_client(client):
    response = client.post("/login", json={"email": "admin@example.com", "password": "secret"})
    assert response.status_code == 200
    return client


def read_locale(directory, lang):
    return json.loads((directory / f"{lang}.json").read_text(encoding="utf-8"))
