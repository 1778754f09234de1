# ============================================================
# Vitalis Admin – translation service for the fitness portal
# ============================================================
# - Per-language dictionaries served uncached
# - Per-session language context with dotted-key lookup
# - Admin API for editing dictionaries + canned auto-translation
# - Fitness calculator API (BMI, body fat, BMR, TDEE)
# ============================================================

from datetime import datetime
import logging

from flask import Flask, jsonify
from flask_login import LoginManager
from werkzeug.exceptions import HTTPException

from vitalis.config import (
    INSTANCE_DIR,
    LOCALES_DIR,
    SETTINGS_FILE,
    database_uri_from_env,
    load_app_settings,
    resolve_locales_dir,
    secret_key_from_env,
)
from vitalis.dictionary_loader import build_dictionary_source
from vitalis.errors import APIError, DictionaryLoadError
from vitalis.i18n_session import REGISTRY_EXTENSION_KEY, get_language_context, get_registry
from vitalis.language_context import LanguageContextRegistry
from vitalis.models import db, User
from vitalis.auth_utils import register_session_timeout
from vitalis.version import APP_VERSION


def create_app(test_config=None):
    """Application factory."""
    app = Flask(__name__)

    # ============================================================
    # Base configuration & logging
    # ============================================================

    logging.basicConfig(level=logging.INFO)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    app.config["SECRET_KEY"] = secret_key_from_env()
    app.config["SQLALCHEMY_DATABASE_URI"] = database_uri_from_env()
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SETTINGS_FILE"] = str(SETTINGS_FILE)
    app.config["LOCALES_DIR"] = str(LOCALES_DIR)
    app.json.ensure_ascii = False
    if test_config:
        app.config.update(test_config)

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///") and not app.config.get("TESTING"):
        INSTANCE_DIR.mkdir(parents=True, exist_ok=True)

    load_app_settings(app)

    # ============================================================
    # Language contexts (one per session)
    # ============================================================

    def dictionary_source():
        settings = load_app_settings(app)
        return build_dictionary_source(settings, resolve_locales_dir(app, settings))

    app.extensions[REGISTRY_EXTENSION_KEY] = LanguageContextRegistry(dictionary_source)

    @app.context_processor
    def inject_globals():
        """
        Makes translation helpers available in all templates.
        """
        context = get_language_context()
        return {
            "app_version": APP_VERSION,
            "current_language": lambda: context.language,
            "text_direction": context.direction,
            "t": context.t,
        }

    # ============================================================
    # DB, login & session handling
    # ============================================================

    db.init_app(app)

    login_manager = LoginManager(app)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"success": False, "error": {"message": "Login required", "code": "UNAUTHORIZED"}}), 401

    register_session_timeout(app, get_registry(app).discard)

    # ============================================================
    # Error handling
    # ============================================================

    @app.errorhandler(APIError)
    def api_error_handler(err):
        return jsonify({"success": False, "error": err.to_dict()}), err.status_code

    @app.errorhandler(DictionaryLoadError)
    def dictionary_error_handler(err):
        app.logger.error("Dictionary unavailable: %s", err)
        payload = {
            "message": f"Dictionary '{err.lang}' is unavailable",
            "code": "DICTIONARY_UNAVAILABLE",
            "details": {"language": err.lang},
        }
        return jsonify({"success": False, "error": payload}), 502

    @app.errorhandler(HTTPException)
    def http_error_handler(err):
        payload = {"message": err.description, "code": (err.name or "ERROR").upper().replace(" ", "_")}
        return jsonify({"success": False, "error": payload}), err.code or 500

    # ============================================================
    # Blueprints
    # ============================================================

    from vitalis.routes import create_admin_blueprint, create_auth_blueprint, create_fitness_blueprint, create_i18n_blueprint

    app.register_blueprint(create_i18n_blueprint())
    app.register_blueprint(create_auth_blueprint())
    app.register_blueprint(create_fitness_blueprint())
    app.register_blueprint(create_admin_blueprint())

    # ============================================================
    # CLI commands
    # ============================================================

    @app.cli.command("init-db")
    def init_db():
        """Creates the database tables (run once)."""
        db.create_all()
        print("Database initialised.")

    @app.cli.command("create-admin")
    def create_admin():
        """Creates an admin user (interactive)."""
        email = input("Admin email: ").strip().lower()
        password = input("Admin password: ").strip()

        if not email or not password:
            print("Error: email and password are required.")
            return

        if User.query.filter_by(email=email).first():
            print("Error: User with this email already exists.")
            return

        user = User(email=email, role="admin", created_at=datetime.utcnow())
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        print(f"Admin user '{email}' created.")

    @app.cli.command("version")
    def show_version():
        """Shows the current Vitalis version."""
        print(f"Vitalis version: {APP_VERSION}")

    app.logger.info("Vitalis %s ready (locales: %s)", APP_VERSION, resolve_locales_dir(app))
    return app


# ============================================================
# Dev start
# ============================================================

if __name__ == "__main__":
    create_app().run(debug=True)
