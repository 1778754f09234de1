from datetime import datetime

from flask import Blueprint, current_app, jsonify, request, session
from flask_login import current_user, login_required, login_user, logout_user

from vitalis.auth_utils import SESSION_LANGUAGE_KEY, SESSION_LAST_ACTIVE_KEY
from vitalis.config import load_app_settings
from vitalis.errors import APIError, ValidationError
from vitalis.i18n_session import get_language_context, teardown_language_context
from vitalis.i18n_utils import is_supported_lang
from vitalis.models import User, db


def create_auth_blueprint() -> Blueprint:
    bp = Blueprint("auth", __name__)

    @bp.route("/login", methods=["POST"], endpoint="login")
    def login():
        """JSON login; switches the session to the user's preferred language."""
        payload = request.get_json(silent=True) or {}
        email = str(payload.get("email") or "").strip().lower()
        password = str(payload.get("password") or "")
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = User.query.filter_by(email=email).first()
        if not user or not user.check_password(password):
            current_app.logger.info("Failed login for %s", email)
            raise APIError("Invalid credentials", code="INVALID_CREDENTIALS", status_code=401)

        login_user(user)
        load_app_settings(current_app)
        session.permanent = True
        session[SESSION_LAST_ACTIVE_KEY] = datetime.utcnow().isoformat()
        user.last_login_at = datetime.utcnow()
        db.session.commit()

        if is_supported_lang(user.language):
            session[SESSION_LANGUAGE_KEY] = user.language
            context = get_language_context()
            if context.language != user.language:
                context.set_language(user.language)

        return jsonify({"success": True, "email": user.email, "role": user.role, "language": user.language})

    @bp.route("/logout", methods=["POST"], endpoint="logout")
    @login_required
    def logout():
        email = current_user.email
        teardown_language_context()
        logout_user()
        session.clear()
        current_app.logger.info("Logged out %s", email)
        return jsonify({"success": True})

    return bp
