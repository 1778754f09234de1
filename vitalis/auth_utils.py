from datetime import datetime, timedelta
from functools import wraps
from typing import Callable, Optional

from flask import session, request
from flask_login import current_user, login_required, logout_user

from vitalis.config import DEFAULT_SETTINGS, coerce_positive_int, load_app_settings
from vitalis.errors import APIError, ForbiddenError

SESSION_LAST_ACTIVE_KEY = "last_active_utc"
SESSION_ID_KEY = "sid"
SESSION_LANGUAGE_KEY = "language"


def roles_required(*roles):
    """
    Decorator: only allows access when current_user.role is in roles.
    Usage:
        @roles_required("admin")
        @roles_required("admin", "editor")
    """

    def decorator(view_func):
        @wraps(view_func)
        @login_required
        def wrapped(*args, **kwargs):
            if current_user.role not in roles:
                raise ForbiddenError()
            return view_func(*args, **kwargs)

        return wrapped

    return decorator


def register_session_timeout(app, on_expired: Optional[Callable[[Optional[str]], None]] = None):
    """
    Registers a before_request handler enforcing the inactivity timeout.
    on_expired receives the session id of the expired session before it is cleared.
    """

    @app.before_request
    def enforce_session_timeout():
        if not current_user.is_authenticated:
            return

        settings = load_app_settings(app)
        timeout_minutes = coerce_positive_int(
            settings.get("session_timeout_minutes"),
            DEFAULT_SETTINGS["session_timeout_minutes"],
        )

        now = datetime.utcnow()
        last_seen_raw = session.get(SESSION_LAST_ACTIVE_KEY)

        if last_seen_raw:
            try:
                last_seen = datetime.fromisoformat(last_seen_raw)
            except ValueError:
                last_seen = None

            if last_seen and now - last_seen > timedelta(minutes=timeout_minutes):
                if on_expired is not None:
                    on_expired(session.get(SESSION_ID_KEY))
                logout_user()
                session.clear()
                raise APIError("Session expired", code="SESSION_EXPIRED", status_code=401)

        is_static_request = (request.endpoint or "").startswith("static")
        if not is_static_request:
            session.permanent = True
            session[SESSION_LAST_ACTIVE_KEY] = now.isoformat()
