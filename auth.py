import logging
import re
from functools import wraps

from flask import current_app, flash, g, redirect, session, url_for

from api_client import ApiError, NotAuthenticated, TiffinApi
from models import User

log = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SPECIAL_CHARS_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")


# -----------------------
# API client bound to this browser session
# -----------------------
def get_api() -> TiffinApi:
    if "api" not in g:
        factory = current_app.extensions["tiffin_api_factory"]
        g.api = factory(
            current_app.config["API_BASE_URL"],
            cookies=session.get("api_cookies") or {},
            timeout=current_app.config["API_TIMEOUT"],
        )
    return g.api


def persist_api_cookies(response):
    api = g.get("api")
    if api is not None and session.get("api_cookies") != api.cookies:
        session["api_cookies"] = api.cookies
    return response


# -----------------------
# Session context
# -----------------------
class UserSession:
    """
    Who is logged in, for the lifetime of one request.

    :attr:`user` is the one authoritative lookup: it asks the backend once,
    caches the answer for the request and mirrors it into the browser session.
    """

    _unset = object()

    def __init__(self, api: TiffinApi):
        self.api = api
        self._user = self._unset

    @property
    def user(self) -> User | None:
        if self._user is self._unset:
            self._user = self._fetch_user()
        return self._user

    @property
    def user_id(self) -> str | None:
        return self.user.id if self.user else None

    def _fetch_user(self) -> User | None:
        if not session.get("user") and not session.get("api_cookies"):
            return None

        try:
            user = self.api.get_user()
        except NotAuthenticated:
            self.clear()
            return None
        except ApiError as e:
            log.error("Error fetching user: %s", e.message)
            return self.stored_user()

        if user:
            self.store(user)
        else:
            self.clear()
        return user

    @staticmethod
    def stored_user() -> User | None:
        data = session.get("user")
        if not data:
            return None
        return User.model_validate(data)

    def store(self, user: User):
        session["user"] = user.model_dump()
        self._user = user

    def clear(self):
        self.api.clear_cookies()
        session.pop("user", None)
        session.pop("api_cookies", None)
        self._user = None


def current_session() -> UserSession:
    if "user_session" not in g:
        g.user_session = UserSession(get_api())
    return g.user_session


def current_user() -> User | None:
    return current_session().user


def home_for(user: User | None) -> str:
    if user is None:
        return url_for("web.login")
    if user.is_provider:
        return url_for("provider.dashboard")
    return url_for("web.home")


def logout_user():
    """Local logout: the backend session simply stops being presented."""
    theme = session.get("theme")
    session.clear()
    if theme:
        session["theme"] = theme
    g.pop("user_session", None)
    g.pop("api", None)


# -----------------------
# Decorators
# -----------------------
def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not current_user():
            flash("Please login first.")
            return redirect(url_for("web.login"))
        return fn(*args, **kwargs)
    return wrapper


def provider_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = current_user()
        if not user or not user.is_provider:
            flash("Provider access required.")
            return redirect(home_for(user))
        return fn(*args, **kwargs)
    return wrapper


def customer_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = current_user()
        if not user or user.is_provider:
            return redirect(home_for(user))
        return fn(*args, **kwargs)
    return wrapper


# -----------------------
# Form validation
# -----------------------
def password_checks(password: str) -> dict:
    checks = {
        "min_length": len(password) >= 8,
        "upper": bool(re.search(r"[A-Z]", password)),
        "lower": bool(re.search(r"[a-z]", password)),
        "number": bool(re.search(r"[0-9]", password)),
        "special": bool(SPECIAL_CHARS_RE.search(password)),
    }
    checks["valid"] = all(checks.values())
    return checks


def validate_password_change(current: str, new: str, confirm: str) -> list[str]:
    if not current or not new or not confirm:
        return ["Please fill in all fields"]
    if len(new) < 8:
        return ["Password must be at least 8 characters long"]
    if new != confirm:
        return ["New password and confirm password do not match"]
    if not password_checks(new)["valid"]:
        return ["Password does not meet security requirements"]
    return []


def validate_signup(email: str, name: str, mobile: str, password: str, address: str) -> list[str]:
    if not all([email, name, mobile, password, address]):
        return ["Please fill in all fields"]

    errors = []
    if not EMAIL_RE.match(email):
        errors.append("Please enter a valid email address")
    if len(mobile) < 10:
        errors.append("Please enter a valid mobile number")
    if len(password) < 6:
        errors.append("Password must be at least 6 characters")
    return errors
