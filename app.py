import logging

from flask import Flask, flash, redirect, request, session, url_for

from api_client import ApiError, NotAuthenticated, TiffinApi
from auth import current_session, home_for, logout_user, persist_api_cookies
from config import Config, get_secret
from order_status import status_style
from pricing import MealType
from theme import THEMES, resolve_theme
from routes_web import web
from routes_provider import provider
from routes_api import api


def create_app(test_config=None, api_factory=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not app.config["API_BASE_URL"]:
        app.config["API_BASE_URL"] = get_secret("API_BASE_URL") or app.config["DEFAULT_API_BASE_URL"]
    app.logger.info("Using API at %s", app.config["API_BASE_URL"])

    app.extensions["tiffin_api_factory"] = api_factory or TiffinApi
    # Resolved once here; requests only pick one by name.
    app.extensions["themes"] = dict(THEMES)

    register_template_helpers(app)
    register_error_handlers(app)
    app.after_request(persist_api_cookies)

    app.register_blueprint(web)
    app.register_blueprint(provider)
    app.register_blueprint(api)
    return app


def register_template_helpers(app):
    @app.context_processor
    def inject_theme():
        themes = app.extensions["themes"]
        name = session.get("theme") or app.config["DEFAULT_THEME"]
        return {
            "theme": themes.get(name) or resolve_theme(name),
            "current_user": current_session().user,
        }

    @app.template_filter("status_label")
    def status_label(status):
        return status_style(status).label

    @app.template_filter("meal_label")
    def meal_label(meal_type):
        try:
            return MealType(meal_type).label
        except ValueError:
            return meal_type

    @app.template_filter("money")
    def money(value):
        value = float(value or 0)
        return f"₹{value:,.0f}" if value == int(value) else f"₹{value:,.2f}"


def register_error_handlers(app):
    @app.errorhandler(NotAuthenticated)
    def not_authenticated(e):
        logout_user()
        flash("Please login first.")
        return redirect(url_for("web.login"))

    @app.errorhandler(ApiError)
    def api_error(e):
        app.logger.error("Unhandled API error on %s: %s", request.path, e.message)
        flash(e.message or "Something went wrong. Please try again.")
        return redirect(home_for(current_session().user))


if __name__ == "__main__":
    create_app().run(debug=True)
