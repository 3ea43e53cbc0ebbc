import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from models import (
    AnalyticsSummary, AverageOrderValue, BestSeller, GrowthRate,
    Menu, Order, Provider, RevenueBucket, User,
)

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class ApiError(Exception):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class NotAuthenticated(ApiError):
    """Expected when nobody is logged in; callers treat it as a logged-out state."""


def _is_not_authenticated(status: Optional[int], message: str) -> bool:
    return status == 401 or "Not authenticated" in (message or "")


def _parse_one(model, value, fallback: str):
    try:
        return model.model_validate(value)
    except ValidationError as e:
        log.warning("Malformed %s from API: %s", model.__name__, e.errors()[:1])
        raise ApiError(fallback) from None


def _parse_list(model, rows, what: str) -> list:
    if rows is None:
        return []
    if not isinstance(rows, list):
        log.warning("Expected a list of %s from API, got %s", what, type(rows).__name__)
        return []

    items = []
    for row in rows:
        try:
            items.append(model.model_validate(row))
        except ValidationError as e:
            log.warning("Skipping malformed %s from API: %s", what, e.errors()[:1])
    return items


class TiffinApi:
    """
    Thin client over the TiffinHub REST API.

    Credentials travel as cookies. ``cookies`` seeds the jar (e.g. from the web
    session) and :attr:`cookies` hands the current jar back so the caller can
    persist it between requests.
    """

    def __init__(self, base_url: str, cookies: Optional[Dict[str, str]] = None,
                 timeout: float = DEFAULT_TIMEOUT, http: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()
        self.http.headers.update({"Content-Type": "application/json"})
        if cookies:
            self.http.cookies.update(cookies)

    @property
    def cookies(self) -> Dict[str, str]:
        return self.http.cookies.get_dict()

    def clear_cookies(self):
        self.http.cookies.clear()

    # -----------------------
    # transport
    # -----------------------
    def _request(self, method: str, path: str, fallback: str,
                 json: Any = None, params: Optional[dict] = None) -> dict:
        url = f"{self.base_url}{path}"
        if params:
            params = {k: v for k, v in params.items() if v is not None and v != ""}
        log.debug("%s %s params=%s", method, url, params)

        try:
            resp = self.http.request(method, url, json=json, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            log.warning("%s %s failed: %s", method, url, e)
            raise ApiError(f"Network error: {e}") from e

        if not resp.ok:
            message = self._error_message(resp) or fallback
            if _is_not_authenticated(resp.status_code, message):
                log.debug("%s %s: not authenticated", method, url)
                raise NotAuthenticated(message, resp.status_code)
            log.warning("%s %s -> %s: %s", method, url, resp.status_code, message)
            raise ApiError(message, resp.status_code)

        try:
            data = resp.json()
        except ValueError:
            raise ApiError(fallback, resp.status_code) from None
        if not isinstance(data, dict):
            log.warning("%s %s returned %s instead of an object", method, url, type(data).__name__)
            raise ApiError(fallback, resp.status_code)
        return data

    @staticmethod
    def _error_message(resp: requests.Response) -> str:
        try:
            data = resp.json()
        except ValueError:
            return (resp.text or "").strip()
        if isinstance(data, dict):
            return str(data.get("message") or "")
        return ""

    # -----------------------
    # auth
    # -----------------------
    def generate_otp(self, email: str) -> dict:
        return self._request("POST", "/auth/generate-otp", "Failed to generate OTP", json={"email": email})

    def verify_otp(self, email: str, otp: str, user_data: Optional[dict] = None) -> Optional[User]:
        body = {"email": email, "otp": otp, **(user_data or {})}
        data = self._request("POST", "/auth/verify-otp", "Failed to verify OTP", json=body)
        return _parse_one(User, data["user"], "Failed to verify OTP") if data.get("user") else None

    def login(self, email: str, password: str) -> Optional[User]:
        data = self._request("POST", "/auth/login", "Failed to login",
                             json={"email": email, "password": password})
        return _parse_one(User, data["user"], "Failed to login") if data.get("user") else None

    def get_user(self) -> Optional[User]:
        data = self._request("GET", "/auth/user", "Failed to fetch user")
        return _parse_one(User, data["user"], "Failed to fetch user") if data.get("user") else None

    def update_password(self, user_id: str, current_password: str, new_password: str) -> dict:
        return self._request("PUT", "/auth/update-password", "Failed to update password", json={
            "userId": user_id,
            "currentPassword": current_password,
            "newPassword": new_password,
        })

    # -----------------------
    # provider menus
    # -----------------------
    def create_menu(self, menu_data: dict) -> Optional[Menu]:
        data = self._request("POST", "/provider/create-menu", "Failed to create menu", json=menu_data)
        return _parse_one(Menu, data["menu"], "Failed to create menu") if data.get("menu") else None

    def get_menus(self) -> List[Menu]:
        data = self._request("GET", "/provider", "Failed to fetch menus")
        menus = data.get("menus")
        if not isinstance(menus, list):
            log.warning("Menus array missing from API response")
            return []
        return _parse_list(Menu, menus, "menu")

    def update_menu(self, menu_id: str, menu_data: dict) -> Optional[Menu]:
        data = self._request("PUT", f"/provider/{menu_id}", "Failed to update menu", json=menu_data)
        return _parse_one(Menu, data["menu"], "Failed to update menu") if data.get("menu") else None

    def delete_menu(self, menu_id: str, provider_id: str) -> dict:
        return self._request("DELETE", f"/provider/{menu_id}", "Failed to delete menu",
                             json={"providerId": provider_id})

    # -----------------------
    # orders
    # -----------------------
    def place_order(self, user_id: str, menu_id: str, items: List[dict]) -> Optional[Order]:
        data = self._request("POST", "/order", "Failed to place order",
                             json={"userId": user_id, "menuId": menu_id, "items": items})
        return _parse_one(Order, data["order"], "Failed to place order") if data.get("order") else None

    def get_orders(self, user_id: str, date: Optional[str] = None) -> List[Order]:
        data = self._request("GET", "/order", "Failed to fetch orders",
                             params={"userId": user_id, "date": date})
        return _parse_list(Order, data.get("orders"), "order")

    def get_provider_orders(self, provider_id: str, date: Optional[str] = None) -> List[Order]:
        data = self._request("GET", "/provider/provider", "Failed to fetch orders",
                             params={"providerId": provider_id, "date": date})
        return _parse_list(Order, data.get("orders"), "order")

    def update_order_status(self, order_id: str, status: str) -> dict:
        return self._request("PUT", f"/provider/order/{order_id}/status", "Failed to update order status",
                             json={"status": status})

    def cancel_order(self, order_id: str, user_id: str) -> dict:
        return self._request("PUT", f"/order/{order_id}/cancel", "Failed to cancel order",
                             json={"userId": user_id})

    # -----------------------
    # providers + favorites
    # -----------------------
    def get_providers(self) -> List[Provider]:
        data = self._request("GET", "/user/providers", "Failed to load providers")
        return _parse_list(Provider, data.get("providers"), "provider")

    def get_favorites(self, user_id: str) -> List[Provider]:
        data = self._request("GET", "/user/favorites", "Failed to load favorites", params={"userId": user_id})
        return _parse_list(Provider, data.get("favoriteProviders"), "provider")

    def add_favorite(self, user_id: str, provider_id: str) -> dict:
        return self._request("POST", "/user/favorites", "Failed to update favorite",
                             json={"userId": user_id, "providerId": provider_id})

    def remove_favorite(self, user_id: str, provider_id: str) -> dict:
        return self._request("DELETE", "/user/favorites", "Failed to remove favorite",
                             json={"userId": user_id, "providerId": provider_id})

    def contact(self, user_id: str, subject: str, message: str) -> dict:
        return self._request("POST", "/user/contact", "Failed to send message",
                             json={"userId": user_id, "subject": subject, "message": message})

    # -----------------------
    # analytics (provider)
    # -----------------------
    def analytics_summary(self, provider_id: str, start_date: Optional[str] = None,
                          end_date: Optional[str] = None) -> AnalyticsSummary:
        data = self._request("GET", "/analytics/summary", "Failed to load summary", params={
            "providerId": provider_id, "startDate": start_date, "endDate": end_date,
        })
        return _parse_one(AnalyticsSummary, data.get("summary", data), "Failed to load summary")

    def analytics_growth_rate(self, provider_id: str) -> GrowthRate:
        data = self._request("GET", "/analytics/growth-rate", "Failed to load growth rate",
                             params={"providerId": provider_id})
        return _parse_one(GrowthRate, data, "Failed to load growth rate")

    def analytics_average_order_value(self, provider_id: str, start_date: Optional[str] = None,
                                      end_date: Optional[str] = None) -> AverageOrderValue:
        data = self._request("GET", "/analytics/average-order-value", "Failed to load average order value",
                             params={"providerId": provider_id, "startDate": start_date, "endDate": end_date})
        return _parse_one(AverageOrderValue, data, "Failed to load average order value")

    def analytics_monthly_revenue(self, provider_id: str, year: int) -> List[RevenueBucket]:
        data = self._request("GET", "/analytics/monthly-revenue", "Failed to load monthly revenue",
                             params={"providerId": provider_id, "year": year})
        return _parse_list(RevenueBucket, data.get("data"), "revenue bucket")

    def analytics_daily_revenue(self, provider_id: str, year: int, month: int) -> List[RevenueBucket]:
        data = self._request("GET", "/analytics/daily-revenue", "Failed to load daily revenue",
                             params={"providerId": provider_id, "year": year, "month": month})
        return _parse_list(RevenueBucket, data.get("data"), "revenue bucket")

    def analytics_best_sellers(self, provider_id: str, limit: int = 5, start_date: Optional[str] = None,
                               end_date: Optional[str] = None) -> List[BestSeller]:
        data = self._request("GET", "/analytics/best-sellers", "Failed to load best sellers", params={
            "providerId": provider_id, "limit": limit, "startDate": start_date, "endDate": end_date,
        })
        return _parse_list(BestSeller, data.get("bestSellers"), "best seller")
