import os

os.environ.setdefault("API_BASE_URL", "http://api.test")

import pytest

from api_client import ApiError, NotAuthenticated
from app import create_app
from models import (
    AnalyticsSummary, AverageOrderValue, BestSeller, GrowthRate,
    Menu, Order, Provider, RevenueBucket, User,
)

CUSTOMER = {"id": "u1", "name": "Asha", "email": "asha@example.com", "mobile": "9876543210",
            "address": "12 MG Road", "role": "user"}
PROVIDER = {"id": "p1", "name": "Annapurna Tiffins", "email": "anna@example.com", "mobile": "9123456780",
            "address": "4 FC Road", "role": "provider"}


class FakeApi:
    """In-memory stand-in for TiffinApi; records every call."""

    def __init__(self):
        self.user = None
        self.menus = []
        self.orders = []
        self.provider_orders = []
        self.providers = []
        self.favorites = []
        self.calls = []
        self.errors = {}
        self._cookies = {}

        self.summary = AnalyticsSummary(totalRevenue=1200, totalOrders=10, totalCustomers=4)
        self.growth = GrowthRate(growthRate=12.5)
        self.average = AverageOrderValue(averageOrderValue=120, totalOrders=10)
        self.monthly = [RevenueBucket(label="Jan", revenue=500), RevenueBucket(label="Feb", revenue=700)]
        self.daily = [RevenueBucket(label="1", revenue=100), RevenueBucket(label="2", revenue=300)]
        self.best_sellers = [BestSeller(mealType="full", sabji="Paneer", quantity=6, revenue=720)]

    def _call(self, name, *args):
        self.calls.append((name, args))
        if name in self.errors:
            raise self.errors[name]

    def called(self, name):
        return [args for n, args in self.calls if n == name]

    @property
    def cookies(self):
        return dict(self._cookies)

    def clear_cookies(self):
        self._cookies.clear()

    # auth
    def generate_otp(self, email):
        self._call("generate_otp", email)
        return {"message": "OTP sent"}

    def verify_otp(self, email, otp, user_data=None):
        self._call("verify_otp", email, otp, user_data)
        self.user = User.model_validate({"_id": "u9", "email": email, **(user_data or {})})
        return self.user

    def login(self, email, password):
        self._call("login", email, password)
        return self.user

    def get_user(self):
        self._call("get_user")
        if self.user is None:
            raise NotAuthenticated("Not authenticated", 401)
        return self.user

    def update_password(self, user_id, current_password, new_password):
        self._call("update_password", user_id, current_password, new_password)
        return {}

    # menus
    def create_menu(self, menu_data):
        self._call("create_menu", menu_data)
        return None

    def get_menus(self):
        self._call("get_menus")
        return list(self.menus)

    def update_menu(self, menu_id, menu_data):
        self._call("update_menu", menu_id, menu_data)
        return None

    def delete_menu(self, menu_id, provider_id):
        self._call("delete_menu", menu_id, provider_id)
        return {}

    # orders
    def place_order(self, user_id, menu_id, items):
        self._call("place_order", user_id, menu_id, items)
        return Order.model_validate({"_id": "o-new", "items": items})

    def get_orders(self, user_id, date=None):
        self._call("get_orders", user_id, date)
        return list(self.orders)

    def get_provider_orders(self, provider_id, date=None):
        self._call("get_provider_orders", provider_id, date)
        return list(self.provider_orders)

    def update_order_status(self, order_id, status):
        self._call("update_order_status", order_id, status)
        return {}

    def cancel_order(self, order_id, user_id):
        self._call("cancel_order", order_id, user_id)
        return {}

    # providers
    def get_providers(self):
        self._call("get_providers")
        return list(self.providers)

    def get_favorites(self, user_id):
        self._call("get_favorites", user_id)
        return list(self.favorites)

    def add_favorite(self, user_id, provider_id):
        self._call("add_favorite", user_id, provider_id)
        return {}

    def remove_favorite(self, user_id, provider_id):
        self._call("remove_favorite", user_id, provider_id)
        return {}

    def contact(self, user_id, subject, message):
        self._call("contact", user_id, subject, message)
        return {}

    # analytics
    def analytics_summary(self, provider_id, start_date=None, end_date=None):
        self._call("analytics_summary", provider_id, start_date, end_date)
        return self.summary

    def analytics_growth_rate(self, provider_id):
        self._call("analytics_growth_rate", provider_id)
        return self.growth

    def analytics_average_order_value(self, provider_id, start_date=None, end_date=None):
        self._call("analytics_average_order_value", provider_id, start_date, end_date)
        return self.average

    def analytics_monthly_revenue(self, provider_id, year):
        self._call("analytics_monthly_revenue", provider_id, year)
        return list(self.monthly)

    def analytics_daily_revenue(self, provider_id, year, month):
        self._call("analytics_daily_revenue", provider_id, year, month)
        return list(self.daily)

    def analytics_best_sellers(self, provider_id, limit=5, start_date=None, end_date=None):
        self._call("analytics_best_sellers", provider_id, limit, start_date, end_date)
        return list(self.best_sellers)


def make_menu(menu_id="m1", date="2026-10-19", provider_id="p1", provider_name="Annapurna Tiffins", **extra):
    data = {
        "_id": menu_id,
        "providerId": {"_id": provider_id, "name": provider_name},
        "date": date,
        "sabjis": ["Paneer", "Aloo Gobi"],
        "prices": {"full": 120, "half": 70, "riceOnly": 40},
    }
    data.update(extra)
    return Menu.model_validate(data)


def make_order(order_id="o1", status="pending", items=None, grand_total=None, **extra):
    items = items if items is not None else [
        {"mealType": "full", "sabji": "Paneer", "quantity": 2, "pricePerUnit": 120, "totalPrice": 240},
    ]
    data = {
        "_id": order_id,
        "userId": {"_id": "u1", "name": "Asha", "mobile": "9876543210"},
        "providerId": {"_id": "p1", "name": "Annapurna Tiffins"},
        "menuId": {"_id": "m1", "date": "2026-10-19"},
        "items": items,
        "grandTotal": grand_total if grand_total is not None else sum(i.get("totalPrice", 0) for i in items),
        "status": status,
        "createdAt": "2026-10-19T08:30:00.000Z",
    }
    data.update(extra)
    return Order.model_validate(data)


def make_provider(provider_id="p1", name="Annapurna Tiffins", email="anna@example.com"):
    return Provider.model_validate({"_id": provider_id, "name": name, "email": email})


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def app(fake_api):
    app = create_app(
        {"TESTING": True, "SECRET_KEY": "test", "API_BASE_URL": "http://api.test"},
        api_factory=lambda base_url, cookies=None, timeout=None: fake_api,
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def _login(client, fake_api, data):
    fake_api.user = User.model_validate(data)
    with client.session_transaction() as sess:
        sess["user"] = fake_api.user.model_dump()
    return fake_api.user


@pytest.fixture
def login_customer(client, fake_api):
    return lambda: _login(client, fake_api, CUSTOMER)


@pytest.fixture
def login_provider(client, fake_api):
    return lambda: _login(client, fake_api, PROVIDER)


@pytest.fixture
def api_error():
    return lambda message="Server error", status=500: ApiError(message, status)
