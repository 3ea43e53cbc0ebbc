import json

import pytest
import requests

from analytics import load_dashboard
from api_client import ApiError, NotAuthenticated, TiffinApi


def _response(status=200, body=None, text=None):
    resp = requests.Response()
    resp.status_code = status
    if body is not None:
        resp._content = json.dumps(body).encode()
        resp.headers["Content-Type"] = "application/json"
    else:
        resp._content = (text or "").encode()
    return resp


@pytest.fixture
def stub(monkeypatch):
    """Replace the transport; returns the list of captured calls and a setter for the reply."""
    state = {"reply": _response(200, {}), "calls": []}

    def fake_request(self, method, url, **kwargs):
        state["calls"].append((method, url, kwargs))
        reply = state["reply"]
        if isinstance(reply, Exception):
            raise reply
        return reply

    monkeypatch.setattr(requests.Session, "request", fake_request)
    return state


def test_get_menus_parses_and_skips_malformed(stub):
    stub["reply"] = _response(200, {"menus": [
        {"_id": "m1", "providerId": {"_id": "p1", "name": "Anna"}, "date": "2026-10-19",
         "sabjis": ["Paneer"], "prices": {"full": 120, "half": 70, "riceOnly": 40}},
        {"_id": "broken"},
    ]})
    menus = TiffinApi("http://api.test/").get_menus()

    assert [m.id for m in menus] == ["m1"]
    assert menus[0].provider_name == "Anna"
    assert menus[0].prices.rice_only == 40
    method, url, _ = stub["calls"][0]
    assert (method, url) == ("GET", "http://api.test/provider")


def test_get_menus_without_array(stub):
    stub["reply"] = _response(200, {"message": "ok"})
    assert TiffinApi("http://api.test").get_menus() == []


def test_error_message_from_body(stub):
    stub["reply"] = _response(400, {"message": "Menu already exists"})
    with pytest.raises(ApiError) as exc:
        TiffinApi("http://api.test").create_menu({})
    assert exc.value.message == "Menu already exists"
    assert exc.value.status == 400


def test_error_falls_back_to_text_then_default(stub):
    stub["reply"] = _response(502, text="Bad gateway")
    with pytest.raises(ApiError, match="Bad gateway"):
        TiffinApi("http://api.test").get_providers()

    stub["reply"] = _response(500, text="")
    with pytest.raises(ApiError, match="Failed to load providers"):
        TiffinApi("http://api.test").get_providers()


def test_not_authenticated(stub):
    stub["reply"] = _response(401, {"message": "Not authenticated"})
    with pytest.raises(NotAuthenticated):
        TiffinApi("http://api.test").get_user()

    stub["reply"] = _response(403, {"message": "Not authenticated"})
    with pytest.raises(NotAuthenticated):
        TiffinApi("http://api.test").get_user()


def test_network_error(stub):
    stub["reply"] = requests.ConnectionError("refused")
    with pytest.raises(ApiError, match="Network error"):
        TiffinApi("http://api.test").get_menus()


def test_invalid_json_uses_fallback(stub):
    stub["reply"] = _response(200, text="<html>")
    with pytest.raises(ApiError, match="Failed to fetch user"):
        TiffinApi("http://api.test").get_user()


def test_login_returns_user(stub):
    stub["reply"] = _response(200, {"user": {"_id": "u1", "email": "a@b.co", "role": "provider"}})
    user = TiffinApi("http://api.test").login("a@b.co", "secret")

    assert user.id == "u1"
    assert user.is_provider
    assert stub["calls"][0][2]["json"] == {"email": "a@b.co", "password": "secret"}


def test_orders_params_drop_empty_date(stub):
    stub["reply"] = _response(200, {"orders": [{"_id": "o1", "items": [], "grandTotal": 0}]})
    orders = TiffinApi("http://api.test").get_orders("u1")

    assert orders[0].current_status == "pending"
    assert stub["calls"][0][2]["params"] == {"userId": "u1"}


def test_place_order_body(stub):
    stub["reply"] = _response(201, {"order": {"_id": "o1", "items": [
        {"mealType": "full", "sabji": "Paneer", "quantity": 2, "pricePerUnit": 120, "totalPrice": 240},
    ], "grandTotal": 240}})
    items = [{"mealType": "full", "quantity": 2, "sabji": "Paneer"}]
    order = TiffinApi("http://api.test").place_order("u1", "m1", items)

    assert order.grand_total == 240
    method, url, kwargs = stub["calls"][0]
    assert (method, url) == ("POST", "http://api.test/order")
    assert kwargs["json"] == {"userId": "u1", "menuId": "m1", "items": items}


def test_analytics_summary_unwraps(stub):
    stub["reply"] = _response(200, {"summary": {"totalRevenue": 900, "totalOrders": 5}})
    summary = TiffinApi("http://api.test").analytics_summary("p1", "2026-10-01", "2026-10-31")

    assert summary.total_revenue == 900
    assert stub["calls"][0][2]["params"] == {
        "providerId": "p1", "startDate": "2026-10-01", "endDate": "2026-10-31",
    }


def test_best_sellers_and_favorites(stub):
    stub["reply"] = _response(200, {"bestSellers": [{"mealType": "half", "sabji": "Aloo", "quantity": 3}]})
    best = TiffinApi("http://api.test").analytics_best_sellers("p1")
    assert best[0].name == "Half · Aloo"

    stub["reply"] = _response(200, {"favoriteProviders": [{"_id": "p1", "name": "Anna", "email": "a@x.co"}]})
    favorites = TiffinApi("http://api.test").get_favorites("u1")
    assert favorites[0].initial == "A"


def test_cookies_round_trip():
    api = TiffinApi("http://api.test", cookies={"token": "abc"})
    assert api.cookies == {"token": "abc"}
    api.clear_cookies()
    assert api.cookies == {}


def test_malformed_analytics_body_becomes_api_error(stub):
    stub["reply"] = _response(200, {"summary": None})
    with pytest.raises(ApiError, match="Failed to load summary"):
        TiffinApi("http://api.test").analytics_summary("p1")

    stub["reply"] = _response(200, {"growthRate": "fast"})
    with pytest.raises(ApiError, match="Failed to load growth rate"):
        TiffinApi("http://api.test").analytics_growth_rate("p1")


def test_non_object_body_becomes_api_error(stub):
    stub["reply"] = _response(200, [1, 2, 3])
    with pytest.raises(ApiError, match="Failed to load average order value"):
        TiffinApi("http://api.test").analytics_average_order_value("p1")


def test_non_list_rows_are_ignored(stub):
    stub["reply"] = _response(200, {"data": {"label": "Jan"}})
    assert TiffinApi("http://api.test").analytics_monthly_revenue("p1", 2026) == []


def test_malformed_user_becomes_api_error(stub):
    stub["reply"] = _response(200, {"user": {"name": "no id"}})
    with pytest.raises(ApiError, match="Failed to login"):
        TiffinApi("http://api.test").login("a@b.co", "secret")


def test_dashboard_with_malformed_panel(stub):
    stub["reply"] = _response(200, {"summary": None})
    dash = load_dashboard(TiffinApi("http://api.test"), "p1", 2026, 10, "month")
    assert dash.errors["summary"] == "Failed to load summary"
