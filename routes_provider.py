import logging
from datetime import date

from flask import Blueprint, render_template, request, redirect, url_for, flash

from analytics import PERIODS, load_dashboard, rank_best_sellers, revenue_of
from api_client import ApiError
from auth import current_user, get_api, login_required, provider_required
from charts import bar_layout, polyline, scale_series
from firestore_db import ORDER_CANCELLED, STATUS_CHANGED, record_order_event
from menu_filter import menu_day, menus_for_provider, utc_today
from order_status import OrderStatus, advance, can_cancel, InvalidTransition, next_status
from pricing import OrderValidationError, parse_prices
from routes_web import fetch_or_flash, find_order

log = logging.getLogger(__name__)

provider = Blueprint("provider", __name__, url_prefix="/provider")

CHART_WIDTH = 640
CHART_HEIGHT = 220


# -----------------------
# Dashboard
# -----------------------
@provider.get("/")
@login_required
@provider_required
def dashboard():
    user = current_user()
    today = utc_today()
    orders = fetch_or_flash(lambda: get_api().get_provider_orders(user.id, today.isoformat()), [], "orders")

    return render_template(
        "provider_home.html",
        user=user,
        order_count=len(orders),
        pending_count=sum(1 for o in orders if o.current_status == OrderStatus.PENDING.value),
        revenue=revenue_of(orders),
        best_sellers=rank_best_sellers(orders),
    )


# -----------------------
# Menu CRUD
# -----------------------
@provider.get("/menu")
@login_required
@provider_required
def menu():
    user = current_user()
    menus = fetch_or_flash(get_api().get_menus, [], "menus")
    own = menus_for_provider(menus, user.id)
    own.sort(key=lambda m: menu_day(m.date) or date.min, reverse=True)

    editing = None
    edit_id = request.args.get("edit")
    if edit_id:
        editing = next((m for m in own if m.id == edit_id), None)

    return render_template("provider_menu.html", menus=own, editing=editing, today=utc_today().isoformat())


def _menu_payload(provider_id: str) -> dict:
    """Validate the menu form; raises OrderValidationError with a user-facing message."""
    day = request.form.get("date", "").strip()
    if not day or menu_day(day) is None:
        raise OrderValidationError("Please select a date")

    sabjis = [s.strip() for s in request.form.getlist("sabji") if s.strip()]
    if not sabjis:
        raise OrderValidationError("Please add at least one sabzi")

    prices = parse_prices(
        request.form.get("full_price", ""),
        request.form.get("half_price", ""),
        request.form.get("rice_only_price", ""),
    )
    return {
        "providerId": provider_id,
        "date": menu_day(day).isoformat(),
        "sabjis": sabjis,
        "prices": prices.model_dump(by_alias=True),
    }


@provider.post("/menu/create")
@login_required
@provider_required
def menu_create():
    user = current_user()
    try:
        payload = _menu_payload(user.id)
    except OrderValidationError as e:
        flash(str(e))
        return redirect(url_for("provider.menu"))

    try:
        get_api().create_menu(payload)
    except ApiError as e:
        flash(e.message or "Failed to create menu")
        return redirect(url_for("provider.menu"))

    flash("Menu created successfully")
    return redirect(url_for("provider.menu"))


@provider.post("/menu/update/<menu_id>")
@login_required
@provider_required
def menu_update(menu_id: str):
    user = current_user()
    try:
        payload = _menu_payload(user.id)
    except OrderValidationError as e:
        flash(str(e))
        return redirect(url_for("provider.menu", edit=menu_id))

    try:
        get_api().update_menu(menu_id, payload)
    except ApiError as e:
        flash(e.message or "Failed to update menu")
        return redirect(url_for("provider.menu", edit=menu_id))

    flash("Menu updated successfully")
    return redirect(url_for("provider.menu"))


@provider.post("/menu/delete/<menu_id>")
@login_required
@provider_required
def menu_delete(menu_id: str):
    user = current_user()
    try:
        get_api().delete_menu(menu_id, user.id)
        flash("Menu deleted successfully")
    except ApiError as e:
        flash(e.message or "Failed to delete menu")
    return redirect(url_for("provider.menu"))


# -----------------------
# Order queue
# -----------------------
@provider.get("/orders")
@login_required
@provider_required
def orders():
    user = current_user()
    day = request.args.get("date", "").strip() or None
    orders_list = fetch_or_flash(lambda: get_api().get_provider_orders(user.id, day), [], "orders")
    return render_template(
        "provider_orders.html",
        orders=orders_list,
        day=day,
        next_status=next_status,
        can_cancel=can_cancel,
    )


@provider.post("/orders/<order_id>/status")
@login_required
@provider_required
def order_status(order_id: str):
    user = current_user()
    api = get_api()
    target = request.form.get("status", "")
    back = url_for("provider.orders", date=request.form.get("date") or None)

    try:
        order = find_order(api.get_provider_orders(user.id), order_id)
    except ApiError as e:
        flash(e.message or "Failed to update order status")
        return redirect(back)

    if order is None:
        flash("Order not found.")
        return redirect(back)

    current = order.current_status
    try:
        new_status = advance(current, target)
    except (InvalidTransition, ValueError) as e:
        flash(str(e))
        return redirect(back)

    try:
        api.update_order_status(order_id, new_status.value)
    except ApiError as e:
        flash(e.message or "Failed to update order status")
        return redirect(back)

    log.info("Order %s moved to %s by provider %s", order_id, new_status.value, user.id)
    event = ORDER_CANCELLED if new_status is OrderStatus.CANCELLED else STATUS_CHANGED
    record_order_event(order_id, user.id, event, {"from": current, "to": new_status.value})

    flash(f"Order status updated to {new_status.label}")
    return redirect(back)


# -----------------------
# Analytics
# -----------------------
@provider.get("/analytics")
@login_required
@provider_required
def analytics():
    user = current_user()
    today = utc_today()

    period = request.args.get("period", "month")
    if period not in PERIODS:
        period = "month"
    try:
        year = int(request.args.get("year", today.year))
        month = int(request.args.get("month", today.month))
    except ValueError:
        year, month = today.year, today.month
    if not 1 <= month <= 12:
        month = today.month

    dash = load_dashboard(get_api(), user.id, year, month, period, today)
    for message in dash.errors.values():
        flash(message)

    daily_points = scale_series(dash.daily, CHART_WIDTH, CHART_HEIGHT)
    return render_template(
        "provider_analytics.html",
        dash=dash,
        period=period,
        periods=PERIODS,
        year=year,
        month=month,
        daily_points=daily_points,
        daily_line=polyline(daily_points),
        monthly_bars=bar_layout(dash.monthly, CHART_WIDTH, CHART_HEIGHT),
        chart_width=CHART_WIDTH,
        chart_height=CHART_HEIGHT,
    )


# -----------------------
# Account
# -----------------------
@provider.get("/profile")
@login_required
@provider_required
def profile():
    return render_template("provider_profile.html", user=current_user())


@provider.get("/about")
@login_required
@provider_required
def about():
    return render_template("about.html")
