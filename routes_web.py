import logging
from urllib.parse import urlsplit

from flask import Blueprint, render_template, request, redirect, url_for, session, flash

from api_client import ApiError
from auth import (
    current_session, current_user, get_api, home_for, logout_user,
    login_required, customer_required, password_checks,
    validate_password_change, validate_signup,
)
from firestore_db import ORDER_CANCELLED, ORDER_PLACED, record_order_event
from menu_filter import todays_menus
from order_status import OrderStatus, can_cancel, is_terminal
from pricing import (
    LineRequest, MealType, OrderValidationError,
    normalize_line, order_payload, parse_meal_type, quote_order, whole_quantity,
)
from theme import other_theme

log = logging.getLogger(__name__)

web = Blueprint("web", __name__)

SUPPORT_PHONES = ["+91 9356832376", "+91 8421713789"]
SUPPORT_EMAILS = ["support@tiffinhub.com", "info@tiffinhub.com"]

CUSTOMER_FAQS = [
    ("How do I place an order?",
     "Open the Menu tab, pick one of today's menus, choose a meal type (Full, Half or Rice Only) "
     "and a sabji for each item, then place the order. The total is shown before you confirm."),
    ("Can I order for multiple days?",
     "Only today's menus can be ordered. Check back daily for the updated menu."),
    ("How do I track my order?",
     "The Orders tab shows every order with its status: Pending, Confirmed, Preparing, Ready, Delivered."),
    ("What payment methods are accepted?",
     "Payment methods vary by provider. Most providers accept cash on delivery."),
    ("Can I cancel my order?",
     "Yes, as long as the provider has not confirmed it yet. Use the Cancel button on the order."),
    ("How do I change my delivery address?",
     "Your address is part of your profile. Contact support to have it updated."),
    ("What if I receive the wrong order?",
     "Contact the provider straight away, or reach us through the Contact Us page."),
    ("How do I save my favorite providers?",
     "Tap the heart next to a provider on the Providers page. They show up under Favorites."),
    ("Can I see my order history?",
     "The History page lists your delivered and cancelled orders."),
    ("What should I do if I have a complaint?",
     "Send us a message from the Contact Us page or call our support team."),
]

PROVIDER_FAQS = [
    ("How do I add or update my menu?",
     "Open the Menu tab and use Add Menu to publish a menu for a date with its sabjis and the "
     "Full, Half and Rice Only prices. Existing menus can be edited or deleted from the same list."),
    ("How do I manage orders?",
     "The Orders tab lists incoming orders. Move each one along: Pending, Confirmed, Preparing, "
     "Ready, Delivered."),
    ("How do I view my analytics?",
     "The Analytics tab shows the overall summary, growth rate, average order value, daily and "
     "monthly revenue and your best sellers."),
    ("How do I handle cancellations?",
     "Pending orders can be cancelled from the Orders tab. Once confirmed, an order follows the "
     "normal flow until it is delivered."),
    ("Can I set different prices for different meal types?",
     "Yes. Every menu carries its own Full, Half and Rice Only prices."),
    ("How do I track my revenue?",
     "Use the period selector on the Analytics tab to see revenue for today, the last week, the "
     "month, the year or all time."),
    ("How do I see which items are selling best?",
     "Best Sellers on the dashboard and on the Analytics tab rank meal type and sabji combinations."),
]


def _local_path(target: str | None) -> str | None:
    """``target`` when it is a path on this site, else None."""
    if not target or "\\" in target:
        return None
    parts = urlsplit(target)
    if parts.scheme or parts.netloc or not target.startswith("/") or target.startswith("//"):
        return None
    return target


def fetch_or_flash(fn, default, what: str):
    """Run one backend read for a screen; on failure alert and fall back to ``default``."""
    try:
        return fn()
    except ApiError as e:
        log.error("Error loading %s: %s", what, e.message)
        if e.message and "Server error" not in e.message:
            flash(e.message)
        return default


# -----------------------
# Entry + theme
# -----------------------
@web.get("/")
def index():
    return redirect(home_for(current_user()))


@web.post("/theme/toggle")
def toggle_theme():
    session["theme"] = other_theme(session.get("theme"))
    return redirect(request.referrer or url_for("web.index"))


# -----------------------
# Auth
# -----------------------
@web.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        email = request.form.get("email", "").strip().lower()
        pw = request.form.get("password", "")

        if not email or not pw:
            flash("Please enter your email and password.")
            return redirect(url_for("web.login"))

        try:
            user = get_api().login(email, pw)
        except ApiError as e:
            flash(e.message or "Invalid login.")
            return redirect(url_for("web.login"))

        if not user:
            flash("Invalid login.")
            return redirect(url_for("web.login"))

        current_session().store(user)
        flash("Logged in.")
        return redirect(home_for(user))

    return render_template("login.html")


@web.route("/signup", methods=["GET", "POST"])
def signup():
    if request.method == "POST":
        form = {
            "email": request.form.get("email", "").strip().lower(),
            "name": request.form.get("name", "").strip(),
            "mobile": request.form.get("mobile", "").strip(),
            "password": request.form.get("password", ""),
            "address": request.form.get("address", "").strip(),
        }

        errors = validate_signup(**form)
        if errors:
            for e in errors:
                flash(e)
            return render_template("signup.html", data={k: v for k, v in form.items() if k != "password"})

        try:
            get_api().generate_otp(form["email"])
        except ApiError as e:
            flash(e.message or "Failed to send OTP")
            return render_template("signup.html", data={k: v for k, v in form.items() if k != "password"})

        session["signup"] = form
        flash(f"We sent a verification code to {form['email']}.")
        return redirect(url_for("web.otp"))

    return render_template("signup.html", data={})


@web.route("/otp", methods=["GET", "POST"])
def otp():
    pending = session.get("signup")
    if not pending:
        flash("Please sign up first.")
        return redirect(url_for("web.signup"))

    if request.method == "POST":
        code = request.form.get("otp", "").strip()
        if len(code) != 6 or not code.isdigit():
            flash("Please enter the complete OTP")
            return redirect(url_for("web.otp"))

        user_data = {
            "name": pending["name"],
            "mobile": pending["mobile"],
            "password": pending["password"],
            "address": pending["address"],
            "role": "user",
        }
        try:
            user = get_api().verify_otp(pending["email"], code, user_data)
        except ApiError as e:
            flash(e.message or "Invalid OTP")
            return redirect(url_for("web.otp"))

        session.pop("signup", None)
        if user:
            current_session().store(user)
        flash("Account verified.")
        return redirect(home_for(user))

    return render_template("otp.html", email=pending["email"])


@web.post("/otp/resend")
def otp_resend():
    pending = session.get("signup")
    if not pending:
        return redirect(url_for("web.signup"))

    try:
        get_api().generate_otp(pending["email"])
        flash("OTP has been resent to your email")
    except ApiError as e:
        flash(e.message or "Failed to resend OTP")
    return redirect(url_for("web.otp"))


@web.get("/logout")
def logout():
    logout_user()
    flash("Logged out.")
    return redirect(url_for("web.login"))


# -----------------------
# Customer home
# -----------------------
@web.get("/home")
@login_required
@customer_required
def home():
    return render_template("home.html", user=current_user())


# -----------------------
# Menus + ordering
# -----------------------
@web.get("/menu")
@login_required
@customer_required
def menu():
    menus = fetch_or_flash(get_api().get_menus, [], "menus")
    return render_template("menu.html", menus=todays_menus(menus))


def _find_menu(menu_id: str):
    menus = fetch_or_flash(get_api().get_menus, [], "menus")
    for m in todays_menus(menus):
        if m.id == menu_id:
            return m
    return None


def _lines_from_form(sabjis) -> list[LineRequest]:
    meal_types = request.form.getlist("meal_type")
    chosen = request.form.getlist("sabji")
    quantities = request.form.getlist("quantity")

    lines = []
    for i, raw_type in enumerate(meal_types):
        line = LineRequest(
            meal_type=parse_meal_type(raw_type),
            quantity=whole_quantity(quantities[i]) if i < len(quantities) else 1,
            sabji=(chosen[i] if i < len(chosen) else None) or None,
        )
        lines.append(normalize_line(line, sabjis))
    return lines


@web.route("/menu/<menu_id>/order", methods=["GET", "POST"])
@login_required
@customer_required
def order_menu(menu_id: str):
    menu = _find_menu(menu_id)
    if not menu:
        flash("This menu is no longer available.")
        return redirect(url_for("web.menu"))

    if not menu.sabjis:
        flash("This menu has no sabjis available")
        return redirect(url_for("web.menu"))

    if request.method == "GET":
        lines = [LineRequest(MealType.FULL, 1, menu.sabjis[0])]
        return _render_order_form(menu, lines)

    action = request.form.get("action", "update")
    try:
        lines = _lines_from_form(menu.sabjis)
    except OrderValidationError as e:
        flash(str(e))
        return _render_order_form(menu, [LineRequest(MealType.FULL, 1, menu.sabjis[0])])

    if action == "add":
        lines.append(LineRequest(MealType.FULL, 1, menu.sabjis[0]))
        return _render_order_form(menu, lines)

    if action.startswith("remove:"):
        idx = int(action.split(":", 1)[1]) if action[7:].isdigit() else -1
        if len(lines) > 1 and 0 <= idx < len(lines):
            lines.pop(idx)
        return _render_order_form(menu, lines)

    if action != "place":
        return _render_order_form(menu, lines)

    try:
        quote = quote_order(menu.prices, lines, menu.sabjis)
    except OrderValidationError as e:
        flash(str(e))
        return _render_order_form(menu, lines)

    user = current_user()
    try:
        order = get_api().place_order(user.id, menu.id, order_payload(lines))
    except ApiError as e:
        flash(e.message or "Failed to place order")
        return _render_order_form(menu, lines)

    order_id = order.id if order else ""
    record_order_event(order_id, user.id, ORDER_PLACED, {
        "menu_id": menu.id,
        "grand_total": quote.grand_total,
        "items": order_payload(lines),
    })

    flash("Order placed successfully!")
    return redirect(url_for("web.orders"))


def _render_order_form(menu, lines):
    try:
        quote = quote_order(menu.prices, lines, menu.sabjis)
        total = quote.grand_total
    except OrderValidationError:
        quote, total = None, None
    return render_template(
        "order_form.html",
        menu=menu,
        lines=lines,
        quote=quote,
        total=total,
        meal_types=list(MealType),
    )


# -----------------------
# Orders
# -----------------------
@web.get("/orders")
@login_required
@customer_required
def orders():
    day = request.args.get("date", "").strip() or None
    user = current_user()
    orders_list = fetch_or_flash(lambda: get_api().get_orders(user.id, day), [], "orders")
    return render_template("orders.html", orders=orders_list, day=day, can_cancel=can_cancel)


def find_order(orders, order_id: str):
    return next((o for o in orders if o.id == order_id), None)


@web.post("/orders/<order_id>/cancel")
@login_required
@customer_required
def cancel_order(order_id: str):
    user = current_user()
    api = get_api()

    try:
        order = find_order(api.get_orders(user.id), order_id)
    except ApiError as e:
        flash(e.message or "Failed to cancel order")
        return redirect(url_for("web.orders"))

    if order is None:
        flash("Order not found.")
        return redirect(url_for("web.orders"))

    current = order.current_status
    if not can_cancel(current):
        flash("Only pending orders can be cancelled.")
        return redirect(url_for("web.orders"))

    try:
        api.cancel_order(order_id, user.id)
    except ApiError as e:
        flash(e.message or "Failed to cancel order")
        return redirect(url_for("web.orders"))

    record_order_event(order_id, user.id, ORDER_CANCELLED, {"from": current})
    flash("Order cancelled.")
    return redirect(url_for("web.orders"))


@web.get("/history")
@login_required
@customer_required
def history():
    user = current_user()
    orders_list = fetch_or_flash(lambda: get_api().get_orders(user.id), [], "orders")
    past = [o for o in orders_list if is_terminal(o.current_status)]
    delivered = [o for o in past if o.current_status == OrderStatus.DELIVERED.value]
    return render_template(
        "history.html",
        orders=past,
        delivered_count=len(delivered),
        spent=sum(o.grand_total for o in delivered),
    )


# -----------------------
# Providers + favorites
# -----------------------
@web.get("/providers")
@login_required
@customer_required
def providers():
    user = current_user()
    q = request.args.get("q", "").strip().lower()

    providers_list = fetch_or_flash(get_api().get_providers, [], "providers")
    favorites = fetch_or_flash(lambda: get_api().get_favorites(user.id), [], "favorites")
    favorite_ids = {p.id for p in favorites}

    if q:
        providers_list = [p for p in providers_list if q in p.name.lower() or q in p.email.lower()]

    return render_template("providers.html", providers=providers_list, favorite_ids=favorite_ids, q=q)


@web.post("/providers/<provider_id>/favorite")
@login_required
@customer_required
def toggle_favorite(provider_id: str):
    user = current_user()
    is_favorite = request.form.get("favorite") == "1"

    try:
        if is_favorite:
            get_api().remove_favorite(user.id, provider_id)
        else:
            get_api().add_favorite(user.id, provider_id)
    except ApiError as e:
        flash(e.message or "Failed to update favorite")

    return redirect(_local_path(request.form.get("next")) or url_for("web.providers"))


@web.get("/favorites")
@login_required
@customer_required
def favorites():
    user = current_user()
    favorites_list = fetch_or_flash(lambda: get_api().get_favorites(user.id), [], "favorites")
    return render_template("favorites.html", providers=favorites_list)


@web.post("/favorites/<provider_id>/remove")
@login_required
@customer_required
def remove_favorite(provider_id: str):
    user = current_user()
    try:
        get_api().remove_favorite(user.id, provider_id)
        flash(f"Removed {request.form.get('name') or 'provider'} from favorites.")
    except ApiError as e:
        flash(e.message or "Failed to remove favorite")
    return redirect(url_for("web.favorites"))


# -----------------------
# Account (both roles)
# -----------------------
@web.get("/profile")
@login_required
def profile():
    user = current_user()
    if user.is_provider:
        return redirect(url_for("provider.profile"))
    return render_template("profile.html", user=user)


@web.route("/security", methods=["GET", "POST"])
@login_required
def security():
    if request.method == "POST":
        current = request.form.get("current_password", "")
        new = request.form.get("new_password", "")
        confirm = request.form.get("confirm_password", "")

        errors = validate_password_change(current, new, confirm)
        if errors:
            for e in errors:
                flash(e)
            return render_template("security.html", checks=password_checks(new) if new else None)

        try:
            get_api().update_password(current_user().id, current, new)
        except ApiError as e:
            flash(e.message or "Failed to update password")
            return render_template("security.html", checks=None)

        flash("Password updated successfully")
        return redirect(url_for("web.security"))

    return render_template("security.html", checks=None)


@web.get("/help")
@login_required
def help_page():
    faqs = PROVIDER_FAQS if current_user().is_provider else CUSTOMER_FAQS
    return render_template("help.html", faqs=faqs)


@web.route("/contact", methods=["GET", "POST"])
@login_required
def contact():
    if request.method == "POST":
        subject = request.form.get("subject", "").strip()
        message = request.form.get("message", "").strip()

        if not subject or not message:
            flash("Please fill in both subject and message")
            return render_template("contact.html", subject=subject, message=message,
                                   phones=SUPPORT_PHONES, emails=SUPPORT_EMAILS)

        try:
            get_api().contact(current_user().id, subject, message)
        except ApiError as e:
            flash(e.message or "Failed to send message")
            return render_template("contact.html", subject=subject, message=message,
                                   phones=SUPPORT_PHONES, emails=SUPPORT_EMAILS)

        flash("Message sent. We will get back to you soon.")
        return redirect(url_for("web.contact"))

    return render_template("contact.html", subject="", message="", phones=SUPPORT_PHONES, emails=SUPPORT_EMAILS)
