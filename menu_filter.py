import logging
from datetime import date, datetime, timezone
from typing import Iterable

from models import Menu

log = logging.getLogger(__name__)


def menu_day(value) -> date | None:
    """
    Calendar day of a menu date.

    Only the ``YYYY-MM-DD`` part is read, so ``2026-10-19T23:30:00+05:30`` is
    the 19th no matter which timezone the backend stamped it in.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    day_part = str(value).strip().split("T")[0].split(" ")[0]
    try:
        return date.fromisoformat(day_part)
    except ValueError:
        return None


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def is_available(menu: Menu) -> bool:
    # An isActive key that is present hides the menu unless it is truthy, null included.
    if "is_active" in menu.model_fields_set and not menu.is_active:
        return False
    if menu.deleted_at:
        return False
    return True


def menus_for_day(menus: Iterable[Menu], day: date) -> list[Menu]:
    selected = []
    for menu in menus:
        if not is_available(menu):
            log.debug("Menu %s skipped (inactive or deleted)", menu.id)
            continue
        if menu_day(menu.date) != day:
            continue
        selected.append(menu)
    return selected


def todays_menus(menus: Iterable[Menu], today: date | None = None) -> list[Menu]:
    return menus_for_day(menus, today or utc_today())


def menus_for_provider(menus: Iterable[Menu], provider_id: str) -> list[Menu]:
    wanted = str(provider_id)
    return [m for m in menus if m.provider_id and str(m.provider_id) == wanted]
