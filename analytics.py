import calendar
import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable

from pydantic import ValidationError

from api_client import ApiError
from menu_filter import utc_today
from models import AnalyticsSummary, AverageOrderValue, BestSeller, GrowthRate, Order, RevenueBucket
from order_status import OrderStatus

log = logging.getLogger(__name__)

PERIODS = ("today", "week", "month", "year", "all")


@dataclass
class Dashboard:
    summary: AnalyticsSummary | None = None
    growth: GrowthRate | None = None
    average: AverageOrderValue | None = None
    monthly: list[RevenueBucket] = field(default_factory=list)
    daily: list[RevenueBucket] = field(default_factory=list)
    best_sellers: list[BestSeller] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)


def period_range(period: str, today: date) -> tuple[date | None, date | None]:
    """Inclusive (start, end) for a dashboard period; ``all`` is unbounded."""
    if period == "today":
        return today, today
    if period == "week":
        return today - timedelta(days=6), today
    if period == "month":
        return today.replace(day=1), today.replace(day=calendar.monthrange(today.year, today.month)[1])
    if period == "year":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    if period == "all":
        return None, None
    raise ValueError(f"Unknown period: {period}")


def _iso(d: date | None) -> str | None:
    return d.isoformat() if d else None


def load_dashboard(api, provider_id: str, year: int, month: int,
                   period: str = "month", today: date | None = None) -> Dashboard:
    """
    Fetch every analytics panel at once.

    The requests are independent: a failed panel stays empty and its message
    lands in ``Dashboard.errors`` while the others still render.
    """
    start, end = period_range(period, today or utc_today())
    jobs = {
        "summary": lambda: api.analytics_summary(provider_id, _iso(start), _iso(end)),
        "growth": lambda: api.analytics_growth_rate(provider_id),
        "average": lambda: api.analytics_average_order_value(provider_id, _iso(start), _iso(end)),
        "monthly": lambda: api.analytics_monthly_revenue(provider_id, year),
        "daily": lambda: api.analytics_daily_revenue(provider_id, year, month),
        "best_sellers": lambda: api.analytics_best_sellers(provider_id, 5, _iso(start), _iso(end)),
    }

    dashboard = Dashboard()
    with ThreadPoolExecutor(max_workers=len(jobs)) as pool:
        futures = {name: pool.submit(fn) for name, fn in jobs.items()}
        for name, future in futures.items():
            try:
                setattr(dashboard, name, future.result())
            except ApiError as e:
                log.warning("Analytics panel %s failed: %s", name, e.message)
                dashboard.errors[name] = e.message
            except ValidationError as e:
                log.warning("Analytics panel %s returned malformed data: %s", name, e.errors()[:1])
                dashboard.errors[name] = f"Failed to load {name.replace('_', ' ')}"

    return dashboard


def rank_best_sellers(orders: Iterable[Order], limit: int = 5) -> list[BestSeller]:
    """Best sellers over orders already on screen, by quantity then revenue."""
    qty = defaultdict(int)
    revenue = defaultdict(float)

    for order in orders:
        if order.current_status == OrderStatus.CANCELLED.value:
            continue
        for item in order.items:
            key = (item.meal_type, item.sabji or None)
            qty[key] += item.quantity
            revenue[key] += item.total_price or item.price_per_unit * item.quantity

    ranked = sorted(qty, key=lambda k: (qty[k], revenue[k]), reverse=True)
    return [
        BestSeller(mealType=k[0], sabji=k[1], quantity=qty[k], revenue=revenue[k])
        for k in ranked[:limit]
    ]


def revenue_of(orders: Iterable[Order]) -> float:
    return sum(o.grand_total for o in orders if o.current_status != OrderStatus.CANCELLED.value)
