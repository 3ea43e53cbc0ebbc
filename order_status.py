from dataclasses import dataclass
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value) -> "OrderStatus":
        """A missing status means the order was never touched, i.e. pending."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.PENDING
        return cls(str(value).strip().lower())

    @property
    def label(self) -> str:
        return STATUS_STYLES[self].label


class InvalidTransition(ValueError):
    def __init__(self, current: OrderStatus, target: OrderStatus):
        super().__init__(f"Cannot move an order from {current.value} to {target.value}")
        self.current = current
        self.target = target


# Linear progression; None marks a terminal state.
STATUS_FLOW: dict[OrderStatus, OrderStatus | None] = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.DELIVERED,
    OrderStatus.DELIVERED: None,
    OrderStatus.CANCELLED: None,
}

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def _coerce(status) -> OrderStatus | None:
    try:
        return OrderStatus.parse(status)
    except ValueError:
        return None


def next_status(current) -> OrderStatus | None:
    status = _coerce(current)
    if status is None:
        return None
    return STATUS_FLOW[status]


def can_transition(current, target) -> bool:
    status = _coerce(current)
    wanted = _coerce(target)
    if status is None or wanted is None:
        return False
    return wanted in ALLOWED_TRANSITIONS[status]


def can_cancel(current) -> bool:
    return can_transition(current, OrderStatus.CANCELLED)


def is_terminal(status) -> bool:
    parsed = _coerce(status)
    return parsed is not None and not ALLOWED_TRANSITIONS[parsed]


def advance(current, target) -> OrderStatus:
    status = OrderStatus.parse(current)
    wanted = OrderStatus.parse(target)
    if wanted not in ALLOWED_TRANSITIONS[status]:
        raise InvalidTransition(status, wanted)
    return wanted


# -----------------------
# Display attributes shared by every screen
# -----------------------
@dataclass(frozen=True)
class StatusStyle:
    label: str
    color_key: str


STATUS_STYLES: dict[OrderStatus, StatusStyle] = {
    OrderStatus.PENDING: StatusStyle("Pending", "brand2"),
    OrderStatus.CONFIRMED: StatusStyle("Confirmed", "accent"),
    OrderStatus.PREPARING: StatusStyle("Preparing", "brand"),
    OrderStatus.READY: StatusStyle("Ready", "info"),
    OrderStatus.DELIVERED: StatusStyle("Delivered", "accent"),
    OrderStatus.CANCELLED: StatusStyle("Cancelled", "danger"),
}

UNKNOWN_STYLE = StatusStyle("Unknown", "muted")


def status_style(status) -> StatusStyle:
    parsed = _coerce(status)
    if parsed is None:
        return UNKNOWN_STYLE
    return STATUS_STYLES[parsed]
