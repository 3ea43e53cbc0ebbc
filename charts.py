"""
Chart geometry for the analytics screen.

Pure presentation math: series in, pixel coordinates out. The SVG templates
draw whatever these functions return.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

HIT_RADIUS = 24.0
DEFAULT_PADDING = 20.0


@dataclass(frozen=True)
class ChartPoint:
    x: float
    y: float
    label: str
    value: float


@dataclass(frozen=True)
class Bar:
    x: float
    y: float
    width: float
    height: float
    label: str
    value: float


def _pairs(series: Iterable) -> list[tuple[str, float]]:
    pairs = []
    for item in series:
        if isinstance(item, tuple):
            label, value = item
        else:
            label, value = item.label, item.revenue
        pairs.append((str(label), float(value or 0)))
    return pairs


def scale_series(series, width: float, height: float, padding: float = DEFAULT_PADDING) -> list[ChartPoint]:
    """Map (label, revenue) pairs onto a width x height canvas (y grows downwards)."""
    pairs = _pairs(series)
    if not pairs:
        return []

    usable_w = max(width - 2 * padding, 0)
    usable_h = max(height - 2 * padding, 0)
    values = [v for _, v in pairs]
    lo, hi = min(values), max(values)
    span = hi - lo

    points = []
    n = len(pairs)
    for i, (label, value) in enumerate(pairs):
        if n == 1:
            x = padding + usable_w / 2
        else:
            x = padding + usable_w * i / (n - 1)

        if span == 0:
            y = padding + usable_h / 2
        else:
            y = padding + usable_h * (1 - (value - lo) / span)

        points.append(ChartPoint(x=round(x, 2), y=round(y, 2), label=label, value=value))
    return points


def bar_layout(series, width: float, height: float, padding: float = DEFAULT_PADDING, gap: float = 8.0) -> list[Bar]:
    pairs = _pairs(series)
    if not pairs:
        return []

    usable_w = max(width - 2 * padding, 0)
    usable_h = max(height - 2 * padding, 0)
    n = len(pairs)
    bar_w = max((usable_w - gap * (n - 1)) / n, 1.0)
    top = max(max(v for _, v in pairs), 0)

    bars = []
    for i, (label, value) in enumerate(pairs):
        h = usable_h * value / top if top > 0 and value > 0 else 0.0
        x = padding + i * (bar_w + gap)
        bars.append(
            Bar(
                x=round(x, 2),
                y=round(padding + usable_h - h, 2),
                width=round(bar_w, 2),
                height=round(h, 2),
                label=label,
                value=value,
            )
        )
    return bars


def nearest_point(points: Sequence[ChartPoint], x: float, y: float | None = None, radius: float = HIT_RADIUS) -> ChartPoint | None:
    """
    The plotted point closest to a touch/drag position, if one is within ``radius``.

    Without ``y`` only the horizontal distance counts, which is what a
    horizontal drag along a line chart needs.
    """
    best = None
    best_dist = math.inf
    for p in points:
        if y is None:
            dist = abs(p.x - x)
        else:
            dist = math.hypot(p.x - x, p.y - y)
        if dist < best_dist:
            best, best_dist = p, dist

    if best is None or best_dist > radius:
        return None
    return best


def polyline(points: Iterable[ChartPoint]) -> str:
    return " ".join(f"{p.x:g},{p.y:g}" for p in points)
