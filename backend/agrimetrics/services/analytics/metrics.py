# backend/agrimetrics/services/analytics/metrics.py

"""
Metric builders: pure functions turning raw aggregates into metric,
chart and summary records. No I/O here.
"""

from typing import Iterable, Optional, Tuple

from agrimetrics.schemas.analytics import (
    AnalyticsMetric,
    AnalyticsChart,
    AnalyticsSummary,
    ChartPoint,
)

CURRENCY = "USD"


# ------------------------------------------
# arithmetic
# ------------------------------------------

def safe_div(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


def percent(numerator: float, denominator: float) -> float:
    return round(safe_div(numerator, denominator) * 100, 2)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def profit_margin(revenue: float, costs: float) -> float:
    return percent(revenue - costs, revenue)


def roi(revenue: float, costs: float) -> float:
    return percent(revenue - costs, costs)


# ------------------------------------------
# trend rules
# ------------------------------------------

def sign_trend(value: float) -> str:
    if value > 0:
        return "up"
    if value < 0:
        return "down"
    return "stable"


def band_trend(value: float, up_at: float, stable_at: float) -> str:
    if value >= up_at:
        return "up"
    if value >= stable_at:
        return "stable"
    return "down"


def compare_trend(current: float, previous: float, threshold: float = 5.0) -> str:
    if previous == 0:
        return "stable"
    change = (current - previous) / previous * 100
    if change > threshold:
        return "up"
    if change < -threshold:
        return "down"
    return "stable"


def change_against(current: float, previous: float) -> Tuple[float, float]:
    """(absolute change, percent change) of current vs previous."""
    return current - previous, percent(current - previous, previous)


# ------------------------------------------
# records
# ------------------------------------------

def metric(
    name: str,
    value: float,
    unit: str,
    trend: str,
    change: Optional[float] = None,
    change_percent: Optional[float] = None,
    target: Optional[float] = None,
) -> AnalyticsMetric:
    return AnalyticsMetric(
        name=name,
        value=value,
        unit=unit,
        trend=trend,
        change=change,
        change_percent=change_percent,
        target=target,
    )


def money_metric(name: str, value: float, previous: Optional[float] = None) -> AnalyticsMetric:
    """Currency metric; compared against the previous period when one is given."""
    if previous is None:
        return metric(name, value, CURRENCY, sign_trend(value))
    change, change_pct = change_against(value, previous)
    return metric(name, value, CURRENCY, compare_trend(value, previous), change, change_pct)


def _chart(kind: str, title: str, points: Iterable[Tuple[str, float]], x_axis: str, y_axis: str,
           timestamp: Optional[str] = None) -> AnalyticsChart:
    return AnalyticsChart(
        type=kind,
        title=title,
        data=[ChartPoint(label=label, value=value, timestamp=timestamp) for label, value in points],
        x_axis=x_axis,
        y_axis=y_axis,
    )


def bar_chart(title, points, x_axis="Category", y_axis=f"Amount ({CURRENCY})", timestamp=None):
    return _chart("bar", title, points, x_axis, y_axis, timestamp)


def pie_chart(title, points, x_axis="Category", y_axis=f"Amount ({CURRENCY})", timestamp=None):
    return _chart("pie", title, points, x_axis, y_axis, timestamp)


def line_chart(title, points, x_axis="Date", y_axis=f"Amount ({CURRENCY})"):
    return _chart("line", title, points, x_axis, y_axis)


def build_summary(
    revenue: float,
    costs: float,
    efficiency: Optional[float] = None,
    sustainability: Optional[float] = None,
) -> AnalyticsSummary:
    # net_profit is computed from the same two numbers it is reported beside
    return AnalyticsSummary(
        total_revenue=revenue,
        total_costs=costs,
        net_profit=revenue - costs,
        profit_margin=profit_margin(revenue, costs),
        roi=roi(revenue, costs),
        efficiency=efficiency,
        sustainability=sustainability,
    )


def default_summary() -> AnalyticsSummary:
    return AnalyticsSummary()
