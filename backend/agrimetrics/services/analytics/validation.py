# backend/agrimetrics/services/analytics/validation.py

import re
from datetime import datetime, timezone
from typing import Optional, Tuple

from agrimetrics.core.exceptions import ValidationError
from agrimetrics.models.farming import ActivityType
from agrimetrics.schemas.analytics import AnalyticsQuery, ExportRequest, ReportRequest
from agrimetrics.services.analytics.date_range import PERIODS

MAX_RANGE_YEARS = 2

# uuid or cuid-style identifiers
ID_PATTERN = re.compile(
    r"^(?:[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
    r"|c[a-z0-9]{20,31})$"
)
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

EXPORT_TYPES = ("dashboard", "financial", "activities", "market", "farm-to-market")
EXPORT_FORMATS = ("csv", "excel", "json")
REPORT_TYPES = ("financial", "operational", "market", "sustainability", "comprehensive")
REPORT_FORMATS = ("pdf", "html", "excel")
ACTIVITY_TYPES = tuple(t.value for t in ActivityType)


def is_valid_id(value: str) -> bool:
    return bool(ID_PATTERN.match(value or ""))


def parse_datetime(value: str) -> datetime:
    """ISO-8601 date or datetime, normalized to naive UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _add_years(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        # Feb 29 -> Feb 28
        return moment.replace(year=moment.year + years, day=28)


def _check_period(period: Optional[str]) -> None:
    if period is not None and period not in PERIODS:
        raise ValidationError(f"Invalid period '{period}'. Must be one of: {', '.join(PERIODS)}")


def _check_id(value: Optional[str], field: str = "farmId") -> None:
    if value is not None and not is_valid_id(value):
        raise ValidationError(f"Invalid {field} format")


def custom_range(query: AnalyticsQuery) -> Optional[Tuple[datetime, datetime]]:
    """Parsed (start, end) when both startDate and endDate are given."""
    if not (query.start_date and query.end_date):
        return None
    try:
        return parse_datetime(query.start_date), parse_datetime(query.end_date)
    except ValueError:
        raise ValidationError("Invalid date format. Use ISO-8601 dates")


def validate_query(query: Optional[AnalyticsQuery]) -> None:
    if query is None:
        raise ValidationError("Query parameters are required")

    _check_period(query.period)
    _check_id(query.farm_id)
    _check_id(getattr(query, "commodity_id", None), "commodityId")

    activity_type = getattr(query, "activity_type", None)
    if activity_type is not None and activity_type.upper() not in ACTIVITY_TYPES:
        raise ValidationError(f"Invalid activityType '{activity_type}'")

    window = custom_range(query)
    if window is not None:
        start, end = window
        if start > end:
            raise ValidationError("Start date must be before end date")
        if end > _add_years(start, MAX_RANGE_YEARS):
            raise ValidationError(f"Date range cannot exceed {MAX_RANGE_YEARS} years")


def validate_export_request(request: Optional[ExportRequest]) -> None:
    if request is None:
        raise ValidationError("Export request body is required")
    if request.type not in EXPORT_TYPES:
        raise ValidationError(f"Invalid export type '{request.type}'. Must be one of: {', '.join(EXPORT_TYPES)}")
    if request.format not in EXPORT_FORMATS:
        raise ValidationError(f"Invalid export format '{request.format}'. Must be one of: {', '.join(EXPORT_FORMATS)}")
    _check_period(request.period)
    _check_id(request.farm_id)


def validate_report_request(request: Optional[ReportRequest]) -> None:
    if request is None:
        raise ValidationError("Report request body is required")
    if not request.title or not request.title.strip():
        raise ValidationError("Report title is required")
    if request.type not in REPORT_TYPES:
        raise ValidationError(f"Invalid report type '{request.type}'. Must be one of: {', '.join(REPORT_TYPES)}")
    if request.format not in REPORT_FORMATS:
        raise ValidationError(f"Invalid report format '{request.format}'. Must be one of: {', '.join(REPORT_FORMATS)}")
    _check_period(request.period)

    for farm_id in request.farm_ids:
        _check_id(farm_id, "farmIds entry")
    for commodity_id in request.commodities or []:
        _check_id(commodity_id, "commodities entry")
    for recipient in request.recipients or []:
        if not EMAIL_PATTERN.match(recipient):
            raise ValidationError(f"Invalid recipient email '{recipient}'")
