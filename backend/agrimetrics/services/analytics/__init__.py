# backend/agrimetrics/services/analytics/__init__.py

from .date_range import resolve_date_range, previous_period
from .validation import validate_query, validate_export_request, validate_report_request
from .cache_keys import query_hash, analytics_cache_key
from .sustainability import SustainabilityScorer
from .aggregator_service import AnalyticsService
from .jobs import AnalyticsJobService, InMemoryJobQueue

__all__ = [
    "resolve_date_range",
    "previous_period",
    "validate_query",
    "validate_export_request",
    "validate_report_request",
    "query_hash",
    "analytics_cache_key",
    "SustainabilityScorer",
    "AnalyticsService",
    "AnalyticsJobService",
    "InMemoryJobQueue",
]
