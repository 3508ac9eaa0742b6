# backend/agrimetrics/services/analytics/cache_keys.py

import hashlib
import json

from agrimetrics.schemas.analytics import AnalyticsQuery
from agrimetrics.services.analytics.date_range import DEFAULT_PERIOD

# flags that change how a result is served, not what it contains
_NON_SEMANTIC_FIELDS = {"use_cache"}


def query_hash(query: AnalyticsQuery) -> str:
    """Stable digest: the same logical query always yields the same string."""
    fields = query.model_dump(exclude=_NON_SEMANTIC_FIELDS)
    fields["period"] = fields.get("period") or DEFAULT_PERIOD
    fields["__kind__"] = type(query).__name__
    canonical = json.dumps(fields, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def analytics_cache_key(module: str, organization_id: str, query: AnalyticsQuery) -> str:
    return f"analytics:{module}:{organization_id}:{query_hash(query)}"
