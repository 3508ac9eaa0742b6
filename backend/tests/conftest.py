# Pytest configuration and fixtures
import os
import tempfile

# settings, engine and log handlers are built on import: configure first
_TMP_DIR = tempfile.mkdtemp(prefix="agrimetrics-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'app.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.pop("REDIS_URL", None)
os.environ.pop("INSIGHT_SERVICE_URL", None)

from datetime import datetime

import pytest

from agrimetrics.core.auth import Caller
from agrimetrics.core.cache import MemoryCache
from agrimetrics.crud.analytics import (
    ActivityCounts,
    AmountTotal,
    CropCycleCounts,
    CustomerRepeat,
    OrderTotals,
)
from agrimetrics.services.analytics import AnalyticsService
from agrimetrics.services.analytics.insights import InsightResult

NOW = datetime(2024, 5, 15, 12, 0, 0)
ORG_ID = "0b6f4c1e-8d7a-4c55-9d3e-2f1a6b7c8d90"
OTHER_ORG_ID = "5e2d9a77-1c3b-4f0e-8a6d-9b4c3e2f1a05"
FARM_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
USER_ID = "user-1"


class FakeRepository:
    """In-memory stand-in for AnalyticsRepository with canned aggregates."""

    def __init__(self):
        self.calls = []
        self.error = None
        self.farms = {(ORG_ID, FARM_ID)}
        # current window (lte == NOW) vs any earlier window
        self.totals = {}
        self.previous_totals = {}
        self.activity_total = 0
        self.sustainable_activities = 0
        self.counts = ActivityCounts(total=0, completed=0, in_progress=0)
        self.by_type = {}
        self.by_farm = {}
        self.orders = []
        self.totals_of_orders = OrderTotals(total_sales=0, average_value=0, order_count=0, customer_count=0)
        self.repeat = CustomerRepeat(customers=0, repeat_customers=0)
        self.overall_price = 0.0
        self.recent_price = 0.0
        self.order_count = 0
        self.cycles = CropCycleCounts(total=0, completed=0, total_yield=0.0, pending_expected_yield=0.0)
        self.harvests = 0

    def _record(self, name):
        self.calls.append(name)
        if self.error is not None:
            raise self.error

    async def farm_exists(self, organization_id, farm_id):
        self._record("farm_exists")
        return (organization_id, farm_id) in self.farms

    async def sum_transactions(self, where, tx_type):
        self._record("sum_transactions")
        current = where.created_at is None or where.created_at.lte == NOW
        source = self.totals if current else self.previous_totals
        total = source.get(tx_type, 0.0)
        return AmountTotal(total=total, count=1 if total else 0)

    async def expenses_by_farm(self, where, tx_type):
        self._record("expenses_by_farm")
        return dict(self.by_farm)

    async def count_activities(self, where, activity_types=None, statuses=None):
        self._record("count_activities")
        return self.sustainable_activities if activity_types else self.activity_total

    async def activity_counts(self, where, activity_type=None):
        self._record("activity_counts")
        return self.counts

    async def activities_by_type(self, where):
        self._record("activities_by_type")
        return dict(self.by_type)

    async def sample_orders(self, where, limit=100, commodity_id=None):
        self._record("sample_orders")
        return list(self.orders[:limit])

    async def order_totals(self, where, commodity_id=None):
        self._record("order_totals")
        return self.totals_of_orders

    async def customer_repeat(self, where, commodity_id=None):
        self._record("customer_repeat")
        return self.repeat

    async def average_price(self, where, commodity_id=None, since=None):
        self._record("average_price")
        return self.recent_price if since is not None else self.overall_price

    async def count_orders(self, where, commodity_id=None):
        self._record("count_orders")
        return self.order_count

    async def crop_cycle_counts(self, where, commodity_id=None):
        self._record("crop_cycle_counts")
        return self.cycles

    async def count_harvests(self, where, commodity_id=None):
        self._record("count_harvests")
        return self.harvests


class FakeInsightGateway:
    model = "gpt-4"

    def __init__(self, result=None, error=None):
        self.calls = []
        self.result = result or InsightResult(
            insights=["Revenue is trending up."],
            recommendations=["Keep irrigation on schedule."],
            confidence=0.85,
        )
        self.error = error

    async def generate(self, farm_id, analysis_type, data, user_id):
        self.calls.append({"farm_id": farm_id, "analysis_type": analysis_type, "data": data, "user_id": user_id})
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def repo():
    return FakeRepository()


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def gateway():
    return FakeInsightGateway()


@pytest.fixture
def caller():
    return Caller(
        user_id=USER_ID,
        organization_id=ORG_ID,
        permissions=frozenset({"analytics:read", "finance:read", "market:read"}),
    )


@pytest.fixture
def service(repo, cache, gateway):
    return AnalyticsService(repo, cache, gateway, clock=lambda: NOW)
