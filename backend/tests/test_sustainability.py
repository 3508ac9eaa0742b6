"""Tests for the sustainability score."""
import pytest

from agrimetrics.crud.analytics import ActivityCounts
from agrimetrics.schemas.filters import WhereClause
from agrimetrics.services.analytics.sustainability import NEUTRAL_SCORE, SustainabilityScorer

from conftest import ORG_ID, FakeRepository

WHERE = WhereClause(organization_id=ORG_ID)


@pytest.fixture
def scorer(repo):
    return SustainabilityScorer(repo)


class TestSubScores:
    @pytest.mark.asyncio
    async def test_resource_efficiency_capped(self, repo, scorer):
        repo.totals = {"FARM_REVENUE": 2000.0, "FARM_EXPENSE": 1000.0}
        assert await scorer.resource_efficiency(WHERE) == 100.0

    @pytest.mark.asyncio
    async def test_resource_efficiency_ratio(self, repo, scorer):
        repo.totals = {"FARM_REVENUE": 500.0, "FARM_EXPENSE": 1000.0}
        assert await scorer.resource_efficiency(WHERE) == 50.0

    @pytest.mark.asyncio
    async def test_resource_efficiency_without_expenses(self, repo, scorer):
        repo.totals = {"FARM_REVENUE": 500.0}
        assert await scorer.resource_efficiency(WHERE) == 0.0

    @pytest.mark.asyncio
    async def test_waste_reduction(self, repo, scorer):
        repo.totals = {"FARM_EXPENSE": 1000.0}
        repo.counts = ActivityCounts(total=10, completed=5, in_progress=0)
        # avg(50, 100 - 1)
        assert await scorer.waste_reduction(WHERE) == 74.5

    @pytest.mark.asyncio
    async def test_environmental_impact(self, repo, scorer):
        repo.activity_total = 10
        repo.sustainable_activities = 4
        assert await scorer.environmental_impact(WHERE) == 40.0


class TestScore:
    @pytest.mark.asyncio
    async def test_weighted_composite(self, repo, scorer):
        repo.totals = {"FARM_REVENUE": 2000.0, "FARM_EXPENSE": 1000.0}
        repo.counts = ActivityCounts(total=10, completed=5, in_progress=2)
        repo.activity_total = 10
        repo.sustainable_activities = 4
        # 0.4 * 100 + 0.3 * 74.5 + 0.3 * 40
        assert await scorer.score(WHERE) == 74.35

    @pytest.mark.asyncio
    async def test_every_sub_score_failing_is_neutral(self, repo, scorer):
        repo.error = RuntimeError("database down")
        assert await scorer.score(WHERE) == NEUTRAL_SCORE

    @pytest.mark.asyncio
    async def test_single_failure_uses_neutral_part(self, scorer):
        class FlakyActivities(FakeRepository):
            async def count_activities(self, where, activity_types=None, statuses=None):
                raise RuntimeError("timeout")

        flaky = FlakyActivities()
        flaky.totals = {"FARM_REVENUE": 2000.0, "FARM_EXPENSE": 1000.0}
        flaky.counts = ActivityCounts(total=10, completed=5, in_progress=0)
        parts = await SustainabilityScorer(flaky).breakdown(WHERE)
        assert parts == {
            "resource_efficiency": 100.0,
            "waste_reduction": 74.5,
            "environmental_impact": NEUTRAL_SCORE,
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "revenue, expenses, completed, total, sustainable",
        [
            (0.0, 0.0, 0, 0, 0),
            (1e12, 1.0, 10, 10, 10),
            (0.0, 1e12, 0, 10, 0),
            (-500.0, 100.0, 0, 1, 0),
            (1e9, 1e9, 7, 7, 9),
        ],
    )
    async def test_score_bounded(self, repo, scorer, revenue, expenses, completed, total, sustainable):
        repo.totals = {"FARM_REVENUE": revenue, "FARM_EXPENSE": expenses}
        repo.counts = ActivityCounts(total=total, completed=completed, in_progress=0)
        repo.activity_total = total
        repo.sustainable_activities = sustainable
        assert 0.0 <= await scorer.score(WHERE) <= 100.0
