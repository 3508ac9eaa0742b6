# backend/agrimetrics/services/analytics/sustainability.py

"""
Sustainability score (0-100)

Formula:
--------------------------------------------
score = 0.4 * resource_efficiency
      + 0.3 * waste_reduction
      + 0.3 * environmental_impact

resource_efficiency  = min(100, revenue / expenses * 100)      (0 without expenses)
waste_reduction      = avg(completion_rate, 100 - expenses / 1000)
environmental_impact = sustainable activities / all activities * 100
--------------------------------------------

Each sub-score is clamped to [0, 100] and computed independently. A
sub-score whose queries fail counts as neutral (50); the composite never
raises.
"""

import asyncio

from agrimetrics.core.logger import get_logger
from agrimetrics.models.farming import ActivityType
from agrimetrics.models.finance import TransactionType
from agrimetrics.schemas.filters import WhereClause
from agrimetrics.services.analytics.metrics import clamp, safe_div

logger = get_logger("analytics.sustainability")

WEIGHTS = {
    "resource_efficiency": 0.4,
    "waste_reduction": 0.3,
    "environmental_impact": 0.3,
}
NEUTRAL_SCORE = 50.0
EXPENSE_PENALTY_DIVISOR = 1000.0

SUSTAINABLE_ACTIVITY_TYPES = (
    ActivityType.FERTILIZING.value,
    ActivityType.IRRIGATION.value,
    ActivityType.SOIL_TREATMENT.value,
    ActivityType.PEST_CONTROL.value,
)


class SustainabilityScorer:
    def __init__(self, repository):
        self.repository = repository

    async def resource_efficiency(self, where: WhereClause) -> float:
        revenue, expenses = await asyncio.gather(
            self.repository.sum_transactions(where, TransactionType.FARM_REVENUE.value),
            self.repository.sum_transactions(where, TransactionType.FARM_EXPENSE.value),
        )
        if expenses.total <= 0:
            return 0.0
        return clamp(revenue.total / expenses.total * 100)

    async def waste_reduction(self, where: WhereClause) -> float:
        counts, expenses = await asyncio.gather(
            self.repository.activity_counts(where),
            self.repository.sum_transactions(where, TransactionType.FARM_EXPENSE.value),
        )
        completion_rate = clamp(safe_div(counts.completed, counts.total) * 100)
        cost_efficiency = clamp(100 - expenses.total / EXPENSE_PENALTY_DIVISOR)
        return clamp((completion_rate + cost_efficiency) / 2)

    async def environmental_impact(self, where: WhereClause) -> float:
        total, sustainable = await asyncio.gather(
            self.repository.count_activities(where),
            self.repository.count_activities(where, activity_types=SUSTAINABLE_ACTIVITY_TYPES),
        )
        return clamp(safe_div(sustainable, total) * 100)

    async def _guarded(self, name: str, where: WhereClause) -> float:
        try:
            return await getattr(self, name)(where)
        except Exception as exc:
            logger.warning(
                f"Sustainability sub-score '{name}' failed, using neutral score",
                extra={"organization_id": where.organization_id, "error": str(exc)},
            )
            return NEUTRAL_SCORE

    async def breakdown(self, where: WhereClause) -> dict:
        names = list(WEIGHTS)
        scores = await asyncio.gather(*(self._guarded(name, where) for name in names))
        return dict(zip(names, scores))

    async def score(self, where: WhereClause) -> float:
        parts = await self.breakdown(where)
        total = sum(WEIGHTS[name] * value for name, value in parts.items())
        return round(clamp(total), 2)
