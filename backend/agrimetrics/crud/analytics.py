# backend/agrimetrics/crud/analytics.py

"""
Read-side queries used by the analytics aggregators.

Every public method opens its own AsyncSession from the session factory:
the aggregators fan these calls out with asyncio.gather and a single
session cannot run concurrent statements. Results are converted to the
small frozen DTOs below before they leave this module.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select, func, distinct
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agrimetrics.models.organization import Farm
from agrimetrics.models.finance import Transaction, Order, OrderStatus
from agrimetrics.models.farming import FarmActivity, ActivityStatus, CropCycle, CropStatus, Harvest
from agrimetrics.schemas.filters import WhereClause


# ============================================================
# DTOs
# ============================================================

@dataclass(frozen=True)
class AmountTotal:
    total: float
    count: int


@dataclass(frozen=True)
class ActivityCounts:
    total: int
    completed: int
    in_progress: int


@dataclass(frozen=True)
class OrderRow:
    id: str
    total_price: float
    price_per_unit: float
    buyer_org_id: str
    created_at: datetime


@dataclass(frozen=True)
class OrderTotals:
    total_sales: float
    average_value: float
    order_count: int
    customer_count: int


@dataclass(frozen=True)
class CustomerRepeat:
    customers: int
    repeat_customers: int


@dataclass(frozen=True)
class CropCycleCounts:
    total: int
    completed: int
    total_yield: float
    pending_expected_yield: float


COMPLETED_CYCLE_STATUSES = (CropStatus.COMPLETED.value, CropStatus.HARVESTED.value)


def _num(value) -> float:
    return float(value) if value is not None else 0.0


class AnalyticsRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _scalar(self, stmt):
        async with self.session_factory() as session:
            return await session.scalar(stmt)

    async def _rows(self, stmt):
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return result.all()

    # ------------------------------------------------------------
    # scoping helpers
    # ------------------------------------------------------------

    @staticmethod
    def _scope_transactions(stmt, where: WhereClause):
        stmt = stmt.where(Transaction.organization_id == where.organization_id)
        if where.farm_id:
            stmt = stmt.where(Transaction.farm_id == where.farm_id)
        if where.created_at:
            stmt = stmt.where(
                Transaction.created_at >= where.created_at.gte,
                Transaction.created_at <= where.created_at.lte,
            )
        return stmt

    @staticmethod
    def _scope_activities(stmt, where: WhereClause):
        stmt = stmt.join(Farm, FarmActivity.farm_id == Farm.id).where(
            Farm.organization_id == where.organization_id
        )
        if where.farm_id:
            stmt = stmt.where(FarmActivity.farm_id == where.farm_id)
        if where.created_at:
            stmt = stmt.where(
                FarmActivity.created_at >= where.created_at.gte,
                FarmActivity.created_at <= where.created_at.lte,
            )
        return stmt

    @staticmethod
    def _scope_orders(stmt, where: WhereClause, commodity_id: Optional[str] = None):
        # sales made by the organization; cancelled orders never count
        stmt = stmt.where(
            Order.supplier_org_id == where.organization_id,
            Order.status != OrderStatus.CANCELLED.value,
        )
        if where.farm_id:
            stmt = stmt.where(Order.farm_id == where.farm_id)
        if commodity_id:
            stmt = stmt.where(Order.commodity_id == commodity_id)
        if where.created_at:
            stmt = stmt.where(
                Order.created_at >= where.created_at.gte,
                Order.created_at <= where.created_at.lte,
            )
        return stmt

    @staticmethod
    def _scope_crop_cycles(stmt, where: WhereClause, commodity_id: Optional[str] = None):
        stmt = stmt.join(Farm, CropCycle.farm_id == Farm.id).where(
            Farm.organization_id == where.organization_id
        )
        if where.farm_id:
            stmt = stmt.where(CropCycle.farm_id == where.farm_id)
        if commodity_id:
            stmt = stmt.where(CropCycle.commodity_id == commodity_id)
        if where.created_at:
            stmt = stmt.where(
                CropCycle.created_at >= where.created_at.gte,
                CropCycle.created_at <= where.created_at.lte,
            )
        return stmt

    # ------------------------------------------------------------
    # farms
    # ------------------------------------------------------------

    async def farm_exists(self, organization_id: str, farm_id: str) -> bool:
        found = await self._scalar(
            select(Farm.id).where(Farm.id == farm_id, Farm.organization_id == organization_id)
        )
        return found is not None

    # ------------------------------------------------------------
    # transactions
    # ------------------------------------------------------------

    async def sum_transactions(self, where: WhereClause, tx_type: str) -> AmountTotal:
        stmt = self._scope_transactions(
            select(func.coalesce(func.sum(Transaction.amount), 0), func.count(Transaction.id)),
            where,
        ).where(Transaction.type == tx_type)
        rows = await self._rows(stmt)
        total, count = rows[0] if rows else (0, 0)
        return AmountTotal(total=_num(total), count=int(count or 0))

    async def expenses_by_farm(self, where: WhereClause, tx_type: str) -> Dict[str, float]:
        stmt = self._scope_transactions(
            select(Farm.name, func.coalesce(func.sum(Transaction.amount), 0))
            .select_from(Transaction)
            .join(Farm, Transaction.farm_id == Farm.id)
            .group_by(Farm.name)
            .order_by(Farm.name),
            where,
        ).where(Transaction.type == tx_type)
        return {name: _num(total) for name, total in await self._rows(stmt)}

    # ------------------------------------------------------------
    # activities
    # ------------------------------------------------------------

    async def count_activities(
        self,
        where: WhereClause,
        activity_types: Optional[Sequence[str]] = None,
        statuses: Optional[Sequence[str]] = None,
    ) -> int:
        stmt = self._scope_activities(select(func.count(FarmActivity.id)), where)
        if activity_types:
            stmt = stmt.where(FarmActivity.type.in_(list(activity_types)))
        if statuses:
            stmt = stmt.where(FarmActivity.status.in_(list(statuses)))
        return int(await self._scalar(stmt) or 0)

    async def activity_counts(self, where: WhereClause, activity_type: Optional[str] = None) -> ActivityCounts:
        stmt = self._scope_activities(
            select(FarmActivity.status, func.count(FarmActivity.id)).group_by(FarmActivity.status),
            where,
        )
        if activity_type:
            stmt = stmt.where(FarmActivity.type == activity_type)
        by_status = {status: int(count) for status, count in await self._rows(stmt)}
        return ActivityCounts(
            total=sum(by_status.values()),
            completed=by_status.get(ActivityStatus.COMPLETED.value, 0),
            in_progress=by_status.get(ActivityStatus.IN_PROGRESS.value, 0),
        )

    async def activities_by_type(self, where: WhereClause) -> Dict[str, int]:
        stmt = self._scope_activities(
            select(FarmActivity.type, func.count(FarmActivity.id))
            .group_by(FarmActivity.type)
            .order_by(FarmActivity.type),
            where,
        )
        return {activity_type: int(count) for activity_type, count in await self._rows(stmt)}

    # ------------------------------------------------------------
    # orders
    # ------------------------------------------------------------

    async def sample_orders(
        self, where: WhereClause, limit: int = 100, commodity_id: Optional[str] = None
    ) -> List[OrderRow]:
        stmt = self._scope_orders(
            select(
                Order.id, Order.total_price, Order.price_per_unit, Order.buyer_org_id, Order.created_at
            ),
            where,
            commodity_id,
        ).order_by(Order.created_at.desc()).limit(limit)
        return [
            OrderRow(
                id=row.id,
                total_price=_num(row.total_price),
                price_per_unit=_num(row.price_per_unit),
                buyer_org_id=row.buyer_org_id,
                created_at=row.created_at,
            )
            for row in await self._rows(stmt)
        ]

    async def order_totals(self, where: WhereClause, commodity_id: Optional[str] = None) -> OrderTotals:
        stmt = self._scope_orders(
            select(
                func.coalesce(func.sum(Order.total_price), 0),
                func.coalesce(func.avg(Order.total_price), 0),
                func.count(Order.id),
                func.count(distinct(Order.buyer_org_id)),
            ),
            where,
            commodity_id,
        )
        total, average, count, customers = (await self._rows(stmt))[0]
        return OrderTotals(
            total_sales=_num(total),
            average_value=_num(average),
            order_count=int(count or 0),
            customer_count=int(customers or 0),
        )

    async def customer_repeat(self, where: WhereClause, commodity_id: Optional[str] = None) -> CustomerRepeat:
        stmt = self._scope_orders(
            select(Order.buyer_org_id, func.count(Order.id)).group_by(Order.buyer_org_id),
            where,
            commodity_id,
        )
        per_buyer = [int(count) for _, count in await self._rows(stmt)]
        return CustomerRepeat(
            customers=len(per_buyer),
            repeat_customers=sum(1 for count in per_buyer if count > 1),
        )

    async def average_price(
        self, where: WhereClause, commodity_id: Optional[str] = None, since: Optional[datetime] = None
    ) -> float:
        stmt = self._scope_orders(
            select(func.coalesce(func.avg(Order.price_per_unit), 0)), where, commodity_id
        )
        if since is not None:
            stmt = stmt.where(Order.created_at >= since)
        return _num(await self._scalar(stmt))

    async def count_orders(self, where: WhereClause, commodity_id: Optional[str] = None) -> int:
        stmt = self._scope_orders(select(func.count(Order.id)), where, commodity_id)
        return int(await self._scalar(stmt) or 0)

    # ------------------------------------------------------------
    # crop cycles / harvests
    # ------------------------------------------------------------

    async def crop_cycle_counts(self, where: WhereClause, commodity_id: Optional[str] = None) -> CropCycleCounts:
        stmt = self._scope_crop_cycles(
            select(
                CropCycle.status,
                func.count(CropCycle.id),
                func.coalesce(func.sum(CropCycle.actual_yield), 0),
                func.coalesce(func.sum(CropCycle.expected_yield), 0),
            ).group_by(CropCycle.status),
            where,
            commodity_id,
        )
        total = done = 0
        total_yield = pending_expected = 0.0
        for status, count, actual, expected in await self._rows(stmt):
            total += int(count)
            if status in COMPLETED_CYCLE_STATUSES:
                done += int(count)
                total_yield += _num(actual)
            else:
                pending_expected += _num(expected)
        return CropCycleCounts(
            total=total,
            completed=done,
            total_yield=total_yield,
            pending_expected_yield=pending_expected,
        )

    async def count_harvests(self, where: WhereClause, commodity_id: Optional[str] = None) -> int:
        stmt = (
            select(func.count(Harvest.id))
            .join(CropCycle, Harvest.crop_cycle_id == CropCycle.id)
            .join(Farm, CropCycle.farm_id == Farm.id)
            .where(Farm.organization_id == where.organization_id)
        )
        if where.farm_id:
            stmt = stmt.where(CropCycle.farm_id == where.farm_id)
        if commodity_id:
            stmt = stmt.where(CropCycle.commodity_id == commodity_id)
        if where.created_at:
            stmt = stmt.where(
                Harvest.harvest_date >= where.created_at.gte,
                Harvest.harvest_date <= where.created_at.lte,
            )
        return int(await self._scalar(stmt) or 0)
