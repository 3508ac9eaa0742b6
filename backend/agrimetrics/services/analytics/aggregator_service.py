# backend/agrimetrics/services/analytics/aggregator_service.py

"""
Analytics aggregators

Every public method follows the same template:
    validate -> cache lookup -> (miss) farm check -> concurrent fetch
    -> metric builders -> optional insights -> envelope -> cache store

Domain errors (validation, not-found) propagate unchanged. Anything else
raised while fetching or computing is logged and re-raised as a single
InternalError so persistence failures never reach the caller.
"""

import asyncio
import uuid
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

from agrimetrics.core.auth import Caller
from agrimetrics.core.config import settings
from agrimetrics.core.exceptions import AnalyticsError, InternalError, NotFoundError
from agrimetrics.core.logger import get_logger
from agrimetrics.models.finance import TransactionType
from agrimetrics.schemas.analytics import (
    AnalyticsQuery,
    ActivityQuery,
    AnalyticsInsight,
    AnalyticsSummary,
    FarmToMarketQuery,
    FinancialQuery,
    InsightsQuery,
    MarketQuery,
)
from agrimetrics.schemas.filters import DateFilter, WhereClause
from agrimetrics.services.analytics import metrics as m
from agrimetrics.services.analytics.cache_keys import analytics_cache_key, query_hash
from agrimetrics.services.analytics.date_range import DEFAULT_PERIOD, previous_period, resolve_date_range
from agrimetrics.services.analytics.insights import DEFAULT_MODEL, InsightResult
from agrimetrics.services.analytics.sustainability import SustainabilityScorer
from agrimetrics.services.analytics.validation import custom_range, validate_query

logger = get_logger("analytics")

REVENUE = TransactionType.FARM_REVENUE.value
EXPENSE = TransactionType.FARM_EXPENSE.value

ORDER_SAMPLE_SIZE = 100
PRICE_RECENCY = timedelta(days=30)
INSIGHTS_ANALYSIS_TYPE = "yield_prediction"

MODULE_TITLES = {
    "dashboard": "Dashboard",
    "financial": "Financial",
    "activities": "Activity",
    "market": "Market",
    "farm-to-market": "Farm-to-market",
}


async def gather_named(**aws: Awaitable) -> Dict[str, Any]:
    """asyncio.gather keyed by name."""
    names = list(aws)
    results = await asyncio.gather(*aws.values(), return_exceptions=True)
    # every fetch has settled before the first failure is raised
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return dict(zip(names, results))


class AnalyticsService:
    def __init__(
        self,
        repository,
        cache,
        insight_gateway,
        scorer: Optional[SustainabilityScorer] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        cache_ttl: int = settings.ANALYTICS_CACHE_TTL,
        insights_ttl: int = settings.INSIGHTS_CACHE_TTL,
    ):
        self.repository = repository
        self.cache = cache
        self.insight_gateway = insight_gateway
        self.scorer = scorer or SustainabilityScorer(repository)
        self.clock = clock
        self.cache_ttl = cache_ttl
        self.insights_ttl = insights_ttl

    # =============================================================
    # Public aggregators
    # =============================================================

    async def get_dashboard(self, caller: Caller, query: AnalyticsQuery) -> dict:
        return await self._aggregate(
            "dashboard", caller, query, self._build_dashboard,
            failure_message="Failed to retrieve dashboard analytics",
        )

    async def get_financial(self, caller: Caller, query: FinancialQuery) -> dict:
        return await self._aggregate(
            "financial", caller, query, self._build_financial,
            failure_message="Failed to retrieve financial analytics",
        )

    async def get_activities(self, caller: Caller, query: ActivityQuery) -> dict:
        return await self._aggregate(
            "activities", caller, query, self._build_activities,
            failure_message="Failed to retrieve activity analytics",
        )

    async def get_market(self, caller: Caller, query: MarketQuery) -> dict:
        return await self._aggregate(
            "market", caller, query, self._build_market,
            failure_message="Failed to retrieve market analytics",
        )

    async def get_farm_to_market(self, caller: Caller, query: FarmToMarketQuery) -> dict:
        # always computed fresh
        return await self._aggregate(
            "farm-to-market", caller, query, self._build_farm_to_market,
            failure_message="Failed to retrieve farm-to-market analytics",
            cacheable=False,
        )

    async def get_insights(self, caller: Caller, query: InsightsQuery) -> dict:
        validate_query(query)
        logger.info(
            "Getting analytics insights",
            extra={"user_id": caller.user_id, "organization_id": caller.organization_id, "module_name": "insights"},
        )

        cache_key = analytics_cache_key("insights", caller.organization_id, query)
        if query.use_cache:
            cached = await self._cache_get(cache_key)
            if cached is not None:
                return cached

        try:
            await self._ensure_farm(caller, query.farm_id)
        except AnalyticsError:
            raise
        except Exception as exc:
            logger.exception("Farm lookup failed", extra={"module_name": "insights", "error": str(exc)})
            raise InternalError("Failed to retrieve insights") from exc

        degraded = False
        try:
            result = await self.insight_gateway.generate(
                query.farm_id,
                INSIGHTS_ANALYSIS_TYPE,
                {
                    "farmId": query.farm_id,
                    "period": query.period or DEFAULT_PERIOD,
                    "organizationId": caller.organization_id,
                },
                caller.user_id,
            )
        except Exception as exc:
            logger.warning(
                "Insight service failed, returning empty insights",
                extra={"organization_id": caller.organization_id, "error": str(exc)},
            )
            result = InsightResult(model=getattr(self.insight_gateway, "model", DEFAULT_MODEL))
            degraded = True

        attributes = {
            "period": query.period or DEFAULT_PERIOD,
            "farmId": query.farm_id,
            "insights": list(result.insights),
            "recommendations": list(result.recommendations),
            "model": result.model,
            "confidence": result.confidence,
        }
        response = self._envelope("insights", query, attributes, cache_key if query.use_cache else None)

        # a degraded answer is not worth keeping for the full TTL
        if query.use_cache and not degraded:
            await self.cache.set(cache_key, response, self.insights_ttl)
        return response

    # =============================================================
    # Template
    # =============================================================

    async def _aggregate(
        self,
        module: str,
        caller: Caller,
        query: AnalyticsQuery,
        build: Callable[[Caller, AnalyticsQuery, WhereClause], Awaitable[dict]],
        failure_message: str,
        cacheable: bool = True,
    ) -> dict:
        validate_query(query)
        logger.info(
            f"Getting {module} analytics",
            extra={"user_id": caller.user_id, "organization_id": caller.organization_id, "module_name": module},
        )

        use_cache = cacheable and query.use_cache
        cache_key = analytics_cache_key(module, caller.organization_id, query)
        if use_cache:
            cached = await self._cache_get(cache_key)
            if cached is not None:
                return cached

        try:
            await self._ensure_farm(caller, query.farm_id)
            where = self.build_where(caller, query)
            result = await build(caller, query, where)
        except AnalyticsError:
            raise
        except Exception as exc:
            logger.exception(
                f"Analytics error in {module}",
                extra={"organization_id": caller.organization_id, "module_name": module, "error": str(exc)},
            )
            raise InternalError(failure_message) from exc

        summary: AnalyticsSummary = result.pop("summary", None) or m.default_summary()
        insights: List[AnalyticsInsight] = []
        degraded = False
        if query.include_insights:
            embedded = await self._embedded_insights(caller, query, module, summary)
            degraded = embedded is None
            insights = embedded or []

        attributes = {
            "period": query.period or DEFAULT_PERIOD,
            "farmId": query.farm_id,
            "metrics": [metric.dump() for metric in result.pop("metrics", [])],
            "charts": [chart.dump() for chart in result.pop("charts", [])],
            "insights": [insight.dump() for insight in insights],
            "summary": summary.dump(),
            **result,
        }
        response = self._envelope(module, query, attributes, cache_key if use_cache else None)

        # a response missing its insights because the gateway failed is retried next time
        if use_cache and not degraded:
            await self.cache.set(cache_key, response, self.cache_ttl)
        return response

    # =============================================================
    # Helpers
    # =============================================================

    def date_window(self, query: AnalyticsQuery, now: datetime) -> DateFilter:
        explicit = custom_range(query)
        if explicit is not None:
            # explicit windows never reach past now
            return DateFilter(gte=min(explicit[0], now), lte=min(explicit[1], now))
        return resolve_date_range(query.period, now)

    def build_where(self, caller: Caller, query: AnalyticsQuery) -> WhereClause:
        return WhereClause(
            organization_id=caller.organization_id,
            farm_id=query.farm_id,
            created_at=self.date_window(query, self.clock()),
        )

    async def _ensure_farm(self, caller: Caller, farm_id: Optional[str]) -> None:
        if farm_id and not await self.repository.farm_exists(caller.organization_id, farm_id):
            raise NotFoundError("Farm not found")

    async def _cache_get(self, key: str) -> Optional[dict]:
        cached = await self.cache.get(key)
        if cached is not None:
            logger.info("Analytics cache hit", extra={"cache_key": key})
        else:
            logger.info("Analytics cache miss", extra={"cache_key": key})
        return cached

    def _envelope(self, module: str, query: AnalyticsQuery, attributes: dict, cache_key: Optional[str]) -> dict:
        attributes = dict(attributes)
        attributes["generatedAt"] = self.clock().isoformat() + "Z"
        if cache_key:
            attributes["cacheKey"] = cache_key
        return {
            "data": {
                "type": f"analytics_{module.replace('-', '_')}",
                "id": f"{module}-{query_hash(query)}",
                "attributes": attributes,
            }
        }

    async def _embedded_insights(
        self, caller: Caller, query: AnalyticsQuery, module: str, summary: AnalyticsSummary
    ) -> Optional[List[AnalyticsInsight]]:
        """Insights for an aggregated module; None when the gateway failed."""
        try:
            result = await self.insight_gateway.generate(
                query.farm_id,
                f"{module.replace('-', '_')}_analysis",
                {
                    "farmId": query.farm_id,
                    "period": query.period or DEFAULT_PERIOD,
                    "organizationId": caller.organization_id,
                    "summary": summary.dump(),
                },
                caller.user_id,
            )
        except Exception as exc:
            logger.warning(
                "Insight generation failed, continuing without insights",
                extra={"organization_id": caller.organization_id, "module_name": module, "error": str(exc)},
            )
            return None

        if not result.insights:
            return []

        return [
            AnalyticsInsight(
                id=str(uuid.uuid4()),
                title=f"{MODULE_TITLES.get(module, module)} insights",
                description=" ".join(result.insights),
                category="performance",
                priority="medium",
                actionable=bool(result.recommendations),
                recommendations=list(result.recommendations),
                confidence=result.confidence,
            )
        ]

    # =============================================================
    # Module builders
    # =============================================================

    async def _build_dashboard(self, caller: Caller, query: AnalyticsQuery, where: WhereClause) -> dict:
        data = await gather_named(
            revenue=self.repository.sum_transactions(where, REVENUE),
            expenses=self.repository.sum_transactions(where, EXPENSE),
            activities=self.repository.count_activities(where),
            sustainability=self.scorer.score(where),
        )
        revenue = data["revenue"].total
        expenses = data["expenses"].total
        activities = data["activities"]
        net_profit = revenue - expenses

        return {
            "metrics": [
                m.money_metric("Total Revenue", revenue),
                m.money_metric("Total Expenses", expenses),
                m.metric("Net Profit", net_profit, m.CURRENCY, m.sign_trend(net_profit)),
                m.metric("Active Activities", activities, "count", m.sign_trend(activities)),
            ],
            "charts": [
                m.bar_chart(
                    "Revenue vs Expenses",
                    [("Revenue", revenue), ("Expenses", expenses)],
                    timestamp=where.created_at.lte.isoformat(),
                ),
            ],
            "summary": m.build_summary(
                revenue,
                expenses,
                efficiency=round(m.safe_div(revenue, activities), 2),
                sustainability=data["sustainability"],
            ),
        }

    async def _build_financial(self, caller: Caller, query: FinancialQuery, where: WhereClause) -> dict:
        before = WhereClause(
            organization_id=where.organization_id,
            farm_id=where.farm_id,
            created_at=previous_period(where.created_at),
        )
        fetches = dict(
            revenue=self.repository.sum_transactions(where, REVENUE),
            expenses=self.repository.sum_transactions(where, EXPENSE),
            previous_revenue=self.repository.sum_transactions(before, REVENUE),
            previous_expenses=self.repository.sum_transactions(before, EXPENSE),
            orders=self.repository.sample_orders(where, ORDER_SAMPLE_SIZE, query.commodity_id),
        )
        if query.include_breakdown:
            fetches["by_farm"] = self.repository.expenses_by_farm(where, EXPENSE)
        data = await gather_named(**fetches)

        revenue = data["revenue"].total
        expenses = data["expenses"].total
        order_count = len(data["orders"])
        avg_order_value = round(m.safe_div(revenue, order_count), 2)
        margin = m.profit_margin(revenue, expenses)

        charts = [
            m.pie_chart("Revenue vs Expenses", [("Revenue", revenue), ("Expenses", expenses)]),
        ]
        if query.include_breakdown:
            charts.append(m.bar_chart("Expenses by Farm", list(data["by_farm"].items()), x_axis="Farm"))

        return {
            "metrics": [
                m.money_metric("Total Revenue", revenue, data["previous_revenue"].total),
                m.money_metric("Total Expenses", expenses, data["previous_expenses"].total),
                m.metric("Profit Margin", margin, "%", m.sign_trend(margin)),
                m.metric("Average Order Value", avg_order_value, m.CURRENCY, m.sign_trend(avg_order_value)),
            ],
            "charts": charts,
            "summary": m.build_summary(revenue, expenses),
            "orderCount": order_count,
        }

    async def _build_activities(self, caller: Caller, query: ActivityQuery, where: WhereClause) -> dict:
        activity_type = query.activity_type.upper() if query.activity_type else None
        fetches = dict(
            counts=self.repository.activity_counts(where, activity_type),
            by_type=self.repository.activities_by_type(where),
        )
        if query.include_efficiency:
            fetches["revenue"] = self.repository.sum_transactions(where, REVENUE)
        if query.include_costs:
            fetches["expenses"] = self.repository.sum_transactions(where, EXPENSE)
        data = await gather_named(**fetches)

        counts = data["counts"]
        completion_rate = m.percent(counts.completed, counts.total)
        metrics = [
            m.metric("Total Activities", counts.total, "count", m.sign_trend(counts.total)),
            m.metric("Completed Activities", counts.completed, "count", m.sign_trend(counts.completed)),
            m.metric("Completion Rate", completion_rate, "%", m.band_trend(completion_rate, 80, 60), target=80),
        ]

        revenue = data["revenue"].total if "revenue" in data else 0.0
        expenses = data["expenses"].total if "expenses" in data else 0.0
        efficiency = None

        if query.include_efficiency:
            efficiency = round(m.safe_div(revenue, counts.total), 2)
            utilization = min(100.0, m.percent(counts.completed + counts.in_progress, counts.total))
            metrics.append(m.metric("Revenue per Activity", efficiency, m.CURRENCY, m.sign_trend(efficiency)))
            metrics.append(
                m.metric("Resource Utilization", utilization, "%", m.band_trend(utilization, 80, 60), target=100)
            )

        if query.include_costs:
            cost_per_activity = round(m.safe_div(expenses, counts.total), 2)
            metrics.append(
                m.metric("Cost per Activity", cost_per_activity, m.CURRENCY, m.sign_trend(cost_per_activity))
            )

        if query.include_efficiency or query.include_costs:
            summary = m.build_summary(revenue, expenses, efficiency=efficiency)
        else:
            summary = m.default_summary()

        return {
            "metrics": metrics,
            "charts": [
                m.pie_chart(
                    "Activities by Type",
                    list(data["by_type"].items()),
                    x_axis="Activity Type",
                    y_axis="Count",
                ),
            ],
            "summary": summary,
            "completionRate": completion_rate,
        }

    async def _build_market(self, caller: Caller, query: MarketQuery, where: WhereClause) -> dict:
        recent_since = where.created_at.lte - PRICE_RECENCY
        data = await gather_named(
            totals=self.repository.order_totals(where, query.commodity_id),
            repeat=self.repository.customer_repeat(where, query.commodity_id),
            average_price=self.repository.average_price(where, query.commodity_id),
            recent_price=self.repository.average_price(where, query.commodity_id, since=recent_since),
        )
        totals = data["totals"]
        repeat = data["repeat"]
        retention = m.percent(repeat.repeat_customers, repeat.customers)
        average_price = round(data["average_price"], 2)
        recent_price = round(data["recent_price"], 2)
        price_change, price_change_pct = m.change_against(recent_price, average_price)

        return {
            "metrics": [
                m.money_metric("Total Sales", totals.total_sales),
                m.money_metric("Average Order Value", round(totals.average_value, 2)),
                m.metric("Customer Count", totals.customer_count, "customers", m.sign_trend(totals.customer_count)),
                m.metric("Customer Retention", retention, "%", m.band_trend(retention, 50, 25)),
                m.metric(
                    "Average Price",
                    average_price,
                    f"{m.CURRENCY}/unit",
                    m.compare_trend(recent_price, average_price),
                    change=round(price_change, 2),
                    change_percent=price_change_pct,
                ),
            ],
            "charts": [
                m.bar_chart(
                    "Customer Mix",
                    [
                        ("New Customers", repeat.customers - repeat.repeat_customers),
                        ("Repeat Customers", repeat.repeat_customers),
                    ],
                    y_axis="Customers",
                ),
            ],
            "summary": m.build_summary(totals.total_sales, 0.0),
            "orderCount": totals.order_count,
        }

    async def _build_farm_to_market(self, caller: Caller, query: FarmToMarketQuery, where: WhereClause) -> dict:
        data = await gather_named(
            cycles=self.repository.crop_cycle_counts(where, query.commodity_id),
            harvests=self.repository.count_harvests(where, query.commodity_id),
            orders=self.repository.count_orders(where, query.commodity_id),
            revenue=self.repository.sum_transactions(where, REVENUE),
        )
        cycles = data["cycles"]
        harvests = data["harvests"]
        orders = data["orders"]
        revenue = data["revenue"].total

        production_efficiency = m.percent(cycles.completed, cycles.total)
        market_conversion = m.percent(orders, harvests)
        revenue_per_yield = round(m.safe_div(revenue, cycles.total_yield), 2)

        metrics = [
            m.metric(
                "Production Efficiency", production_efficiency, "%", m.band_trend(production_efficiency, 80, 60)
            ),
            m.metric("Market Conversion", market_conversion, "%", m.band_trend(market_conversion, 80, 60)),
            m.metric("Revenue per Yield", revenue_per_yield, f"{m.CURRENCY}/kg", m.sign_trend(revenue_per_yield)),
            m.metric("Total Harvests", harvests, "count", m.sign_trend(harvests)),
        ]
        if query.include_predictions:
            projected = round(cycles.pending_expected_yield * revenue_per_yield, 2)
            metrics.append(m.metric("Projected Revenue", projected, m.CURRENCY, m.sign_trend(projected)))

        return {
            "metrics": metrics,
            "charts": [
                m.bar_chart(
                    "Farm to Market Funnel",
                    [
                        ("Crop Cycles", cycles.total),
                        ("Completed Cycles", cycles.completed),
                        ("Harvests", harvests),
                        ("Orders", orders),
                    ],
                    x_axis="Stage",
                    y_axis="Count",
                ),
            ],
            # costs are not joined here: all revenue counts as profit
            "summary": m.build_summary(revenue, 0.0),
        }
