# backend/agrimetrics/api/analytics.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from agrimetrics.core.auth import Caller, require_permission
from agrimetrics.core.cache import get_cache
from agrimetrics.core.database import AsyncSessionLocal
from agrimetrics.crud.analytics import AnalyticsRepository
from agrimetrics.schemas.analytics import (
    ActivityQuery,
    AnalyticsQuery,
    ExportRequest,
    FarmToMarketQuery,
    FinancialQuery,
    InsightsQuery,
    MarketQuery,
    ReportRequest,
)
from agrimetrics.services.analytics import AnalyticsJobService, AnalyticsService, InMemoryJobQueue
from agrimetrics.services.analytics.insights import get_insight_gateway

router = APIRouter(prefix="/analytics", tags=["analytics"])

_job_queue = InMemoryJobQueue()


# -------------------------
# Dependencies
# -------------------------

def get_analytics_service() -> AnalyticsService:
    return AnalyticsService(
        repository=AnalyticsRepository(AsyncSessionLocal),
        cache=get_cache(),
        insight_gateway=get_insight_gateway(),
    )


def get_job_service() -> AnalyticsJobService:
    return AnalyticsJobService(_job_queue)


def common_params(
    period: Optional[str] = Query("month"),
    farm_id: Optional[str] = Query(None, alias="farmId"),
    use_cache: bool = Query(True, alias="useCache"),
    include_insights: bool = Query(False, alias="includeInsights"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
) -> dict:
    return {
        "period": period,
        "farm_id": farm_id,
        "use_cache": use_cache,
        "include_insights": include_insights,
        "start_date": start_date,
        "end_date": end_date,
    }


# -------------------------
# Aggregates
# -------------------------

@router.get("/dashboard")
async def dashboard_analytics(
    params: dict = Depends(common_params),
    caller: Caller = Depends(require_permission("analytics:read")),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.get_dashboard(caller, AnalyticsQuery(**params))


@router.get("/financial")
async def financial_analytics(
    params: dict = Depends(common_params),
    commodity_id: Optional[str] = Query(None, alias="commodityId"),
    include_breakdown: bool = Query(False, alias="includeBreakdown"),
    caller: Caller = Depends(require_permission("finance:read")),
    service: AnalyticsService = Depends(get_analytics_service),
):
    query = FinancialQuery(**params, commodity_id=commodity_id, include_breakdown=include_breakdown)
    return await service.get_financial(caller, query)


@router.get("/activities")
async def activity_analytics(
    params: dict = Depends(common_params),
    activity_type: Optional[str] = Query(None, alias="activityType"),
    include_efficiency: bool = Query(False, alias="includeEfficiency"),
    include_costs: bool = Query(False, alias="includeCosts"),
    caller: Caller = Depends(require_permission("analytics:read")),
    service: AnalyticsService = Depends(get_analytics_service),
):
    query = ActivityQuery(
        **params,
        activity_type=activity_type,
        include_efficiency=include_efficiency,
        include_costs=include_costs,
    )
    return await service.get_activities(caller, query)


@router.get("/market")
async def market_analytics(
    params: dict = Depends(common_params),
    commodity_id: Optional[str] = Query(None, alias="commodityId"),
    caller: Caller = Depends(require_permission("market:read")),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.get_market(caller, MarketQuery(**params, commodity_id=commodity_id))


@router.get("/farm-to-market")
async def farm_to_market_analytics(
    params: dict = Depends(common_params),
    commodity_id: Optional[str] = Query(None, alias="commodityId"),
    include_predictions: bool = Query(False, alias="includePredictions"),
    caller: Caller = Depends(require_permission("analytics:read")),
    service: AnalyticsService = Depends(get_analytics_service),
):
    query = FarmToMarketQuery(**params, commodity_id=commodity_id, include_predictions=include_predictions)
    return await service.get_farm_to_market(caller, query)


@router.get("/insights")
async def analytics_insights(
    params: dict = Depends(common_params),
    caller: Caller = Depends(require_permission("analytics:read")),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.get_insights(caller, InsightsQuery(**params))


# -------------------------
# Jobs
# -------------------------

@router.post("/export", status_code=status.HTTP_202_ACCEPTED)
def export_analytics(
    request: ExportRequest,
    caller: Caller = Depends(require_permission("analytics:export")),
    jobs: AnalyticsJobService = Depends(get_job_service),
):
    return jobs.export_analytics(caller, request)


@router.post("/reports", status_code=status.HTTP_202_ACCEPTED)
def generate_report(
    request: ReportRequest,
    caller: Caller = Depends(require_permission("reports:create")),
    jobs: AnalyticsJobService = Depends(get_job_service),
):
    return jobs.generate_report(caller, request)


@router.get("/jobs/{job_id}")
def get_job(
    job_id: str,
    caller: Caller = Depends(require_permission("analytics:read")),
    jobs: AnalyticsJobService = Depends(get_job_service),
):
    return jobs.get_job(caller, job_id)
