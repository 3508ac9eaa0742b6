# backend/agrimetrics/schemas/analytics.py

from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ============================================================
# QUERY SCHEMAS
# ============================================================
# period / farmId stay plain strings here; validate_query() owns the
# rules so violations surface as 400 ValidationError with a precise message.

class AnalyticsQuery(CamelModel):
    period: Optional[str] = "month"
    farm_id: Optional[str] = None
    use_cache: bool = True
    include_insights: bool = False
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class FinancialQuery(AnalyticsQuery):
    commodity_id: Optional[str] = None
    include_breakdown: bool = False


class ActivityQuery(AnalyticsQuery):
    activity_type: Optional[str] = None
    include_efficiency: bool = False
    include_costs: bool = False


class MarketQuery(AnalyticsQuery):
    commodity_id: Optional[str] = None


class FarmToMarketQuery(AnalyticsQuery):
    commodity_id: Optional[str] = None
    include_predictions: bool = False


class InsightsQuery(AnalyticsQuery):
    pass


class ExportRequest(CamelModel):
    type: str
    format: str
    period: Optional[str] = "month"
    farm_id: Optional[str] = None
    include_charts: bool = False
    include_insights: bool = False


class ReportRequest(CamelModel):
    title: str
    type: str
    period: Optional[str] = "month"
    farm_ids: List[str] = Field(default_factory=list)
    commodities: Optional[List[str]] = None
    format: str = "pdf"
    recipients: Optional[List[str]] = None
    include_comparisons: bool = False
    include_predictions: bool = False


# ============================================================
# RESPONSE RECORDS
# ============================================================

Trend = Literal["up", "down", "stable"]
ChartType = Literal["bar", "pie", "line", "scatter", "heatmap"]


class AnalyticsMetric(CamelModel):
    name: str
    value: float
    unit: str
    trend: Trend
    change: Optional[float] = None
    change_percent: Optional[float] = None
    benchmark: Optional[float] = None
    target: Optional[float] = None


class ChartPoint(CamelModel):
    label: str
    value: float
    timestamp: Optional[str] = None


class AnalyticsChart(CamelModel):
    type: ChartType
    title: str
    data: List[ChartPoint] = Field(default_factory=list)
    x_axis: str
    y_axis: str


class AnalyticsSummary(CamelModel):
    total_revenue: float = 0
    total_costs: float = 0
    net_profit: float = 0
    profit_margin: float = 0
    roi: float = 0
    efficiency: Optional[float] = None
    sustainability: Optional[float] = None


class AnalyticsInsight(CamelModel):
    id: str
    title: str
    description: str
    category: str = "performance"
    priority: Literal["low", "medium", "high", "critical"] = "medium"
    actionable: bool = False
    recommendations: List[str] = Field(default_factory=list)
    impact: Optional[Literal["low", "medium", "high"]] = None
    confidence: Optional[float] = None
