# backend/agrimetrics/services/analytics/insights.py

"""
Insight gateway

Given a farm, an analysis type and a data payload, returns natural-language
insights, recommendations and a confidence score.

- HttpInsightClient: remote insight service (INSIGHT_SERVICE_URL)
- RuleBasedInsightClient: local threshold rules, used when no service is configured
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import requests
from fastapi.concurrency import run_in_threadpool

from agrimetrics.core.config import settings
from agrimetrics.core.logger import get_logger

logger = get_logger("analytics.insights")

DEFAULT_MODEL = "gpt-4"


@dataclass(frozen=True)
class InsightResult:
    insights: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    confidence: float = 0.0
    model: str = DEFAULT_MODEL


class InsightServiceError(Exception):
    pass


class InsightGateway(Protocol):
    async def generate(
        self,
        farm_id: Optional[str],
        analysis_type: str,
        data: Dict[str, Any],
        user_id: str,
    ) -> InsightResult:
        ...


# ------------------------------------------
# Remote service
# ------------------------------------------

class HttpInsightClient:
    def __init__(self, base_url: str, api_key: Optional[str] = None, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            resp = self.session.post(
                f"{self.base_url}/insights",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise InsightServiceError(f"Insight service unreachable: {exc}") from exc

        if resp.status_code != 200:
            raise InsightServiceError(f"Insight service returned {resp.status_code}")

        try:
            return resp.json()
        except ValueError as exc:
            raise InsightServiceError("Insight service returned invalid JSON") from exc

    async def generate(self, farm_id, analysis_type, data, user_id) -> InsightResult:
        body = await run_in_threadpool(
            self._post,
            {
                "farmId": farm_id,
                "analysisType": analysis_type,
                "data": data,
                "userId": user_id,
            },
        )
        return InsightResult(
            insights=[str(i) for i in body.get("insights") or []],
            recommendations=[str(r) for r in body.get("recommendations") or []],
            confidence=float(body.get("confidence") or 0.0),
            model=body.get("model") or DEFAULT_MODEL,
        )


# ------------------------------------------
# Local rules
# ------------------------------------------

class RuleBasedInsightClient:
    model = "rule-based"

    async def generate(self, farm_id, analysis_type, data, user_id) -> InsightResult:
        summary = data.get("summary") or {}
        insights: List[str] = []
        recommendations: List[str] = []

        margin = summary.get("profitMargin")
        if margin is not None:
            if margin < 0:
                insights.append("Expenses exceed revenue for the selected period.")
                recommendations.append("Review the largest expense categories and defer non-critical spending.")
            elif margin < 20:
                insights.append(f"Profit margin is thin at {margin:.1f}%.")
                recommendations.append("Compare input costs with last season and renegotiate supplier prices.")
            else:
                insights.append(f"Healthy profit margin of {margin:.1f}%.")
                recommendations.append("Continue current practices and consider expanding sales channels.")

        sustainability = summary.get("sustainability")
        if sustainability is not None and sustainability < 50:
            insights.append(f"Sustainability score is low ({sustainability:.0f}/100).")
            recommendations.append("Schedule more soil treatment and irrigation planning activities.")

        if not insights:
            insights.append(
                f"Not enough recorded activity to produce {analysis_type.replace('_', ' ')} insights yet."
            )
            recommendations.append("Record harvests, transactions and activities regularly.")
            confidence = 0.3
        else:
            confidence = 0.7

        return InsightResult(
            insights=insights,
            recommendations=recommendations,
            confidence=confidence,
            model=self.model,
        )


_gateway: Optional[InsightGateway] = None


def get_insight_gateway() -> InsightGateway:
    global _gateway
    if _gateway is None:
        if settings.INSIGHT_SERVICE_URL:
            _gateway = HttpInsightClient(
                settings.INSIGHT_SERVICE_URL,
                api_key=settings.INSIGHT_SERVICE_API_KEY,
                timeout=settings.INSIGHT_SERVICE_TIMEOUT,
            )
        else:
            logger.info("INSIGHT_SERVICE_URL not configured, using rule-based insights")
            _gateway = RuleBasedInsightClient()
    return _gateway
