# backend/agrimetrics/schemas/filters.py

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class DateFilter:
    gte: datetime
    lte: datetime

    def __post_init__(self):
        if self.gte > self.lte:
            raise ValueError("DateFilter.gte must not be after DateFilter.lte")

    @property
    def span(self):
        return self.lte - self.gte


@dataclass(frozen=True)
class WhereClause:
    """Organization / farm / date scope applied to every analytics query."""

    organization_id: str
    farm_id: Optional[str] = None
    created_at: Optional[DateFilter] = None
