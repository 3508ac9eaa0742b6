# backend/agrimetrics/models/farming.py

from enum import Enum

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from agrimetrics.core.database import Base
from agrimetrics.models.organization import gen_uuid


class ActivityType(str, Enum):
    LAND_PREP = "LAND_PREP"
    PLANTING = "PLANTING"
    FERTILIZING = "FERTILIZING"
    IRRIGATION = "IRRIGATION"
    PEST_CONTROL = "PEST_CONTROL"
    SOIL_TREATMENT = "SOIL_TREATMENT"
    HARVESTING = "HARVESTING"
    MAINTENANCE = "MAINTENANCE"
    MONITORING = "MONITORING"
    OTHER = "OTHER"


class ActivityStatus(str, Enum):
    PLANNED = "PLANNED"
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class CropStatus(str, Enum):
    PLANNED = "PLANNED"
    PLANTED = "PLANTED"
    GROWING = "GROWING"
    MATURE = "MATURE"
    HARVESTED = "HARVESTED"
    COMPLETED = "COMPLETED"


class FarmActivity(Base):
    __tablename__ = "farm_activities"
    __table_args__ = (
        Index("ix_farm_activities_farm_created", "farm_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=gen_uuid)
    farm_id = Column(String(36), ForeignKey("farms.id"), nullable=False)
    type = Column(String, nullable=False)                                  # ActivityType
    name = Column(String, nullable=False)
    status = Column(String, nullable=False, default=ActivityStatus.PLANNED.value)
    cost = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    farm = relationship("Farm", back_populates="activities")


class CropCycle(Base):
    __tablename__ = "crop_cycles"
    __table_args__ = (
        Index("ix_crop_cycles_farm_created", "farm_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=gen_uuid)
    farm_id = Column(String(36), ForeignKey("farms.id"), nullable=False)
    commodity_id = Column(String(36), nullable=False)
    status = Column(String, nullable=False, default=CropStatus.PLANNED.value)
    planted_area = Column(Float, nullable=False, default=0)
    expected_yield = Column(Float, nullable=True)
    actual_yield = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    farm = relationship("Farm", back_populates="crop_cycles")
    harvests = relationship("Harvest", back_populates="crop_cycle", cascade="all, delete-orphan")


class Harvest(Base):
    __tablename__ = "harvests"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    crop_cycle_id = Column(String(36), ForeignKey("crop_cycles.id"), nullable=False, index=True)
    quantity = Column(Float, nullable=False, default=0)
    harvest_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    crop_cycle = relationship("CropCycle", back_populates="harvests")
