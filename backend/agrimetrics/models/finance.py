# backend/agrimetrics/models/finance.py

from enum import Enum

from sqlalchemy import Column, String, Float, Numeric, DateTime, ForeignKey, Index
from datetime import datetime

from agrimetrics.core.database import Base
from agrimetrics.models.organization import gen_uuid


class TransactionType(str, Enum):
    FARM_EXPENSE = "FARM_EXPENSE"
    FARM_REVENUE = "FARM_REVENUE"
    ORDER_PAYMENT = "ORDER_PAYMENT"
    PLATFORM_FEE = "PLATFORM_FEE"
    REFUND = "REFUND"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_org_created", "organization_id", "created_at"),
        Index("ix_transactions_farm_created", "farm_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=gen_uuid)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False)
    farm_id = Column(String(36), ForeignKey("farms.id"), nullable=True)
    type = Column(String, nullable=False)                 # TransactionType
    amount = Column(Numeric(18, 2, asdecimal=False), nullable=False)
    status = Column(String, nullable=False, default="COMPLETED")
    description = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_supplier_created", "supplier_org_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=gen_uuid)
    order_number = Column(String, nullable=False)
    type = Column(String, nullable=False, default="SELL")
    status = Column(String, nullable=False, default=OrderStatus.PENDING.value)
    commodity_id = Column(String(36), nullable=False)
    quantity = Column(Float, nullable=False, default=0)
    price_per_unit = Column(Float, nullable=False, default=0)
    total_price = Column(Float, nullable=False, default=0)
    buyer_org_id = Column(String(36), nullable=False, index=True)
    supplier_org_id = Column(String(36), ForeignKey("organizations.id"), nullable=True)
    farm_id = Column(String(36), ForeignKey("farms.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
