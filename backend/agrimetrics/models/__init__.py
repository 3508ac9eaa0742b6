from .organization import Organization, Farm
from .finance import Transaction, TransactionType, Order, OrderStatus
from .farming import (
    FarmActivity,
    ActivityType,
    ActivityStatus,
    CropCycle,
    CropStatus,
    Harvest,
)
from ..core.database import Base
__all__ = [
    "Organization",
    "Farm",
    "Transaction",
    "TransactionType",
    "Order",
    "OrderStatus",
    "FarmActivity",
    "ActivityType",
    "ActivityStatus",
    "CropCycle",
    "CropStatus",
    "Harvest",
    "Base"
]
