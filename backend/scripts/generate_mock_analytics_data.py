import asyncio
import random
import sys
import uuid
from datetime import datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from agrimetrics.core.auth import create_access_token
from agrimetrics.core.database import AsyncSessionLocal, Base, engine
from agrimetrics.models import (
    ActivityStatus,
    ActivityType,
    CropCycle,
    CropStatus,
    Farm,
    FarmActivity,
    Harvest,
    Order,
    OrderStatus,
    Organization,
    Transaction,
    TransactionType,
)

# ------------------------------------------------------------
# CONFIG
# ------------------------------------------------------------
NUM_FARMS = 3
DAYS_BACK = 120
TRANSACTIONS_PER_FARM = (10, 25)
ACTIVITIES_PER_FARM = (5, 15)
CYCLES_PER_FARM = (1, 4)
NUM_BUYERS = 6
NUM_ORDERS = 30

FARM_NAMES = ["North Field", "River Plot", "Hillside", "East Orchard", "Valley Farm"]
COMMODITIES = [str(uuid.uuid4()) for _ in range(3)]

DEMO_PERMISSIONS = ["analytics:read", "finance:read", "market:read", "analytics:export", "reports:create"]


def _when(rng: random.Random, now: datetime) -> datetime:
    return now - timedelta(days=rng.randint(0, DAYS_BACK), hours=rng.randint(0, 23))


# ------------------------------------------------------------
# Generate rows for one organization
# ------------------------------------------------------------
def build_demo_rows(organization_id: str, rng: random.Random, now: datetime):
    rows = [Organization(id=organization_id, name="Demo Agribusiness")]
    farm_ids = []

    for i in range(NUM_FARMS):
        farm = Farm(
            id=str(uuid.uuid4()),
            organization_id=organization_id,
            name=FARM_NAMES[i % len(FARM_NAMES)],
            total_area=round(rng.uniform(5, 120), 1),
        )
        farm_ids.append(farm.id)
        rows.append(farm)

        for _ in range(rng.randint(*TRANSACTIONS_PER_FARM)):
            revenue = rng.random() < 0.45  # slightly more expenses than sales
            rows.append(
                Transaction(
                    organization_id=organization_id,
                    farm_id=farm.id,
                    type=(TransactionType.FARM_REVENUE if revenue else TransactionType.FARM_EXPENSE).value,
                    amount=round(rng.uniform(200, 5000) if revenue else rng.uniform(50, 1500), 2),
                    description="generated",
                    created_at=_when(rng, now),
                )
            )

        for a in range(rng.randint(*ACTIVITIES_PER_FARM)):
            status = rng.choice(list(ActivityStatus))
            created = _when(rng, now)
            rows.append(
                FarmActivity(
                    farm_id=farm.id,
                    type=rng.choice(list(ActivityType)).value,
                    name=f"Activity {a+1}",
                    status=status.value,
                    cost=round(rng.uniform(10, 400), 2),
                    created_at=created,
                    completed_at=created + timedelta(days=1) if status == ActivityStatus.COMPLETED else None,
                )
            )

        for _ in range(rng.randint(*CYCLES_PER_FARM)):
            status = rng.choice(list(CropStatus))
            expected = round(rng.uniform(500, 5000), 1)
            done = status in (CropStatus.HARVESTED, CropStatus.COMPLETED)
            cycle = CropCycle(
                id=str(uuid.uuid4()),
                farm_id=farm.id,
                commodity_id=rng.choice(COMMODITIES),
                status=status.value,
                planted_area=round(rng.uniform(1, 20), 1),
                expected_yield=expected,
                actual_yield=round(expected * rng.uniform(0.7, 1.1), 1) if done else None,
                created_at=_when(rng, now),
            )
            rows.append(cycle)
            if done:
                rows.append(
                    Harvest(crop_cycle_id=cycle.id, quantity=cycle.actual_yield, harvest_date=_when(rng, now))
                )

    buyers = [str(uuid.uuid4()) for _ in range(NUM_BUYERS)]
    for n in range(NUM_ORDERS):
        quantity = round(rng.uniform(10, 500), 1)
        price = round(rng.uniform(0.5, 4.0), 2)
        rows.append(
            Order(
                order_number=f"ORD-{n+1:05d}",
                status=rng.choice(list(OrderStatus)).value,
                commodity_id=rng.choice(COMMODITIES),
                quantity=quantity,
                price_per_unit=price,
                total_price=round(quantity * price, 2),
                buyer_org_id=rng.choice(buyers),
                supplier_org_id=organization_id,
                farm_id=rng.choice(farm_ids),
                created_at=_when(rng, now),
            )
        )

    return rows


# ------------------------------------------------------------
# Main generator
# ------------------------------------------------------------
async def generate_mock_data(organization_id: str, seed: int = 42):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    rows = build_demo_rows(organization_id, random.Random(seed), datetime.utcnow())
    async with AsyncSessionLocal() as db:
        db.add_all(rows)
        await db.commit()

    print(f"Created {len(rows)} rows for organization {organization_id}")


# ------------------------------------------------------------
# Script Entrypoint
# ------------------------------------------------------------
if __name__ == "__main__":
    print("\n=== MOCK ANALYTICS DATA GENERATOR ===")

    org_id = input("Organization ID (UUID, blank for new): ").strip() or str(uuid.uuid4())
    try:
        uuid.UUID(org_id)
    except ValueError:
        print("Invalid UUID")
        sys.exit(1)

    asyncio.run(generate_mock_data(org_id))

    demo_token = create_access_token(
        {"sub": "demo-user", "organization_id": org_id, "permissions": DEMO_PERMISSIONS},
        timedelta(hours=12),
    )
    print(f"\nDemo bearer token (12h):\n{demo_token}\n")
