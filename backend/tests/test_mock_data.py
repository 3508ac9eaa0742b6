"""Tests for the demo data generator script."""
import random
from datetime import datetime

from agrimetrics.models import CropCycle, Farm, Harvest, Order, Organization, Transaction
from scripts.generate_mock_analytics_data import NUM_FARMS, NUM_ORDERS, build_demo_rows

ORG = "0b6f4c1e-8d7a-4c55-9d3e-2f1a6b7c8d90"
NOW = datetime(2024, 5, 15, 12, 0, 0)


def rows_of(rows, model):
    return [row for row in rows if isinstance(row, model)]


class TestBuildDemoRows:
    def test_shape(self):
        rows = build_demo_rows(ORG, random.Random(1), NOW)
        assert len(rows_of(rows, Organization)) == 1
        assert len(rows_of(rows, Farm)) == NUM_FARMS
        assert len(rows_of(rows, Order)) == NUM_ORDERS

    def test_everything_belongs_to_the_organization(self):
        rows = build_demo_rows(ORG, random.Random(2), NOW)
        farm_ids = {farm.id for farm in rows_of(rows, Farm)}
        assert all(tx.organization_id == ORG for tx in rows_of(rows, Transaction))
        assert all(order.supplier_org_id == ORG for order in rows_of(rows, Order))
        assert all(order.farm_id in farm_ids for order in rows_of(rows, Order))

    def test_harvests_only_for_finished_cycles(self):
        rows = build_demo_rows(ORG, random.Random(3), NOW)
        finished = {c.id for c in rows_of(rows, CropCycle) if c.status in ("HARVESTED", "COMPLETED")}
        assert {h.crop_cycle_id for h in rows_of(rows, Harvest)} == finished

    def test_no_future_rows(self):
        rows = build_demo_rows(ORG, random.Random(4), NOW)
        assert all(tx.created_at <= NOW for tx in rows_of(rows, Transaction))

    def test_deterministic_for_a_seed(self):
        first = build_demo_rows(ORG, random.Random(5), NOW)
        second = build_demo_rows(ORG, random.Random(5), NOW)
        assert [tx.amount for tx in rows_of(first, Transaction)] == [tx.amount for tx in rows_of(second, Transaction)]
