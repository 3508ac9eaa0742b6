"""Tests for export / report job submission."""
import uuid
from datetime import timedelta

import pytest

from agrimetrics.core.auth import Caller
from agrimetrics.core.exceptions import NotFoundError, ValidationError
from agrimetrics.schemas.analytics import ExportRequest, ReportRequest
from agrimetrics.services.analytics import AnalyticsJobService, InMemoryJobQueue

from conftest import FARM_ID, NOW, OTHER_ORG_ID


@pytest.fixture
def queue():
    return InMemoryJobQueue()


@pytest.fixture
def jobs(queue):
    return AnalyticsJobService(queue, clock=lambda: NOW, base_url="https://api.example.com/")


def iso(moment):
    return moment.isoformat() + "Z"


class TestExport:
    def test_handle(self, jobs, queue, caller):
        response = jobs.export_analytics(caller, ExportRequest(type="financial", format="csv", farm_id=FARM_ID))
        data = response["data"]
        job_id = data["id"]

        assert uuid.UUID(job_id).version == 4
        assert data["type"] == "analytics_export"
        assert data["attributes"] == {
            "status": "processing",
            "downloadUrl": f"https://api.example.com/analytics/exports/{job_id}/download",
            "estimatedCompletion": iso(NOW + timedelta(minutes=5)),
            "expiresAt": iso(NOW + timedelta(hours=24)),
        }
        assert len(queue) == 1

    def test_descriptor_recorded(self, jobs, queue, caller):
        job_id = jobs.export_analytics(caller, ExportRequest(type="market", format="excel"))["data"]["id"]
        job = queue.get(job_id)
        assert job["kind"] == "export"
        assert job["organization_id"] == caller.organization_id
        assert job["user_id"] == caller.user_id
        assert job["request"]["type"] == "market"

    def test_invalid_request_not_queued(self, jobs, queue, caller):
        with pytest.raises(ValidationError):
            jobs.export_analytics(caller, ExportRequest(type="weather", format="csv"))
        assert len(queue) == 0

    def test_unique_ids(self, jobs, caller):
        request = ExportRequest(type="dashboard", format="json")
        first = jobs.export_analytics(caller, request)["data"]["id"]
        second = jobs.export_analytics(caller, request)["data"]["id"]
        assert first != second


class TestReport:
    def test_handle(self, jobs, caller):
        request = ReportRequest(title="Season review", type="comprehensive", farm_ids=[FARM_ID])
        data = jobs.generate_report(caller, request)["data"]

        assert data["type"] == "analytics_report"
        assert data["attributes"]["status"] == "generating"
        assert data["attributes"]["downloadUrl"].endswith(f"/analytics/reports/{data['id']}/download")
        assert data["attributes"]["estimatedCompletion"] == iso(NOW + timedelta(minutes=10))
        assert "expiresAt" not in data["attributes"]

    def test_invalid_recipient(self, jobs, queue, caller):
        request = ReportRequest(title="Season review", type="financial", recipients=["nobody"])
        with pytest.raises(ValidationError):
            jobs.generate_report(caller, request)
        assert len(queue) == 0


class TestGetJob:
    def test_own_job(self, jobs, caller):
        job_id = jobs.export_analytics(caller, ExportRequest(type="activities", format="csv"))["data"]["id"]
        data = jobs.get_job(caller, job_id)["data"]
        assert data["id"] == job_id
        assert data["attributes"]["status"] == "processing"
        assert data["attributes"]["createdAt"] == iso(NOW)

    def test_other_organization_hidden(self, jobs, caller):
        job_id = jobs.export_analytics(caller, ExportRequest(type="activities", format="csv"))["data"]["id"]
        stranger = Caller(user_id="u9", organization_id=OTHER_ORG_ID, permissions=caller.permissions)
        with pytest.raises(NotFoundError):
            jobs.get_job(stranger, job_id)

    def test_unknown_job(self, jobs, caller):
        with pytest.raises(NotFoundError):
            jobs.get_job(caller, str(uuid.uuid4()))
