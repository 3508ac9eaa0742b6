# backend/agrimetrics/services/analytics/jobs.py

"""
Export / report job submission

Requests are validated synchronously, recorded as a job descriptor in the
job queue and answered with a handle (status, download URL, ETA).
Nothing executes the jobs in-process; a worker consuming the queue is
expected to pick them up.

Stores (InMemoryJobQueue):
 - _jobs: job_id -> descriptor { job_id, kind, organization_id, user_id, status,
   request, download_url, estimated_completion, expires_at?, created_at }
"""

import uuid
from datetime import datetime, timedelta
from threading import Lock
from typing import Any, Callable, Dict, Optional, Protocol

from agrimetrics.core.auth import Caller
from agrimetrics.core.config import settings
from agrimetrics.core.exceptions import NotFoundError
from agrimetrics.core.logger import get_logger
from agrimetrics.schemas.analytics import ExportRequest, ReportRequest
from agrimetrics.services.analytics.validation import validate_export_request, validate_report_request

logger = get_logger("analytics.jobs")

EXPORT_ETA = timedelta(minutes=5)
EXPORT_LINK_TTL = timedelta(hours=24)
REPORT_ETA = timedelta(minutes=10)


class JobQueue(Protocol):
    def submit(self, descriptor: Dict[str, Any]) -> str:
        ...

    def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        ...


class InMemoryJobQueue:
    def __init__(self):
        self._lock = Lock()
        self._jobs: Dict[str, Dict[str, Any]] = {}

    def submit(self, descriptor: Dict[str, Any]) -> str:
        job_id = descriptor["job_id"]
        with self._lock:
            self._jobs[job_id] = dict(descriptor)
        logger.info(
            f"Queued {descriptor['kind']} job",
            extra={
                "job_id": job_id,
                "user_id": descriptor.get("user_id"),
                "organization_id": descriptor.get("organization_id"),
            },
        )
        return job_id

    def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            job = self._jobs.get(job_id)
            return dict(job) if job else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)


def _iso(moment: datetime) -> str:
    return moment.isoformat() + "Z"


class AnalyticsJobService:
    def __init__(
        self,
        queue: JobQueue,
        clock: Callable[[], datetime] = datetime.utcnow,
        base_url: str = settings.DOWNLOAD_BASE_URL,
    ):
        self.queue = queue
        self.clock = clock
        self.base_url = base_url.rstrip("/")

    def _handle(self, kind: str, job: Dict[str, Any]) -> dict:
        attributes = {
            "status": job["status"],
            "downloadUrl": job["download_url"],
            "estimatedCompletion": job["estimated_completion"],
        }
        if job.get("expires_at"):
            attributes["expiresAt"] = job["expires_at"]
        return {"data": {"type": f"analytics_{kind}", "id": job["job_id"], "attributes": attributes}}

    def export_analytics(self, caller: Caller, request: ExportRequest) -> dict:
        validate_export_request(request)
        now = self.clock()
        job_id = str(uuid.uuid4())
        job = {
            "job_id": job_id,
            "kind": "export",
            "organization_id": caller.organization_id,
            "user_id": caller.user_id,
            "status": "processing",
            "request": request.dump(),
            "download_url": f"{self.base_url}/analytics/exports/{job_id}/download",
            "expires_at": _iso(now + EXPORT_LINK_TTL),
            "estimated_completion": _iso(now + EXPORT_ETA),
            "created_at": _iso(now),
        }
        self.queue.submit(job)
        return self._handle("export", job)

    def generate_report(self, caller: Caller, request: ReportRequest) -> dict:
        validate_report_request(request)
        now = self.clock()
        job_id = str(uuid.uuid4())
        job = {
            "job_id": job_id,
            "kind": "report",
            "organization_id": caller.organization_id,
            "user_id": caller.user_id,
            "status": "generating",
            "request": request.dump(),
            "download_url": f"{self.base_url}/analytics/reports/{job_id}/download",
            "estimated_completion": _iso(now + REPORT_ETA),
            "created_at": _iso(now),
        }
        self.queue.submit(job)
        return self._handle("report", job)

    def get_job(self, caller: Caller, job_id: str) -> dict:
        job = self.queue.get(job_id)
        # other organizations' jobs are indistinguishable from missing ones
        if not job or job.get("organization_id") != caller.organization_id:
            raise NotFoundError("Job not found")
        response = self._handle(job["kind"], job)
        response["data"]["attributes"]["createdAt"] = job["created_at"]
        return response
