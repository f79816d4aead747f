"""Client-side mirrors of the reconstruction service's responses."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import ProcessingError


class JobState(Enum):
    """Server-driven job lifecycle."""
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED)


@dataclass
class ApiResult:
    """Outcome of a remote call: a payload on success, an error otherwise."""
    success: bool
    payload: Any = None
    error: Optional[ProcessingError] = None

    @classmethod
    def ok(cls, payload: Any = None) -> "ApiResult":
        return cls(success=True, payload=payload)

    @classmethod
    def failed(cls, error: ProcessingError, payload: Any = None) -> "ApiResult":
        return cls(success=False, payload=payload, error=error)

    @property
    def message(self) -> Optional[str]:
        return str(self.error) if self.error else None

    @property
    def error_type(self) -> Optional[str]:
        return type(self.error).__name__ if self.error else None

    def to_dict(self) -> Dict[str, Any]:
        payload = self.payload
        if hasattr(payload, "to_dict"):
            payload = payload.to_dict()
        return {
            "success": self.success,
            "payload": payload,
            "error": self.error_type,
            "message": self.message,
        }


@dataclass
class SubmissionReceipt:
    """Returned by a successful job submission."""
    job_id: str
    estimated_time: Any = None
    cost: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "estimated_time": self.estimated_time,
            "cost": self.cost,
        }


@dataclass
class JobStatusReport:
    """One poll of a job's status."""
    job_id: str
    state: JobState
    progress: float = 0.0
    estimated_time_remaining: Any = None
    current_stage: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "status": self.state.value,
            "progress": self.progress,
            "estimated_time_remaining": self.estimated_time_remaining,
            "current_stage": self.current_stage,
        }


@dataclass
class PipelineOutput:
    """Model produced by one reconstruction pipeline."""
    model_url: str
    model_hash: Optional[str] = None
    point_count: Optional[int] = None
    file_size: Optional[int] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "PipelineOutput":
        return cls(
            model_url=data["url"],
            model_hash=data.get("hash"),
            point_count=data.get("pointCount"),
            file_size=data.get("fileSize"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_url": self.model_url,
            "model_hash": self.model_hash,
            "point_count": self.point_count,
            "file_size": self.file_size,
        }


@dataclass
class JobResults:
    """Outputs of a completed job, one per pipeline plus processing metadata."""
    job_id: str
    gaussian_splatting: PipelineOutput
    convex_splatting: PipelineOutput
    processing_time: Any = None
    render_nodes: Any = None
    quality_score: Optional[float] = None
    geo_referenced: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "gaussian_splatting": self.gaussian_splatting.to_dict(),
            "convex_splatting": self.convex_splatting.to_dict(),
            "metadata": {
                "processing_time": self.processing_time,
                "render_nodes": self.render_nodes,
                "quality_score": self.quality_score,
                "geo_referenced": self.geo_referenced,
            },
        }


@dataclass
class UploadRecord:
    """A single successful asset upload."""
    position: int
    original_uri: str
    remote_uri: str
    upload_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "original_uri": self.original_uri,
            "remote_uri": self.remote_uri,
            "upload_id": self.upload_id,
        }


@dataclass
class UploadFailure:
    """A single failed asset upload."""
    position: int
    original_uri: str
    error: ProcessingError

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "original_uri": self.original_uri,
            "error": type(self.error).__name__,
            "message": str(self.error),
        }


@dataclass
class UploadReport:
    """Every upload outcome of one ``upload_assets`` call, in input order."""
    uploads: List[UploadRecord] = field(default_factory=list)
    failures: List[UploadFailure] = field(default_factory=list)

    @property
    def remote_uris(self) -> Dict[str, str]:
        """Mapping of local asset URI to remote URI for successful uploads."""
        return {u.original_uri: u.remote_uri for u in self.uploads}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uploads": [u.to_dict() for u in self.uploads],
            "failures": [f.to_dict() for f in self.failures],
        }


@dataclass
class NetworkInfo:
    """Capacity and pricing snapshot of the render network."""
    available_nodes: Any = None
    average_processing_time: Any = None
    current_pricing: Any = None
    queue_length: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available_nodes": self.available_nodes,
            "average_processing_time": self.average_processing_time,
            "current_pricing": self.current_pricing,
            "queue_length": self.queue_length,
        }


@dataclass
class TrackedJob:
    """Last-known state of a job submitted from this process."""
    job_id: str
    receipt: Optional[SubmissionReceipt] = None
    status: Optional[JobStatusReport] = None
    results: Optional[JobResults] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "receipt": self.receipt.to_dict() if self.receipt else None,
            "status": self.status.to_dict() if self.status else None,
            "results": self.results.to_dict() if self.results else None,
        }
