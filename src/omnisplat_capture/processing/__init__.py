"""Submission protocol for the remote reconstruction service."""

from .client import ProcessingSubmissionClient, build_job_payload
from .models import (
    ApiResult,
    JobResults,
    JobState,
    JobStatusReport,
    NetworkInfo,
    PipelineOutput,
    SubmissionReceipt,
    TrackedJob,
    UploadFailure,
    UploadRecord,
    UploadReport,
)
from .polling import wait_for_job

__all__ = [
    "ProcessingSubmissionClient",
    "build_job_payload",
    "wait_for_job",
    "ApiResult",
    "JobResults",
    "JobState",
    "JobStatusReport",
    "NetworkInfo",
    "PipelineOutput",
    "SubmissionReceipt",
    "TrackedJob",
    "UploadFailure",
    "UploadRecord",
    "UploadReport",
]
