"""Client for the remote reconstruction service.

Every public call returns an :class:`ApiResult`; transport and protocol
failures are converted into the ``ProcessingError`` taxonomy and never raised
to the caller. No call retries on its own. Reads (``initialize``,
``check_job_status``, ``get_job_results``, ``get_network_info``) are safe to
repeat.

REST surface (bearer token):
    GET  /status                 connectivity probe
    POST /upload                 multipart file + metadata JSON
    POST /jobs/submit            reconstruction job description
    GET  /jobs/{id}/status       poll
    GET  /jobs/{id}/results      outputs of a completed job
    GET  /network/info           capacity and pricing
"""
from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type, Union
from urllib.parse import quote, unquote, urlparse

import requests

from ..config import COORDINATE_SYSTEM, ProcessingConfig
from ..errors import (
    AuthenticationError,
    JobNotComplete,
    NetworkError,
    NotFound,
    ProcessingError,
    SubmissionError,
)
from ..models import CaptureSession, PhotoAsset, VideoAsset
from ..utils.logging import get_logger
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

logger = get_logger(__name__)


Asset = Union[PhotoAsset, VideoAsset]

CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "mp4": "video/mp4",
    "mov": "video/quicktime",
}


def _photo_entry(photo: PhotoAsset, uri: str) -> Dict[str, Any]:
    return {
        "uri": uri,
        "timestamp": photo.timestamp_ms,
        "gpsData": photo.gps_data.to_dict(),
        "surveyMetadata": photo.survey_metadata.to_dict(),
        "index": photo.index,
    }


def _video_entry(video: VideoAsset, uri: str) -> Dict[str, Any]:
    return {
        "uri": uri,
        "timestamp": video.timestamp_ms,
        "duration": video.duration,
        "gpsData": {"startLocation": video.start_location.to_dict()},
    }


def build_job_payload(
    photos: Sequence[PhotoAsset],
    videos: Sequence[VideoAsset],
    session: CaptureSession,
    config: Optional[ProcessingConfig] = None,
    remote_uris: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Build the ``POST /jobs/submit`` body.

    Args:
        photos: Photos to reconstruct from.
        videos: Videos to reconstruct from.
        session: Session the assets belong to; its base location is sent as-is.
        config: Job description settings.
        remote_uris: Local URI -> uploaded URI; assets not in the mapping are
            referenced by their local URI.

    Returns:
        JSON-serializable job description.
    """
    cfg = config or ProcessingConfig()
    uris = remote_uris or {}

    return {
        "jobType": cfg.job_type,
        "processingTypes": list(cfg.processing_types),
        "assets": {
            "photos": [_photo_entry(p, uris.get(p.uri, p.uri)) for p in photos],
            "videos": [_video_entry(v, uris.get(v.uri, v.uri)) for v in videos],
        },
        "sessionMetadata": {
            "sessionId": session.session_id,
            "baseLocation": session.base_location.to_dict(),
            "totalAssets": session.total_assets,
            "coordinateSystem": COORDINATE_SYSTEM,
            "isRTKSurvey": session.is_rtk_survey,
        },
        "outputFormats": list(cfg.output_formats),
        "quality": cfg.quality,
        "priority": cfg.priority,
    }


def _local_path(uri: str) -> Path:
    """Resolve an asset URI (plain path or file://) to a local path."""
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    if parsed.scheme and len(parsed.scheme) > 1:
        raise SubmissionError(f"Cannot upload non-local asset: {uri}")
    return Path(uri)


class ProcessingSubmissionClient:
    """Uploads assets, submits reconstruction jobs and tracks them.

    ``job_queue`` and ``jobs`` are process-local bookkeeping, not a durable
    queue.
    """

    def __init__(
        self,
        config: Optional[ProcessingConfig] = None,
        http: Optional[requests.Session] = None,
    ):
        """Initialize client.

        Args:
            config: Service settings (base URL, timeout, job description).
            http: HTTP session; a new ``requests.Session`` when None.
        """
        self.config = config or ProcessingConfig()
        self.http = http or requests.Session()

        self.api_key: Optional[str] = None
        self.node_id: Optional[str] = None
        self.job_queue: List[str] = []
        self.jobs: Dict[str, TrackedJob] = {}

    @property
    def is_initialized(self) -> bool:
        return self.api_key is not None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def initialize(self, api_key: str, node_id: Optional[str] = None) -> ApiResult:
        """Probe ``GET /status`` with ``api_key`` and keep it on success.

        Stored credentials are left untouched when the probe fails.
        """
        if not api_key:
            return ApiResult.failed(AuthenticationError("An API key is required"))

        try:
            response = self._request("GET", "/status", api_key=api_key)
            self._raise_for_status(response, "GET /status")
            data = self._json(response, "GET /status")
        except ProcessingError as e:
            logger.error(f"Processing service connection failed: {e}")
            return ApiResult.failed(e)

        self.api_key = api_key
        self.node_id = node_id or data.get("nodeId")
        logger.info(f"Processing service connected: {data.get('status', 'ok')}")
        return ApiResult.ok(data)

    def upload_assets(self, assets: Sequence[Asset]) -> ApiResult:
        """Upload every asset concurrently and wait for all of them.

        All uploads run to completion even when some fail. The result fails
        if any upload failed; its error names the failed positions and its
        payload (an :class:`UploadReport`) still carries every successful
        upload.
        """
        if not self.is_initialized:
            return ApiResult.failed(AuthenticationError("Client is not initialized"))

        report = UploadReport()
        if not assets:
            return ApiResult.ok(report)

        records: Dict[int, UploadRecord] = {}
        failures: Dict[int, UploadFailure] = {}

        max_workers = max(1, min(len(assets), self.config.max_batch_size))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(self._upload_one, position, asset): (position, asset)
                for position, asset in enumerate(assets)
            }
            for future in as_completed(futures):
                position, asset = futures[future]
                try:
                    records[position] = future.result()
                except ProcessingError as e:
                    failures[position] = UploadFailure(position, asset.uri, e)

        report.uploads = [records[p] for p in sorted(records)]
        report.failures = [failures[p] for p in sorted(failures)]

        if report.failures:
            first = report.failures[0]
            detail = "; ".join(f"#{f.position} {f.original_uri}: {f.error}" for f in report.failures)
            error = type(first.error)(
                f"{len(report.failures)} of {len(assets)} uploads failed: {detail}"
            )
            logger.error(f"Asset upload failed: {error}")
            return ApiResult.failed(error, payload=report)

        logger.info(f"Uploaded {len(report.uploads)} assets")
        return ApiResult.ok(report)

    def submit_reconstruction_job(
        self,
        photos: Sequence[PhotoAsset],
        videos: Sequence[VideoAsset],
        session: CaptureSession,
        remote_uris: Optional[Dict[str, str]] = None,
    ) -> ApiResult:
        """Submit a dual-pipeline reconstruction job.

        The minimum photo count for processing is a caller-side gate; it is
        not checked here.
        """
        if not self.is_initialized:
            return ApiResult.failed(AuthenticationError("Client is not initialized"))

        payload = build_job_payload(photos, videos, session, self.config, remote_uris)

        try:
            response = self._request("POST", "/jobs/submit", json=payload)
            self._raise_for_status(response, "POST /jobs/submit", client_error=SubmissionError)
            data = self._json(response, "POST /jobs/submit")
            job_id = data.get("jobId")
            if not job_id:
                raise SubmissionError("Submission response did not include a jobId")
        except NetworkError as e:
            logger.error(f"Job submission failed: {e}")
            return ApiResult.failed(SubmissionError(f"Job submission failed: {e}"))
        except ProcessingError as e:
            logger.error(f"Job submission failed: {e}")
            return ApiResult.failed(e)

        receipt = SubmissionReceipt(
            job_id=str(job_id),
            estimated_time=data.get("estimatedTime"),
            cost=data.get("cost"),
        )
        self.job_queue.append(receipt.job_id)
        self.jobs[receipt.job_id] = TrackedJob(job_id=receipt.job_id, receipt=receipt)

        logger.info(
            f"Job submitted: {receipt.job_id} ({len(photos)} photos, {len(videos)} videos, "
            f"session {session.session_id})"
        )
        return ApiResult.ok(receipt)

    def check_job_status(self, job_id: str) -> ApiResult:
        """Poll ``GET /jobs/{id}/status`` once."""
        if not self.is_initialized:
            return ApiResult.failed(AuthenticationError("Client is not initialized"))

        path = f"/jobs/{quote(str(job_id), safe='')}/status"
        try:
            response = self._request("GET", path)
            self._raise_for_status(response, f"GET {path}")
            data = self._json(response, f"GET {path}")
            try:
                state = JobState(data["status"])
            except (KeyError, ValueError):
                raise NetworkError(f"Unrecognised job status in response: {data.get('status')!r}")
            try:
                progress = float(data.get("progress") or 0.0)
            except (TypeError, ValueError):
                raise NetworkError(f"Unreadable job progress in response: {data.get('progress')!r}")
        except ProcessingError as e:
            logger.error(f"Status check failed for {job_id}: {e}")
            return ApiResult.failed(e)

        report = JobStatusReport(
            job_id=job_id,
            state=state,
            progress=progress,
            estimated_time_remaining=data.get("estimatedTimeRemaining"),
            current_stage=data.get("currentStage"),
        )
        self._track(job_id).status = report
        return ApiResult.ok(report)

    def get_job_results(self, job_id: str) -> ApiResult:
        """Fetch ``GET /jobs/{id}/results`` for a completed job."""
        if not self.is_initialized:
            return ApiResult.failed(AuthenticationError("Client is not initialized"))

        path = f"/jobs/{quote(str(job_id), safe='')}/results"
        try:
            response = self._request("GET", path)
            self._raise_for_status(
                response,
                f"GET {path}",
                overrides={409: JobNotComplete, 425: JobNotComplete},
            )
            data = self._json(response, f"GET {path}")
            results = self._parse_results(job_id, data)
        except ProcessingError as e:
            logger.error(f"Results retrieval failed for {job_id}: {e}")
            return ApiResult.failed(e)

        self._track(job_id).results = results
        logger.info(f"Results retrieved for {job_id}")
        return ApiResult.ok(results)

    def get_network_info(self) -> ApiResult:
        """Read ``GET /network/info``."""
        if not self.is_initialized:
            return ApiResult.failed(AuthenticationError("Client is not initialized"))

        try:
            response = self._request("GET", "/network/info")
            self._raise_for_status(response, "GET /network/info")
            data = self._json(response, "GET /network/info")
        except ProcessingError as e:
            logger.error(f"Network info retrieval failed: {e}")
            return ApiResult.failed(e)

        return ApiResult.ok(NetworkInfo(
            available_nodes=data.get("availableNodes"),
            average_processing_time=data.get("averageProcessingTime"),
            current_pricing=data.get("pricing"),
            queue_length=data.get("queueLength"),
        ))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _track(self, job_id: str) -> TrackedJob:
        if job_id not in self.jobs:
            self.jobs[job_id] = TrackedJob(job_id=job_id)
        return self.jobs[job_id]

    def _upload_one(self, position: int, asset: Asset) -> UploadRecord:
        path = _local_path(asset.uri)
        extension = path.suffix.lower().lstrip(".")
        if extension not in self.config.supported_formats:
            raise SubmissionError(f"Unsupported asset format: {path.name}")

        asset_dict = asset.to_dict()
        metadata = {
            "gpsData": asset_dict["gpsData"],
            "timestamp": asset.timestamp_ms,
            "index": asset.index if isinstance(asset, PhotoAsset) else None,
        }
        content_type = CONTENT_TYPES.get(extension, "application/octet-stream")

        try:
            with open(path, "rb") as fh:
                response = self._request(
                    "POST",
                    "/upload",
                    files={"file": (path.name, fh, content_type)},
                    data={"metadata": json.dumps(metadata)},
                )
        except (OSError, ValueError) as e:
            raise SubmissionError(f"Cannot read asset {asset.uri}: {e}") from e

        self._raise_for_status(response, "POST /upload")
        data = self._json(response, "POST /upload")
        if not data.get("uri") or not data.get("uploadId"):
            raise NetworkError("Upload response missing uri or uploadId")

        return UploadRecord(
            position=position,
            original_uri=asset.uri,
            remote_uri=data["uri"],
            upload_id=str(data["uploadId"]),
        )

    def _parse_results(self, job_id: str, data: Dict[str, Any]) -> JobResults:
        status = data.get("status")
        if status is not None and status != JobState.COMPLETED.value:
            raise JobNotComplete(f"Job {job_id} is {status}, results not available")

        outputs = data.get("outputs")
        if not outputs:
            raise JobNotComplete(f"Job {job_id} has no outputs yet")

        try:
            gaussian = PipelineOutput.from_response(outputs["gaussian_splatting"])
            convex = PipelineOutput.from_response(outputs["convex_splatting"])
        except (KeyError, TypeError) as e:
            raise NetworkError(f"Malformed results for job {job_id}: missing {e}")

        return JobResults(
            job_id=job_id,
            gaussian_splatting=gaussian,
            convex_splatting=convex,
            processing_time=data.get("processingTime"),
            render_nodes=data.get("renderNodes"),
            quality_score=data.get("qualityScore"),
        )

    def _request(
        self,
        method: str,
        path: str,
        api_key: Optional[str] = None,
        **kwargs: Any,
    ) -> requests.Response:
        url = f"{self.config.base_url.rstrip('/')}{path}"
        headers = {
            "Authorization": f"Bearer {api_key or self.api_key}",
            "Accept": "application/json",
        }
        try:
            return self.http.request(
                method,
                url,
                headers=headers,
                timeout=self.config.timeout_s,
                **kwargs,
            )
        except requests.Timeout as e:
            raise NetworkError(f"{method} {path} timed out after {self.config.timeout_s}s") from e
        except requests.RequestException as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e

    def _raise_for_status(
        self,
        response: requests.Response,
        action: str,
        client_error: Type[ProcessingError] = NetworkError,
        overrides: Optional[Dict[int, Type[ProcessingError]]] = None,
    ) -> None:
        code = response.status_code
        if 200 <= code < 300:
            return

        detail = self._error_detail(response)
        message = f"{action} returned HTTP {code}" + (f": {detail}" if detail else "")

        if overrides and code in overrides:
            raise overrides[code](message)
        if code in (401, 403):
            raise AuthenticationError(message)
        if code == 404:
            raise NotFound(message)
        if code >= 500:
            raise NetworkError(message)
        raise client_error(message)

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return (response.text or "")[:200]
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or "")
        return ""

    @staticmethod
    def _json(response: requests.Response, action: str) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise NetworkError(f"{action} returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise NetworkError(f"{action} returned unexpected JSON: {type(data).__name__}")
        return data
