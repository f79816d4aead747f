"""Caller-side polling with retry and timeout.

The submission client never retries; this loop is where the retry policy
lives. Transient ``NetworkError``s are tolerated up to
``max_consecutive_failures`` in a row. Any other failure ends the wait.
"""
from __future__ import annotations

import time
from typing import Callable, Optional

from ..errors import NetworkError, SubmissionError
from ..timers import SleepFn, default_sleep
from ..utils.logging import get_logger
from .client import ProcessingSubmissionClient
from .models import ApiResult, JobState, JobStatusReport

logger = get_logger(__name__)


def wait_for_job(
    client: ProcessingSubmissionClient,
    job_id: str,
    poll_interval_s: Optional[float] = None,
    timeout_s: Optional[float] = None,
    max_consecutive_failures: Optional[int] = None,
    sleep: SleepFn = default_sleep,
    clock: Callable[[], float] = time.monotonic,
    on_status: Optional[Callable[[JobStatusReport], None]] = None,
) -> ApiResult:
    """Poll a job until it finishes, then fetch its results.

    Args:
        client: Initialized submission client.
        job_id: Job to wait for.
        poll_interval_s: Seconds between polls (config default when None).
        timeout_s: Give up after this many seconds (config default when None).
        max_consecutive_failures: Network errors tolerated in a row
            (config ``retry_attempts`` when None).
        sleep: Delay strategy.
        clock: Monotonic clock in seconds.
        on_status: Called with every successful status report.

    Returns:
        ApiResult with JobResults on success. Failures carry NetworkError
        (timeout or repeated transport errors), NotFound,
        AuthenticationError, or SubmissionError (job failed remotely).
    """
    cfg = client.config
    interval = cfg.poll_interval_s if poll_interval_s is None else poll_interval_s
    timeout = cfg.poll_timeout_s if timeout_s is None else timeout_s
    max_failures = cfg.retry_attempts if max_consecutive_failures is None else max_consecutive_failures

    deadline = clock() + timeout
    failures = 0
    last_state: Optional[JobState] = None

    while True:
        result = client.check_job_status(job_id)

        if result.success:
            failures = 0
            report: JobStatusReport = result.payload
            if on_status is not None:
                on_status(report)
            if report.state != last_state:
                logger.info(f"Job {job_id}: {report.state.value} ({report.progress:.0f}%)")
                last_state = report.state

            if report.state is JobState.COMPLETED:
                return client.get_job_results(job_id)
            if report.state is JobState.FAILED:
                stage = f" at stage {report.current_stage}" if report.current_stage else ""
                return ApiResult.failed(SubmissionError(f"Job {job_id} failed{stage}"), payload=report)

        elif isinstance(result.error, NetworkError):
            failures += 1
            logger.warning(f"Status poll {failures}/{max_failures} failed for {job_id}: {result.error}")
            if failures >= max_failures:
                return ApiResult.failed(NetworkError(
                    f"Gave up on job {job_id} after {failures} consecutive failures: {result.error}"
                ))
        else:
            return result

        if clock() + interval > deadline:
            return ApiResult.failed(NetworkError(f"Timed out waiting for job {job_id} after {timeout:.0f}s"))

        sleep(interval)
