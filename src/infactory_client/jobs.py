"""
Waiting on asynchronous server-side jobs.
"""
import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

from .core.base_client import AsyncHttpClient
from .core.request_builder import expand_path
from .errors import (
    InfactoryAPIError,
    JobFailedError,
    NotFoundError,
    PollingCancelledError,
    PollingTimeoutError,
    ServerError,
)
from .polling import PollingOptions, poll
from .types import ApiResponse

logger = logging.getLogger("infactory_client.jobs")

JOB_PATH = "/v1/jobs/{job_id}"
SUBMIT_JOB_PATH = "/v1/jobs/submit"

COMPLETED_STATUS = "completed"
FAILED_STATUSES = ("failed", "error")


async def submit_job(client: AsyncHttpClient, params: Dict[str, Any]) -> str:
    """Submit a job and return its id. Envelope errors are raised."""
    response = await client.post(SUBMIT_JOB_PATH, body=params)
    return response.unwrap() or ""


async def get_job_status(client: AsyncHttpClient, job_id: str) -> ApiResponse[Dict[str, Any]]:
    """Fetch the current state of a job."""
    return await client.get(expand_path(JOB_PATH, job_id=job_id))


def _job_failure(job_id: str, job: Any) -> Optional[JobFailedError]:
    if isinstance(job, dict) and job.get("status") in FAILED_STATUSES:
        return JobFailedError(job_id, job["status"], details=job)
    return None


async def await_job(
    client: AsyncHttpClient,
    job_id: str,
    timeout: float = 300.0,
    poll_interval: float = 2.0,
    cancel_event: Optional[asyncio.Event] = None,
) -> Dict[str, Any]:
    """
    Poll a job until it completes.

    The job status is checked every ``poll_interval`` seconds.

    Returns:
        The job payload once its status is ``completed``

    Raises:
        JobFailedError: The job finished with status ``failed`` or ``error``
        PollingTimeoutError: ``timeout`` elapsed first
        PollingCancelledError: ``cancel_event`` was set
        InfactoryAPIError: The status call itself failed or returned a
            payload that is not a job object
    """

    async def probe() -> Dict[str, Any]:
        response = await get_job_status(client, job_id)
        job = response.unwrap()
        if not job:
            raise NotFoundError(f"No job data found for {job_id}")
        if not isinstance(job, dict):
            raise ServerError(
                f"Unexpected job payload for {job_id}", details={"payload": job}
            )
        logger.debug(f"await_job: {job_id} status={job.get('status')}")
        return job

    return await poll(
        probe,
        PollingOptions(
            timeout=timeout,
            initial_poll_interval=poll_interval,
            max_poll_interval=poll_interval,
            backoff_multiplier=1.0,
            cancel_event=cancel_event,
            end_condition=lambda job: job.get("status") == COMPLETED_STATUS,
            error_check=lambda job: _job_failure(job_id, job),
        ),
    )


async def wait_for_job_completion(
    client: AsyncHttpClient,
    job_id: str,
    timeout: float = 300.0,
    poll_interval: float = 2.0,
    cancel_event: Optional[asyncio.Event] = None,
) -> Tuple[bool, str]:
    """
    Legacy form of :func:`await_job` that reports the outcome as a tuple.

    Returns:
        ``(True, "completed")``, ``(False, <job status>)`` for a failed job,
        ``(False, "timeout")``, ``(False, "cancelled")``, or
        ``(False, <error message>)``
    """
    try:
        await await_job(client, job_id, timeout, poll_interval, cancel_event)
    except JobFailedError as err:
        return False, err.job_status
    except PollingTimeoutError:
        return False, "timeout"
    except PollingCancelledError:
        return False, "cancelled"
    except InfactoryAPIError as err:
        logger.warning(f"wait_for_job_completion: {job_id} failed: {err!r}")
        return False, err.message
    return True, COMPLETED_STATUS
