"""Polling for long-running prediction jobs."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from common import config, models
from firebase_functions import logger


class Error(Exception):
  """Base class for exceptions in this module."""


class JobFailedError(Error):
  """Raised when the job reports a failed status."""

  def __init__(self, detail: str):
    super().__init__(f"Prediction failed: {detail}")
    self.detail = detail


class PollTimeoutError(Error):
  """Raised when the job is still pending after the last attempt."""


class PollCancelledError(Error):
  """Raised when the caller cancels polling before a terminal status."""


class EmptyOutputError(Error):
  """Raised when a succeeded job has no output to return."""


async def poll_until_terminal(
  submit_fn: Callable[[], Awaitable[str]],
  status_fn: Callable[[str], Awaitable[models.PredictionJob]],
  *,
  interval_sec: float = config.PREDICTION_POLL_INTERVAL_SEC,
  max_attempts: int = config.PREDICTION_MAX_POLL_ATTEMPTS,
  sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
  cancel_event: asyncio.Event | None = None,
) -> str:
  """Submit a job and wait for its first output.

  Polls at a fixed interval; the worst case wait is roughly
  `interval_sec * max_attempts`.

  Args:
      submit_fn: Submits the job and returns its id.
      status_fn: Returns the current state of the job with the given id.
      interval_sec: Delay between polls.
      max_attempts: Maximum number of status polls.
      sleep: Awaitable sleep, injectable for tests.
      cancel_event: When set, polling stops before the next poll.

  Returns:
      The first element of the job output.

  Raises:
      JobFailedError: The job reported failure. No further polls are made.
      PollTimeoutError: No terminal status after `max_attempts` polls.
      PollCancelledError: `cancel_event` was set.
      EmptyOutputError: The job succeeded without output.
  """
  job_id = await submit_fn()
  logger.info(f"Submitted prediction job {job_id}")

  last_status = None
  for attempt in range(1, max_attempts + 1):
    if cancel_event is not None and cancel_event.is_set():
      raise PollCancelledError(
        f"Polling for job {job_id} cancelled after {attempt - 1} polls")

    job = await status_fn(job_id)
    last_status = job.status
    logger.info(
      "Polled prediction job",
      extra={
        "json_fields": {
          "job_id": job_id,
          "attempt": attempt,
          "status": job.status.value,
        }
      },
    )

    if job.is_terminal:
      if job.status == models.PredictionStatus.FAILED:
        raise JobFailedError(job.error_detail or "Unknown error")
      if not job.output:
        raise EmptyOutputError(f"Job {job_id} succeeded without output")
      return job.output[0]

    if attempt < max_attempts:
      await sleep(interval_sec)

  raise PollTimeoutError(
    f"Job {job_id} not finished after {max_attempts} polls; "
    f"last status={last_status.value if last_status else None}")
