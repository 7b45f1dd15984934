"""Tests for the polling module."""

import asyncio

import pytest
from common import models, polling


class _FakeJobs:
  """Replays a fixed sequence of job states."""

  def __init__(self, states):
    self._states = list(states)
    self.submitted = 0
    self.polls = 0

  async def submit(self):
    self.submitted += 1
    return "job-1"

  async def status(self, job_id):
    assert job_id == "job-1"
    state = self._states[min(self.polls, len(self._states) - 1)]
    self.polls += 1
    return state


class _RecordingSleep:

  def __init__(self):
    self.delays = []

  async def __call__(self, delay):
    self.delays.append(delay)


def _pending():
  return models.PredictionJob(job_id="job-1")


def _succeeded(url="https://img/1.png"):
  return models.PredictionJob(job_id="job-1",
                              status=models.PredictionStatus.SUCCEEDED,
                              output=[url, "https://img/2.png"])


def _failed(detail="NSFW content detected"):
  return models.PredictionJob(job_id="job-1",
                              status=models.PredictionStatus.FAILED,
                              error_detail=detail)


@pytest.mark.asyncio
async def test_poll_returns_first_output_after_pending_polls():
  jobs = _FakeJobs([_pending(), _pending(), _succeeded()])
  sleep = _RecordingSleep()

  url = await polling.poll_until_terminal(jobs.submit,
                                          jobs.status,
                                          interval_sec=2.0,
                                          max_attempts=30,
                                          sleep=sleep)

  assert url == "https://img/1.png"
  assert jobs.submitted == 1
  assert jobs.polls == 3
  assert sleep.delays == [2.0, 2.0]


@pytest.mark.asyncio
async def test_poll_stops_on_first_failure():
  jobs = _FakeJobs([_failed(), _succeeded()])
  sleep = _RecordingSleep()

  with pytest.raises(polling.JobFailedError) as exc_info:
    await polling.poll_until_terminal(jobs.submit, jobs.status, sleep=sleep)

  assert str(exc_info.value) == "Prediction failed: NSFW content detected"
  assert exc_info.value.detail == "NSFW content detected"
  assert jobs.polls == 1
  assert not sleep.delays


@pytest.mark.asyncio
async def test_poll_times_out_after_max_attempts():
  jobs = _FakeJobs([_pending()])
  sleep = _RecordingSleep()

  with pytest.raises(polling.PollTimeoutError):
    await polling.poll_until_terminal(jobs.submit,
                                      jobs.status,
                                      interval_sec=2.0,
                                      max_attempts=30,
                                      sleep=sleep)

  assert jobs.polls == 30
  # No sleep after the final poll.
  assert len(sleep.delays) == 29


@pytest.mark.asyncio
async def test_poll_raises_when_succeeded_without_output():
  jobs = _FakeJobs([
    models.PredictionJob(job_id="job-1",
                         status=models.PredictionStatus.SUCCEEDED)
  ])

  with pytest.raises(polling.EmptyOutputError):
    await polling.poll_until_terminal(jobs.submit,
                                      jobs.status,
                                      sleep=_RecordingSleep())


@pytest.mark.asyncio
async def test_poll_stops_when_cancelled():
  jobs = _FakeJobs([_pending()])
  cancel_event = asyncio.Event()

  async def cancelling_sleep(_delay):
    cancel_event.set()

  with pytest.raises(polling.PollCancelledError):
    await polling.poll_until_terminal(jobs.submit,
                                      jobs.status,
                                      sleep=cancelling_sleep,
                                      cancel_event=cancel_event)

  assert jobs.polls == 1


@pytest.mark.asyncio
async def test_poll_wait_lets_other_coroutines_run():
  jobs = _FakeJobs([_pending(), _pending(), _pending(), _succeeded()])
  events = []

  async def tracked_status(job_id):
    job = await jobs.status(job_id)
    events.append("poll")
    return job

  async def other_work():
    for _ in range(3):
      events.append("other")
      await asyncio.sleep(0)

  url, _ = await asyncio.gather(
    polling.poll_until_terminal(jobs.submit,
                                tracked_status,
                                interval_sec=0.01,
                                max_attempts=10),
    other_work(),
  )

  assert url == "https://img/1.png"
  assert events.count("other") == 3
  # The other coroutine finished while the poller was waiting between polls.
  assert events.index("other") < events.index("poll", 1)
  assert events[-1] == "poll"
