"""Cloud Functions for story usage limits and share bonuses."""

from __future__ import annotations

import datetime

from common import usage_operations
from firebase_functions import https_fn, logger, options, scheduler_fn
from functions.function_utils import (exception_response, get_user_id,
                                      handle_cors_preflight,
                                      handle_health_check, json_response,
                                      method_not_allowed_response)
from services import firestore


@https_fn.on_request(
  memory=options.MemoryOption.MB_256,
  timeout_sec=30,
)
def usage_stats(req: https_fn.Request) -> https_fn.Response:
  """Return the signed-in user's usage, creating it on first sign-in."""
  if response := handle_health_check(req):
    return response
  if response := handle_cors_preflight(req):
    return response
  if req.method not in ['GET', 'POST']:
    return method_not_allowed_response(req)

  try:
    user_id = get_user_id(req)
    quota = usage_operations.get_usage(user_id)
    return json_response({"usage": usage_operations.to_response_usage(quota)},
                         req=req)
  except Exception as exc:  # pylint: disable=broad-except
    return exception_response(exc, req=req)


@https_fn.on_request(
  memory=options.MemoryOption.MB_256,
  timeout_sec=30,
)
def record_share(req: https_fn.Request) -> https_fn.Response:
  """Record that the signed-in user shared a story."""
  if response := handle_health_check(req):
    return response
  if response := handle_cors_preflight(req):
    return response
  if req.method != 'POST':
    return method_not_allowed_response(req)

  try:
    user_id = get_user_id(req)
    quota = usage_operations.record_share(user_id)
    return json_response({"usage": usage_operations.to_response_usage(quota)},
                         req=req)
  except Exception as exc:  # pylint: disable=broad-except
    return exception_response(exc, req=req)


@scheduler_fn.on_schedule(
  # Runs at 12:00 AM UTC on the first day of every month
  schedule="0 0 1 * *",
  timezone="Etc/UTC",
  memory=options.MemoryOption.MB_512,
  timeout_sec=540,
)
def reset_monthly_usage_scheduler(event: scheduler_fn.ScheduledEvent) -> None:
  """Scheduled function that resets every user's monthly story count."""
  scheduled_time_utc = event.schedule_time
  if scheduled_time_utc is None:
    scheduled_time_utc = datetime.datetime.now(datetime.timezone.utc)

  _reset_monthly_usage_internal(scheduled_time_utc)


def _reset_monthly_usage_internal(run_time_utc: datetime.datetime) -> int:
  """Reset monthly usage counters and return the number of users reset."""
  num_reset = firestore.reset_all_monthly_generations()
  logger.info(f"Monthly usage reset for {run_time_utc.isoformat()}: "
              f"{num_reset} users reset")
  return num_reset
