"""Errors shared by the story and cover API clients."""

from __future__ import annotations

from typing import Any


class UpstreamServiceError(Exception):
  """Raised when an upstream API call fails."""

  status_code: int | None
  response_data: Any

  def __init__(
    self,
    message: str,
    *,
    status_code: int | None = None,
    response_data: Any = None,
  ):
    super().__init__(message)
    self.status_code = status_code
    self.response_data = response_data

  @property
  def retryable(self) -> bool:
    """Whether the caller may retry the request later."""
    return False


class UpstreamAuthError(UpstreamServiceError):
  """Raised when the upstream API rejects our credentials (401)."""


class UpstreamRateLimitedError(UpstreamServiceError):
  """Raised when the upstream API rate limits us (429)."""

  @property
  def retryable(self) -> bool:
    return True


class MalformedResponseError(UpstreamServiceError):
  """Raised when an upstream response does not have the expected shape."""


def error_for_status(service: str, status_code: int,
                     response_data: Any) -> UpstreamServiceError:
  """Map a non-2xx upstream status to the matching error."""
  message = f"{service} API error {status_code}: {response_data}"
  if status_code == 401:
    error_cls = UpstreamAuthError
  elif status_code == 429:
    error_cls = UpstreamRateLimitedError
  else:
    error_cls = UpstreamServiceError
  return error_cls(message,
                   status_code=status_code,
                   response_data=response_data)
