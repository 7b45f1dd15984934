"""Utility functions for Cloud Functions."""

import json
import traceback
from typing import Any

from common import (config, export_operations, polling, story_prompts,
                    usage_operations, utils)
from firebase_admin import auth
from firebase_functions import https_fn, logger
from services import firestore
from services.upstream import UpstreamServiceError


# CORS constants
_CORS_HEADERS = {
  "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
  "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

_GENERIC_SERVICE_ERROR = "Story service temporarily unavailable"


class Error(Exception):
  """Base class for exceptions in this module."""


class UnauthenticatedError(Error):
  """Raised when the request has no valid Firebase ID token."""


def _allowed_origins() -> set[str]:
  """Return allowed origins based on environment (emulator vs prod)."""
  if utils.is_emulator():
    return {
      "http://127.0.0.1:5000",
      "http://localhost:5000",
      "http://127.0.0.1",
      "http://localhost",
    }
  else:
    return {
      f"https://{config.PUBLIC_HOST}",
    }


def get_cors_headers(req: https_fn.Request | None) -> dict[str, str]:
  """Return CORS headers only for allowed origins."""
  if not req:
    return {}

  origin = req.headers.get("Origin")
  if origin and origin.rstrip("/") in _allowed_origins():
    return {**_CORS_HEADERS, "Access-Control-Allow-Origin": origin}
  return {}


def handle_cors_preflight(req: https_fn.Request) -> https_fn.Response | None:
  """Handle OPTIONS requests for CORS preflight."""
  if req.method == "OPTIONS":
    cors_headers = get_cors_headers(req) or _CORS_HEADERS
    return https_fn.Response(
      "",
      status=204,
      headers=cors_headers,
    )
  return None


def handle_health_check(req: https_fn.Request) -> https_fn.Response | None:
  """Handle health check requests."""
  if req.path == "/__/health":
    cors_headers = get_cors_headers(req)
    return https_fn.Response("OK", status=200, headers=cors_headers)
  return None


def get_user_id(req: https_fn.Request) -> str:
  """Get the signed-in user's uid from the Firebase ID token.

  Raises:
      UnauthenticatedError: If the header is missing or the token is invalid.
  """
  auth_header = req.headers.get('Authorization') or ''
  scheme, _, id_token = auth_header.partition(' ')
  if scheme.lower() != 'bearer' or not id_token.strip():
    raise UnauthenticatedError("Authorization header is missing")

  try:
    decoded_token = auth.verify_id_token(id_token.strip())
  except Exception as e:  # pylint: disable=broad-except
    logger.error(f"Error verifying ID token: {e}")
    raise UnauthenticatedError("Invalid ID token") from e
  return decoded_token['uid']


def json_response(
  data: dict[str, Any],
  req: https_fn.Request | None = None,
  status: int = 200,
) -> https_fn.Response:
  """Return a JSON response with CORS headers."""
  cors_headers = get_cors_headers(req)
  return https_fn.Response(
    json.dumps(data),
    status=status,
    headers=cors_headers,
    mimetype='application/json',
  )


def error_response(
  message: str,
  *,
  error_type: str | None = None,
  req: https_fn.Request | None = None,
  status: int = 500,
) -> https_fn.Response:
  """Return an error response with optional typed error code and CORS headers."""
  logger.error(f"Error response: {message} ({error_type})")
  payload: dict[str, Any] = {"error": message}
  if error_type:
    payload["errorType"] = error_type
  return json_response(payload, req=req, status=status)


def method_not_allowed_response(req: https_fn.Request) -> https_fn.Response:
  """Return a 405 response for an unsupported method."""
  return error_response(f"Method not allowed: {req.method}",
                        error_type="method_not_allowed",
                        req=req,
                        status=405)


def exception_response(exc: Exception,
                       req: https_fn.Request | None = None) -> https_fn.Response:
  """Convert an exception into a user-facing error response.

  Details of upstream and internal failures are logged, never returned.
  """
  if isinstance(exc, story_prompts.ValidationError):
    return error_response(str(exc),
                          error_type="validation_error",
                          req=req,
                          status=400)
  if isinstance(exc, UnauthenticatedError):
    return error_response("Authentication required",
                          error_type="unauthenticated",
                          req=req,
                          status=401)
  if isinstance(exc, usage_operations.QuotaExceededError):
    return error_response(str(exc),
                          error_type="quota_exceeded",
                          req=req,
                          status=403)
  if isinstance(exc, export_operations.CoverUnavailableError):
    logger.error(f"Cover unavailable for export: {exc}")
    return error_response("A cover image is required for this export",
                          error_type="cover_unavailable",
                          req=req,
                          status=400)
  if isinstance(exc, config.AuthConfigurationError):
    logger.error(f"Configuration error: {exc}")
    return error_response("Service is not configured",
                          error_type="configuration_error",
                          req=req,
                          status=500)
  if isinstance(exc, UpstreamServiceError) and exc.retryable:
    return error_response("Too many requests, please try again shortly",
                          error_type="rate_limited",
                          req=req,
                          status=429)
  if isinstance(exc, (UpstreamServiceError, polling.Error)):
    logger.error(f"Upstream failure: {exc}")
    return error_response(_GENERIC_SERVICE_ERROR,
                          error_type="upstream_error",
                          req=req,
                          status=502)
  if isinstance(exc, firestore.Error):
    logger.error(f"Usage store failure: {exc}")
    return error_response(_GENERIC_SERVICE_ERROR,
                          error_type="store_unavailable",
                          req=req,
                          status=503)

  logger.error(f"Unhandled error: {exc}\n{traceback.format_exc()}")
  return error_response(_GENERIC_SERVICE_ERROR,
                        error_type="internal_error",
                        req=req,
                        status=500)


def get_param(
  req: https_fn.Request,
  param_name: str,
  default: Any | None = None,
  required: bool = False,
) -> Any | None:
  """Get a parameter from the JSON body, falling back to the query string."""
  val = None
  if req.is_json:
    json_data = req.get_json(silent=True)
    if isinstance(json_data, dict):
      val = json_data.get(param_name)
  if val is None:
    val = req.args.get(param_name)
  if val is None:
    val = default

  if val is None and required:
    raise story_prompts.ValidationError(
      f"Missing required parameter '{param_name}'")
  return val
