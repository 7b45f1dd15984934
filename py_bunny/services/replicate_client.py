"""Replicate prediction client for story cover images."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import httpx
from common import config, models, polling, story_prompts
from firebase_functions import logger
from services.upstream import (MalformedResponseError, UpstreamServiceError,
                               error_for_status)

_SERVICE_NAME = "Replicate"

_NEGATIVE_PROMPT = "low quality, blurry, distorted, deformed"


def build_prediction_request(prompt: str,
                             image_base64: str | None = None) -> dict[str, Any]:
  """Build the prediction body for a cover.

  With a reference photo the image-to-image model is used, otherwise the
  text-to-image model.
  """
  if image_base64:
    return {
      "version": config.IMAGE_TO_IMAGE_VERSION,
      "input": {
        "prompt": prompt,
        "image": image_base64,
        "strength": config.IMAGE_TO_IMAGE_STRENGTH,
      },
    }

  return {
    "version": config.TEXT_TO_IMAGE_VERSION,
    "input": {
      "prompt": story_prompts.decorate_text_to_image_prompt(prompt),
      "negative_prompt": _NEGATIVE_PROMPT,
      "width": config.COVER_IMAGE_SIZE,
      "height": config.COVER_IMAGE_SIZE,
      "num_outputs": 1,
    },
  }


def _create_http_client(
  api_token: str,
  transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
  return httpx.AsyncClient(
    base_url=config.REPLICATE_API_BASE_URL,
    headers={
      "Content-Type": "application/json",
      "Authorization": f"Bearer {api_token}",
    },
    timeout=config.REPLICATE_TIMEOUT_SEC,
    transport=transport,
  )


async def _request_json(
  client: httpx.AsyncClient,
  method: str,
  path: str,
  body: dict[str, Any] | None = None,
) -> dict[str, Any]:
  """Make a request to the Replicate API and return the JSON payload."""
  try:
    response = await client.request(method, path, json=body)
  except httpx.HTTPError as e:
    raise UpstreamServiceError(f"{_SERVICE_NAME} API request failed: {e}") from e

  try:
    data = response.json()
  except ValueError:
    data = {"detail": response.text}

  if response.status_code < 200 or response.status_code >= 300:
    logger.error(
      "Replicate API error",
      extra={
        "json_fields": {
          "method": method,
          "path": path,
          "status_code": response.status_code,
          "response": data,
        }
      },
    )
    raise error_for_status(_SERVICE_NAME, response.status_code, data)

  if not isinstance(data, dict):
    raise MalformedResponseError(
      f"Unexpected {_SERVICE_NAME} API response: {data}", response_data=data)
  return data


async def submit_prediction(client: httpx.AsyncClient,
                            request_body: dict[str, Any]) -> str:
  """Start a prediction and return its id."""
  data = await _request_json(client, "POST", "/predictions", request_body)
  prediction_id = data.get("id")
  if not prediction_id:
    raise MalformedResponseError(
      f"{_SERVICE_NAME} prediction response has no id: {data}",
      response_data=data)
  return str(prediction_id)


async def get_prediction(client: httpx.AsyncClient,
                         prediction_id: str) -> models.PredictionJob:
  """Fetch the current state of a prediction."""
  data = await _request_json(client, "GET", f"/predictions/{prediction_id}")
  data.setdefault("id", prediction_id)
  return models.PredictionJob.from_api_dict(data)


async def generate_cover(
  prompt: str,
  image_base64: str | None = None,
  *,
  transport: httpx.AsyncBaseTransport | None = None,
  sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
  cancel_event: asyncio.Event | None = None,
) -> str:
  """Generate a cover image and return its URL.

  Raises:
      AuthConfigurationError: If the API token is not configured.
      UpstreamServiceError: If the API rejects a request.
      JobFailedError: If the prediction fails.
      PollTimeoutError: If the prediction does not finish in time.
  """
  if not prompt or not prompt.strip():
    raise story_prompts.ValidationError("A prompt is required for image "
                                        "generation")

  api_token = config.get_replicate_api_token()
  request_body = build_prediction_request(prompt.strip(), image_base64)
  model_name = (config.IMAGE_TO_IMAGE_MODEL
                if image_base64 else config.TEXT_TO_IMAGE_MODEL)
  logger.info(f"{model_name} start: cover")

  async with _create_http_client(api_token, transport) as client:

    async def _submit() -> str:
      return await submit_prediction(client, request_body)

    async def _status(prediction_id: str) -> models.PredictionJob:
      return await get_prediction(client, prediction_id)

    image_url = await polling.poll_until_terminal(
      _submit,
      _status,
      sleep=sleep,
      cancel_event=cancel_event,
    )

  logger.info(f"{model_name} done: cover",
              extra={"json_fields": {
                "model_name": model_name,
                "image_url": image_url,
              }})
  return image_url
