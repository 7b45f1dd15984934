"""Chat completion client for story generation (DeepSeek API)."""

from __future__ import annotations

import time
from typing import Any

import requests
from common import config
from firebase_functions import logger
from services.upstream import (MalformedResponseError, UpstreamServiceError,
                               error_for_status)

_SERVICE_NAME = "Chat"


def _post_chat_completion(payload: dict[str, Any]) -> dict[str, Any]:
  """POST a chat completion request and return the JSON payload."""
  api_key = config.get_deepseek_api_key()
  url = f"{config.CHAT_API_BASE_URL}/chat/completions"

  try:
    response = requests.post(
      url,
      json=payload,
      headers={
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
      },
      timeout=config.CHAT_TIMEOUT_SEC,
    )
  except requests.RequestException as e:
    raise UpstreamServiceError(f"{_SERVICE_NAME} API request failed: {e}") from e

  try:
    data = response.json()
  except ValueError:
    data = {"error": {"message": response.text}}

  if response.status_code < 200 or response.status_code >= 300:
    logger.error(
      "Chat API error",
      extra={
        "json_fields": {
          "status_code": response.status_code,
          "response": data,
        }
      },
    )
    raise error_for_status(_SERVICE_NAME, response.status_code, data)

  return data


def _extract_message_content(data: Any) -> str:
  """Return choices[0].message.content from a chat completion payload."""
  try:
    content = data["choices"][0]["message"]["content"]
  except (KeyError, IndexError, TypeError) as e:
    raise MalformedResponseError(
      f"Unexpected {_SERVICE_NAME} API response shape: {data}",
      response_data=data) from e

  if not isinstance(content, str) or not content.strip():
    raise MalformedResponseError(f"{_SERVICE_NAME} API returned no text",
                                 response_data=data)
  return content


def complete(
  prompt: str,
  *,
  system_prompt: str | None = None,
  temperature: float = config.CHAT_TEMPERATURE,
  max_tokens: int = config.CHAT_MAX_TOKENS,
  label: str = "story",
) -> str:
  """Run a single chat completion and return the response text.

  Raises:
      AuthConfigurationError: If the API key is not configured.
      UpstreamAuthError: On 401.
      UpstreamRateLimitedError: On 429.
      UpstreamServiceError: On any other failure.
      MalformedResponseError: If the response has no message content.
  """
  messages = []
  if system_prompt:
    messages.append({"role": "system", "content": system_prompt})
  messages.append({"role": "user", "content": prompt})

  payload = {
    "model": config.CHAT_MODEL,
    "messages": messages,
    "temperature": temperature,
    "max_tokens": max_tokens,
  }

  start_time = time.perf_counter()
  logger.info(f"{config.CHAT_MODEL} start: {label}")

  data = _post_chat_completion(payload)
  text = _extract_message_content(data)

  usage = data.get("usage") if isinstance(data, dict) else None
  logger.info(
    f"{config.CHAT_MODEL} done: {label}",
    extra={
      "json_fields": {
        "model_name": config.CHAT_MODEL,
        "label": label,
        "generation_time_sec": time.perf_counter() - start_time,
        **(usage if isinstance(usage, dict) else {}),
      }
    },
  )
  return text
