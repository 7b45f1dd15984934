"""Cloud Functions for generating bedtime stories and covers."""

from __future__ import annotations

from common import config, story_operations, story_prompts, usage_operations
from firebase_functions import https_fn, logger, options
from functions.function_utils import (exception_response, get_param,
                                      get_user_id, handle_cors_preflight,
                                      handle_health_check, json_response,
                                      method_not_allowed_response)


def _preflight(req: https_fn.Request) -> https_fn.Response | None:
  """Handle health checks, CORS preflight and non-POST methods."""
  if response := handle_health_check(req):
    return response
  if response := handle_cors_preflight(req):
    return response
  if req.method != 'POST':
    return method_not_allowed_response(req)
  return None


def _get_story_request(req: https_fn.Request):
  return story_prompts.build_story_request(
    name=get_param(req, 'name'),
    gender=get_param(req, 'gender'),
    keywords=get_param(req, 'keywords'),
    image_base64=get_param(req, 'imageBase64'),
  )


@https_fn.on_request(
  memory=options.MemoryOption.MB_512,
  timeout_sec=120,
  secrets=[config.DEEPSEEK_API_KEY_SECRET],
)
def generate_story(req: https_fn.Request) -> https_fn.Response:
  """Generate a story from a child's name, gender and keywords.

  Returns {title, content}.
  """
  if response := _preflight(req):
    return response

  try:
    story_request = _get_story_request(req)
    story = story_operations.generate_story(story_request)
    return json_response(story.to_dict(), req=req)
  except Exception as exc:  # pylint: disable=broad-except
    return exception_response(exc, req=req)


@https_fn.on_request(
  memory=options.MemoryOption.MB_512,
  timeout_sec=120,
  secrets=[config.REPLICATE_API_TOKEN_SECRET],
)
def generate_cover(req: https_fn.Request) -> https_fn.Response:
  """Generate a cover image from a prompt and optional reference photo.

  Returns {imageUrl}.
  """
  if response := _preflight(req):
    return response

  try:
    prompt = get_param(req, 'prompt')
    if not isinstance(prompt, str) or not prompt.strip():
      raise story_prompts.ValidationError(
        "A prompt is required for image generation")
    image_base64 = get_param(req, 'imageBase64')
    image_url = story_operations.generate_cover(prompt, image_base64)
    return json_response({"imageUrl": image_url}, req=req)
  except Exception as exc:  # pylint: disable=broad-except
    return exception_response(exc, req=req)


@https_fn.on_request(
  memory=options.MemoryOption.GB_1,
  timeout_sec=300,
  secrets=[
    config.DEEPSEEK_API_KEY_SECRET,
    config.REPLICATE_API_TOKEN_SECRET,
  ],
)
def create_story(req: https_fn.Request) -> https_fn.Response:
  """Generate a story and its cover for the signed-in user.

  Checks and records the user's monthly usage. Returns {title, content,
  imageUrl, coverError, usage}; imageUrl is null if the cover failed.
  """
  if response := _preflight(req):
    return response

  try:
    user_id = get_user_id(req)
    story_request = _get_story_request(req)
    logger.info(f"Story requested by user: {user_id}")

    bundle = story_operations.create_story_for_user(user_id, story_request)

    data = bundle.as_dict
    if bundle.usage:
      data['usage'] = usage_operations.to_response_usage(bundle.usage)
    return json_response(data, req=req)
  except Exception as exc:  # pylint: disable=broad-except
    return exception_response(exc, req=req)
