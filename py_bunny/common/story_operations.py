"""Operations for generating bedtime stories and their covers."""

from __future__ import annotations

import asyncio
import traceback

from common import models, story_prompts, usage_operations
from firebase_functions import logger
from services import chat_client, replicate_client

COVER_ERROR_MESSAGE = "We couldn't draw a cover for this story."


def generate_story(request: models.StoryRequest) -> models.StoryResult:
  """Generate a story for the request and split it into title and content."""
  prompt = story_prompts.build_prompt(request.name, request.gender,
                                      request.keywords)
  raw_story = chat_client.complete(prompt,
                                   system_prompt=story_prompts.SYSTEM_PROMPT,
                                   label="story")
  return story_prompts.parse_story_text(raw_story, request.name)


def generate_cover(prompt: str, image_base64: str | None = None) -> str:
  """Generate a cover image and return its URL.

  Blocks the calling thread until the prediction finishes or times out.
  """
  return asyncio.run(replicate_client.generate_cover(prompt, image_base64))


def create_story_for_user(
  user_id: str,
  request: models.StoryRequest,
) -> models.StoryBundle:
  """Run the full story flow for a signed-in user.

  Checks the user's quota, generates the story and then the cover, and
  records the generation. A failed cover does not fail the flow; the story
  is returned without an image.

  Raises:
      QuotaExceededError: If the user has no generations left.
  """
  usage_operations.require_generation_allowed(user_id)

  story = generate_story(request)

  image_url = None
  cover_error = None
  cover_prompt = story_prompts.build_cover_prompt(request.name,
                                                  request.keywords)
  try:
    image_url = generate_cover(cover_prompt, request.image_base64)
  except Exception:  # pylint: disable=broad-except
    logger.error(f"Cover generation failed for user {user_id}:\n"
                 f"{traceback.format_exc()}")
    cover_error = COVER_ERROR_MESSAGE

  usage = usage_operations.record_generation(user_id)

  bundle = models.StoryBundle(
    story=story,
    image_url=image_url,
    cover_error=cover_error,
    usage=usage,
  )
  logger.info(
    f"Story created for user {user_id}: {story.title}",
    extra={
      "json_fields": {
        "user_id": user_id,
        "has_cover": bundle.has_cover,
        "monthly_generations": usage.monthly_generations,
      }
    },
  )
  return bundle
