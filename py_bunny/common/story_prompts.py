"""Prompts for bedtime stories and covers, and parsing of story output."""

import re

from common import models

# pylint: disable=line-too-long
SYSTEM_PROMPT = """You are a children's story author. Create engaging fairy tales in English for ages 4-8.
Format: First line as story title (without markdown), then the story content."""

_STORY_PROMPT_TEMPLATE = "Create a bedtime story where a brave {gender} named {name} goes on a magical adventure. Include: {keywords}. The story should be inspirational, imaginative, gentle, and around 300–500 words."
# pylint: enable=line-too-long

_COVER_PROMPT_TEMPLATE = "A children's story about {name}: {keywords}"

_TEXT_TO_IMAGE_TEMPLATE = ("Children's book cover illustration of: {prompt}, "
                           "fairy tale style, colorful, magical")

_TITLE_MARKER_RE = re.compile(r'^#\s*|^Title:\s*', re.IGNORECASE)

# A first line shorter than this, without a trailing period, is a title.
_MAX_TITLE_LINE_LENGTH = 100


class Error(Exception):
  """Base class for exceptions in this module."""


class ValidationError(Error):
  """Raised when story input is missing or malformed."""


def _require(value: str | None, field_name: str) -> str:
  if not isinstance(value, str) or not value.strip():
    raise ValidationError(f"Missing required story parameter: {field_name}")
  return value.strip()


def build_story_request(
  name: str | None,
  gender: str | None,
  keywords: str | None,
  image_base64: str | None = None,
) -> models.StoryRequest:
  """Validate raw input fields into a StoryRequest."""
  return models.StoryRequest(
    name=_require(name, 'name'),
    gender=_require(gender, 'gender'),
    keywords=_require(keywords, 'keywords'),
    image_base64=image_base64 or None,
  )


def build_prompt(name: str | None, gender: str | None,
                 keywords: str | None) -> str:
  """Build the story prompt for a child.

  Raises:
      ValidationError: If any field is missing or blank.
  """
  return _STORY_PROMPT_TEMPLATE.format(
    name=_require(name, 'name'),
    gender=_require(gender, 'gender'),
    keywords=_require(keywords, 'keywords'),
  )


def build_cover_prompt(name: str, keywords: str) -> str:
  """Build the cover description for a story."""
  return _COVER_PROMPT_TEMPLATE.format(name=name.strip(),
                                       keywords=keywords.strip())


def decorate_text_to_image_prompt(prompt: str) -> str:
  """Add the cover illustration style to a text-to-image prompt."""
  return _TEXT_TO_IMAGE_TEMPLATE.format(prompt=prompt)


def _strip_title_marker(line: str) -> str:
  return _TITLE_MARKER_RE.sub('', line, count=1)


def fallback_title(name: str) -> str:
  """Title used when the model output has no recognizable title."""
  return f"{name}'s Magical Adventure"


def parse_story_text(raw: str, fallback_name: str) -> models.StoryResult:
  """Split raw model output into a title and content.

  Tried in order:
  1. Text before the first blank line is the title, the rest is content.
  2. A first line under 100 characters that does not end with a period is
     the title, the remaining lines are content.
  3. A generated title, with the whole text as content.

  Leading "#" or "Title:" markers are stripped from titles. This can misfire
  on a short first sentence without a trailing period.
  """
  raw = raw or ""

  if "\n\n" in raw:
    first_block, *content_blocks = raw.split("\n\n")
    title = _strip_title_marker(first_block).strip()
    content = "\n\n".join(content_blocks).strip()
    if title:
      return models.StoryResult(title=title, content=content)
    return models.StoryResult(title=fallback_title(fallback_name),
                              content=content)

  lines = raw.split("\n")
  first_line = lines[0].strip()
  if len(first_line) < _MAX_TITLE_LINE_LENGTH and not first_line.endswith('.'):
    title = _strip_title_marker(first_line)
    content = "\n".join(lines[1:]).strip()
    if title:
      return models.StoryResult(title=title, content=content)
    return models.StoryResult(title=fallback_title(fallback_name),
                              content=content)

  return models.StoryResult(title=fallback_title(fallback_name),
                            content=raw.strip())
