"""Story exports: printable PDF and social share image."""

from __future__ import annotations

from io import BytesIO
from urllib.parse import urlparse

import requests
from common import config, models, utils
from firebase_functions import logger
from PIL import Image
from services import pdf_client
from services.image_editor import ImageEditor

SHARE_IMAGE_SIZE = 1080
_SHARE_PADDING = 40
_SHARE_COVER_SIZE = 600
_SHARE_COVER_RADIUS = 20
_SHARE_COVER_GAP = 30
_SHARE_TITLE_SIZE = 48
_SHARE_TITLE_WIDTH = 900
_SHARE_EXCERPT_SIZE = 24
_SHARE_EXCERPT_WIDTH = 800
_SHARE_EXCERPT_MAX_LINES = 3

_TITLE_COLOR = (51, 51, 51)
_EXCERPT_COLOR = (102, 102, 102)


class Error(Exception):
  """Base class for exceptions in this module."""


class CoverUnavailableError(Error):
  """Raised when an export needs the cover image and it can't be loaded."""


def is_allowed_cover_url(image_url: str) -> bool:
  """Whether the URL is an https URL on a cover image host."""
  parsed = urlparse(image_url)
  if parsed.scheme != 'https' or not parsed.hostname:
    return False
  host = parsed.hostname.lower()
  return any(host == allowed or host.endswith(f".{allowed}")
             for allowed in config.COVER_IMAGE_HOSTS)


def load_cover_image(image_url: str) -> Image.Image:
  """Download and decode a cover image.

  Raises:
      CoverUnavailableError: If the URL is not on a cover image host, or the
        image can't be downloaded or decoded.
  """
  if not is_allowed_cover_url(image_url):
    raise CoverUnavailableError(f"Cover image host not allowed: {image_url}")

  try:
    image_bytes = utils.download_image_bytes(image_url,
                                             config.COVER_IMAGE_MAX_BYTES)
    image = Image.open(BytesIO(image_bytes))
    image.load()
  except (requests.RequestException, utils.Error, OSError,
          Image.DecompressionBombError) as e:
    raise CoverUnavailableError(
      f"Failed to load cover image {image_url}: {e}") from e
  return image


def export_story_pdf(story: models.StoryResult,
                     image_url: str | None = None) -> bytes:
  """Render the story as a PDF, with the cover on the first page if given."""
  cover_image = load_cover_image(image_url) if image_url else None
  pdf_bytes = pdf_client.create_story_pdf(story.title, story.content,
                                          cover_image)
  logger.info(f"Exported story PDF: {story.title} ({len(pdf_bytes)} bytes)")
  return pdf_bytes


def render_share_image(
  story: models.StoryResult,
  cover_image: Image.Image,
  editor: ImageEditor | None = None,
) -> Image.Image:
  """Compose the square share image: cover, title and a short excerpt."""
  editor = editor or ImageEditor()
  canvas = editor.create_blank_image(SHARE_IMAGE_SIZE, SHARE_IMAGE_SIZE)

  cover = editor.fit_image(cover_image, _SHARE_COVER_SIZE, _SHARE_COVER_SIZE)
  cover = editor.round_corners(cover, _SHARE_COVER_RADIUS)
  editor.paste_image(canvas, cover, (SHARE_IMAGE_SIZE - _SHARE_COVER_SIZE) // 2,
                     _SHARE_PADDING)
  y = _SHARE_PADDING + _SHARE_COVER_SIZE + _SHARE_COVER_GAP

  title_font = editor.get_font(_SHARE_TITLE_SIZE)
  title_lines = editor.wrap_text(story.title, title_font, _SHARE_TITLE_WIDTH)
  y = editor.draw_lines(canvas,
                        title_lines,
                        title_font,
                        x=(SHARE_IMAGE_SIZE - _SHARE_TITLE_WIDTH) // 2,
                        y=y,
                        fill=_TITLE_COLOR,
                        spacing=1.2,
                        center_width=_SHARE_TITLE_WIDTH)
  y += 20

  excerpt_font = editor.get_font(_SHARE_EXCERPT_SIZE)
  excerpt_lines = editor.wrap_text(story.excerpt, excerpt_font,
                                   _SHARE_EXCERPT_WIDTH)
  excerpt_lines = excerpt_lines[:_SHARE_EXCERPT_MAX_LINES]
  editor.draw_lines(canvas,
                    excerpt_lines,
                    excerpt_font,
                    x=(SHARE_IMAGE_SIZE - _SHARE_EXCERPT_WIDTH) // 2,
                    y=y,
                    fill=_EXCERPT_COLOR,
                    spacing=1.4,
                    center_width=_SHARE_EXCERPT_WIDTH)
  return canvas


def export_share_image(story: models.StoryResult, image_url: str | None) -> bytes:
  """Render the share image as PNG bytes.

  Raises:
      CoverUnavailableError: If there is no cover or it can't be loaded.
  """
  if not image_url:
    raise CoverUnavailableError("A cover image is required for share images")
  canvas = render_share_image(story, load_cover_image(image_url))
  buffer = BytesIO()
  canvas.save(buffer, format='PNG')
  return buffer.getvalue()


def pdf_file_name(story: models.StoryResult) -> str:
  """Download file name for the story PDF."""
  return f"{utils.export_file_stem(story.title)}.pdf"


def share_image_file_name(story: models.StoryResult) -> str:
  """Download file name for the share image."""
  return f"{utils.export_file_stem(story.title)}-share.png"
