"""Story page and export routes."""

from __future__ import annotations

import traceback

import flask
from common import config, export_operations, models
from firebase_functions import logger
from web.routes import web_bp
from web.utils.responses import download_response, html_response


def _story_from_request() -> tuple[models.StoryResult | None, str | None]:
  """Read a story and cover URL from a JSON body or form fields."""
  data = flask.request.get_json(silent=True)
  if not isinstance(data, dict):
    data = flask.request.form

  title = (data.get('title') or '').strip()
  content = (data.get('content') or '').strip()
  image_url = (data.get('imageUrl') or '').strip() or None
  if not title:
    return None, image_url
  return models.StoryResult(title=title, content=content), image_url


def _bad_request(message: str) -> flask.Response:
  return flask.make_response(flask.jsonify({"error": message}), 400)


@web_bp.route('/')
def index() -> flask.Response:
  """Landing page with the monthly limits."""
  html = flask.render_template(
    'index.html',
    base_limit=config.BASE_MONTHLY_LIMIT,
    bonus_limit=config.SHARE_BONUS_LIMIT,
    share_requirement=config.SHARE_REQUIREMENT,
  )
  return html_response(html)


@web_bp.route('/story', methods=['POST'])
def story_page() -> flask.Response:
  """Render a generated story with its cover and export buttons."""
  story, image_url = _story_from_request()
  if story is None:
    return _bad_request("title is required")

  html = flask.render_template(
    'story.html',
    story=story,
    paragraphs=[p for p in story.content.split('\n\n') if p.strip()],
    image_url=image_url,
  )
  return html_response(html, cache_seconds=0)


@web_bp.route('/export/pdf', methods=['POST'])
def export_pdf() -> flask.Response:
  """Download the story as a PDF."""
  story, image_url = _story_from_request()
  if story is None:
    return _bad_request("title is required")

  try:
    pdf_bytes = export_operations.export_story_pdf(story, image_url)
  except export_operations.CoverUnavailableError as exc:
    logger.error(f"PDF export failed: {exc}")
    return _bad_request("The cover image could not be loaded")
  except Exception:  # pylint: disable=broad-except
    logger.error(f"PDF export failed:\n{traceback.format_exc()}")
    return flask.make_response(
      flask.jsonify({"error": "Failed to generate PDF"}), 500)

  return download_response(pdf_bytes,
                           mimetype='application/pdf',
                           file_name=export_operations.pdf_file_name(story))


@web_bp.route('/export/share-image', methods=['POST'])
def export_share_image() -> flask.Response:
  """Download the square share image."""
  story, image_url = _story_from_request()
  if story is None:
    return _bad_request("title is required")

  try:
    png_bytes = export_operations.export_share_image(story, image_url)
  except export_operations.CoverUnavailableError as exc:
    logger.error(f"Share image export failed: {exc}")
    return _bad_request("A cover image is required for share images")
  except Exception:  # pylint: disable=broad-except
    logger.error(f"Share image export failed:\n{traceback.format_exc()}")
    return flask.make_response(
      flask.jsonify({"error": "Failed to generate share image"}), 500)

  return download_response(
    png_bytes,
    mimetype='image/png',
    file_name=export_operations.share_image_file_name(story),
  )
