"""Flask app initialization for the BraveBunny web layer."""

from __future__ import annotations

import datetime
import os

import flask
# Import route modules for side-effects (route registration on `web_bp`).
import web.routes.story as _story  # noqa: E402,F401
from firebase_functions import logger
from web.routes import web_bp

_TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), 'templates')
_STATIC_DIR = os.path.join(os.path.dirname(__file__), 'static')


def _load_css(filename: str) -> str:
  """Load a CSS file from the static directory."""
  css_path = os.path.join(_STATIC_DIR, 'css', filename)
  try:
    with open(css_path, 'r', encoding='utf-8') as css_file:
      return css_file.read()
  except FileNotFoundError:
    logger.error(f'Stylesheet missing at {css_path}')
    return ''


_SITE_CSS = _load_css('style.css')

app = flask.Flask(__name__,
                  template_folder=_TEMPLATES_DIR,
                  static_folder=_STATIC_DIR)


@app.context_processor
def _inject_template_globals() -> dict:
  """Inject shared template variables such as the compiled CSS."""
  return {
    'site_css': _SITE_CSS,
    'now_utc': datetime.datetime.now(datetime.timezone.utc),
  }


# Register blueprint at import time so Cloud Functions can dispatch.
app.register_blueprint(web_bp)
