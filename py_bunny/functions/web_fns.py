"""Web cloud functions."""

from firebase_functions import https_fn, options
from web.app import app


@https_fn.on_request(
  memory=options.MemoryOption.GB_1,
  timeout_sec=60,
)
def web_app(req: https_fn.Request) -> https_fn.Response:
  """Serve the story pages and export downloads."""
  with app.request_context(req.environ):
    return app.full_dispatch_request()
