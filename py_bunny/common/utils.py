"""Utility functions"""

import os
import re

import requests

_NON_ALPHANUMERIC_RE = re.compile(r'[^a-z0-9]')

_DOWNLOAD_TIMEOUT_SEC = 15
_DOWNLOAD_CHUNK_BYTES = 64 * 1024


class Error(Exception):
  """Base class for exceptions in this module."""


class DownloadTooLargeError(Error):
  """Raised when a download exceeds its byte limit."""


def download_image_bytes(url: str, max_bytes: int) -> bytes:
  """Downloads an image and returns its bytes.

  Redirects are not followed.

  Raises:
      requests.RequestException: If the download fails.
      DownloadTooLargeError: If the body is larger than max_bytes.
  """
  with requests.get(url,
                    timeout=_DOWNLOAD_TIMEOUT_SEC,
                    stream=True,
                    allow_redirects=False) as response:
    response.raise_for_status()
    if response.is_redirect:
      raise requests.HTTPError(f"Unexpected redirect from {url}",
                               response=response)
    chunks = []
    num_bytes = 0
    for chunk in response.iter_content(chunk_size=_DOWNLOAD_CHUNK_BYTES):
      num_bytes += len(chunk)
      if num_bytes > max_bytes:
        raise DownloadTooLargeError(
          f"Download from {url} exceeds {max_bytes} bytes")
      chunks.append(chunk)
  return b''.join(chunks)


def export_file_stem(title: str) -> str:
  """Returns a download file name stem for a story title."""
  return _NON_ALPHANUMERIC_RE.sub('-', (title or 'story').lower())


def is_emulator() -> bool:
  """Returns True if the code is running in an emulator."""
  return bool(os.environ.get('FUNCTIONS_EMULATOR'))
