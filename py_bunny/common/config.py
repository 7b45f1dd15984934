"""Global configuration constants."""

import os

PUBLIC_HOST = "bravebunny.app"

# Usage limits
BASE_MONTHLY_LIMIT = 3
SHARE_BONUS_LIMIT = 3
SHARE_REQUIREMENT = 3

# Firestore
USERS_COLLECTION = "users"

# Chat completion API (OpenAI-compatible)
CHAT_API_BASE_URL = "https://api.deepseek.com/v1"
CHAT_MODEL = "deepseek-chat"
CHAT_TEMPERATURE = 0.8
CHAT_MAX_TOKENS = 1000
CHAT_TIMEOUT_SEC = 60

# Image prediction API
REPLICATE_API_BASE_URL = "https://api.replicate.com/v1"
REPLICATE_TIMEOUT_SEC = 30
TEXT_TO_IMAGE_MODEL = "stability-ai/sdxl"
TEXT_TO_IMAGE_VERSION = (
  "a00d0b7dcbb9c3fbb34ba87d2d5b46c56969c84a628bf778a7fdaec30b1b99c5")
IMAGE_TO_IMAGE_MODEL = "fofr/become-image"
IMAGE_TO_IMAGE_VERSION = (
  "a5b28021d5a8e428de6ed5b9a1fbc7b0a2d4545e1a16e0bb3fcd718e533f2c39")
IMAGE_TO_IMAGE_STRENGTH = 0.7
COVER_IMAGE_SIZE = 768

# Exports only download covers from Replicate's delivery CDN
COVER_IMAGE_HOSTS = ("replicate.delivery",)
COVER_IMAGE_MAX_BYTES = 20 * 1024 * 1024

# Cover polling: a ~60 second ceiling
PREDICTION_POLL_INTERVAL_SEC = 2.0
PREDICTION_MAX_POLL_ATTEMPTS = 30

# Secret names, bound to the functions with `secrets=[...]`
DEEPSEEK_API_KEY_SECRET = "DEEPSEEK_API_KEY"
REPLICATE_API_TOKEN_SECRET = "REPLICATE_API_TOKEN"


class Error(Exception):
  """Base class for exceptions in this module."""


class AuthConfigurationError(Error):
  """Raised when an API credential is missing or malformed."""


def _get_secret(secret_id: str) -> str:
  """Return a secret bound to the function environment.

  Raises:
      AuthConfigurationError: If the secret is unset or blank.
  """
  value = (os.environ.get(secret_id) or "").strip()
  if not value:
    raise AuthConfigurationError(f"{secret_id} is not configured")
  if any(c.isspace() for c in value):
    raise AuthConfigurationError(f"{secret_id} is malformed")
  return value


def get_deepseek_api_key() -> str:
  """Gets the DeepSeek API key."""
  return _get_secret(DEEPSEEK_API_KEY_SECRET)


def get_replicate_api_token() -> str:
  """Gets the Replicate API token."""
  return _get_secret(REPLICATE_API_TOKEN_SECRET)
