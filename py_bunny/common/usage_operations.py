"""Operations on a user's story usage and share bonus."""

from __future__ import annotations

import traceback

from common import models, quota_policy
from firebase_functions import logger
from services import firestore


class Error(Exception):
  """Base class for exceptions in this module."""


class QuotaExceededError(Error):
  """Raised when the user has no story generations left this month."""


def can_generate(user_id: str) -> bool:
  """Whether the user may generate another story.

  The usage document is created on first use. Any failure to read the
  user's usage denies the generation.
  """
  try:
    firestore.ensure_user_document(user_id)
    quota = firestore.get_usage_stats(user_id)
  except Exception:  # pylint: disable=broad-except
    logger.error(f"Error checking generation limit for {user_id}:\n"
                 f"{traceback.format_exc()}")
    return False
  return quota_policy.can_generate(quota)


def require_generation_allowed(user_id: str) -> None:
  """Raise QuotaExceededError unless the user may generate a story."""
  if not can_generate(user_id):
    raise QuotaExceededError(
      "Monthly story limit reached. Share stories to unlock more!")


def get_usage(user_id: str) -> models.UserQuota:
  """Return the user's usage, creating the usage document on first use."""
  firestore.ensure_user_document(user_id)
  return firestore.get_usage_stats(user_id)


def record_generation(user_id: str) -> models.UserQuota:
  """Record a generated story and return the updated usage."""
  firestore.record_generation(user_id)
  return firestore.get_usage_stats(user_id)


def record_share(user_id: str) -> models.UserQuota:
  """Record a share and return the updated usage."""
  firestore.ensure_user_document(user_id)
  firestore.record_share(user_id)
  return firestore.get_usage_stats(user_id)


def to_response_usage(quota: models.UserQuota) -> dict:
  """Serialize usage for API responses, including the policy decision."""
  return {
    **quota.to_response_dict(),
    'canGenerate': quota_policy.can_generate(quota),
  }
