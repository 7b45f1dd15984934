"""Firestore operations for per-user usage counters."""

from __future__ import annotations

import functools
from typing import Callable, TypeVar

from common import config, models
from firebase_admin import firestore
from firebase_functions import logger
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore import SERVER_TIMESTAMP, FieldFilter, Increment

_T = TypeVar("_T")

_MAX_FIRESTORE_WRITE_BATCH_SIZE = 100

_db = None  # pylint: disable=invalid-name


class Error(Exception):
  """Base class for exceptions in this module."""


class NotFoundError(Error):
  """Raised when a user document does not exist."""


class StoreUnavailableError(Error):
  """Raised when Firestore cannot be reached or rejects the operation."""


def db() -> firestore.client:
  """Get the firestore client."""
  global _db  # pylint: disable=global-statement
  if _db is None:
    _db = firestore.client()
  return _db


def _translate_errors(func: Callable[..., _T]) -> Callable[..., _T]:
  """Re-raise Firestore backend failures as module errors."""

  @functools.wraps(func)
  def wrapper(*args, **kwargs) -> _T:
    try:
      return func(*args, **kwargs)
    except google_exceptions.NotFound as e:
      raise NotFoundError(str(e)) from e
    except (google_exceptions.GoogleAPICallError,
            google_exceptions.RetryError) as e:
      logger.error(f"Firestore call {func.__name__} failed: {e}")
      raise StoreUnavailableError(
        f"Firestore unavailable during {func.__name__}") from e

  return wrapper


def _clean_user_id(user_id: str | None) -> str:
  user_id = (user_id or "").strip()
  if not user_id:
    raise ValueError("user_id is required")
  return user_id


def _user_ref(user_id: str):
  return db().collection(config.USERS_COLLECTION).document(user_id)


@_translate_errors
def ensure_user_document(user_id: str) -> bool:
  """Create the user's usage document if it doesn't exist.

  Idempotent and safe to call on every sign-in: an existing document is never
  overwritten.

  Returns:
      bool: True if a new document was created, False otherwise.
  """
  user_id = _clean_user_id(user_id)
  try:
    _user_ref(user_id).create({
      'createdAt': SERVER_TIMESTAMP,
      'monthlyGenerations': 0,
      'shareCount': 0,
    })
  except google_exceptions.AlreadyExists:
    logger.info(f"User document already exists for {user_id}")
    return False

  logger.info(f"Created usage document for user: {user_id}")
  return True


@_translate_errors
def get_usage_stats(user_id: str) -> models.UserQuota:
  """Get the user's current usage counters.

  Raises:
      NotFoundError: If the user has no usage document.
      StoreUnavailableError: If Firestore cannot be reached.
  """
  user_id = _clean_user_id(user_id)
  snapshot = _user_ref(user_id).get()
  if not snapshot.exists:
    raise NotFoundError(f"User document not found: {user_id}")
  return models.UserQuota.from_firestore_dict(snapshot.to_dict(), user_id)


@_translate_errors
def record_generation(user_id: str) -> None:
  """Atomically add one story generation to the user's monthly count."""
  user_id = _clean_user_id(user_id)
  _user_ref(user_id).update({'monthlyGenerations': Increment(1)})
  logger.info(f"Recorded generation for user: {user_id}")


@_translate_errors
def record_share(user_id: str) -> None:
  """Atomically add one share to the user's share count."""
  user_id = _clean_user_id(user_id)
  _user_ref(user_id).update({'shareCount': Increment(1)})
  logger.info(f"Recorded share for user: {user_id}")


@_translate_errors
def reset_monthly_generations(user_id: str) -> None:
  """Set the user's monthly generation count back to zero."""
  user_id = _clean_user_id(user_id)
  _user_ref(user_id).update({'monthlyGenerations': 0})
  logger.info(f"Reset monthly generations for user: {user_id}")


@_translate_errors
def reset_all_monthly_generations() -> int:
  """Reset the monthly generation count of every user that has one.

  Returns:
      The number of user documents reset.
  """
  db_client = db()
  user_docs = db_client.collection(config.USERS_COLLECTION).where(
    filter=FieldFilter('monthlyGenerations', '>', 0)).stream()

  batch = db_client.batch()
  writes_in_batch = 0
  num_reset = 0

  for user_doc in user_docs:
    if not user_doc.exists:
      continue
    batch.update(user_doc.reference, {'monthlyGenerations': 0})
    writes_in_batch += 1
    num_reset += 1

    if writes_in_batch >= _MAX_FIRESTORE_WRITE_BATCH_SIZE:
      logger.info(f"Committing batch of {writes_in_batch} writes")
      batch.commit()
      batch = db_client.batch()
      writes_in_batch = 0

  if writes_in_batch:
    logger.info(f"Committing final batch of {writes_in_batch} writes")
    batch.commit()

  return num_reset
