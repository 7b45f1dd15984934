"""Models for stories, cover predictions and Firestore usage documents."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from common import config


class PredictionStatus(Enum):
  """Status of an image prediction, as reported by the prediction API."""
  PENDING = "pending"
  SUCCEEDED = "succeeded"
  FAILED = "failed"

  @staticmethod
  def from_value(value: Any) -> PredictionStatus:
    """Map an API status string to a PredictionStatus.

    Anything that is not a terminal status ("starting", "processing", None,
    ...) is treated as pending.
    """
    if isinstance(value, str):
      normalized = value.strip().lower()
      if normalized == PredictionStatus.SUCCEEDED.value:
        return PredictionStatus.SUCCEEDED
      if normalized == PredictionStatus.FAILED.value:
        return PredictionStatus.FAILED
    return PredictionStatus.PENDING


@dataclass(kw_only=True)
class PredictionJob:
  """A submitted image prediction job."""

  job_id: str
  status: PredictionStatus = PredictionStatus.PENDING
  output: list[str] = field(default_factory=list)
  """Image URLs. Only populated when the job succeeded."""

  error_detail: str | None = None
  """Only populated when the job failed."""

  @property
  def is_terminal(self) -> bool:
    """Whether the job can no longer change status."""
    return self.status in (PredictionStatus.SUCCEEDED, PredictionStatus.FAILED)

  @classmethod
  def from_api_dict(cls, data: dict[str, Any]) -> PredictionJob:
    """Create a PredictionJob from a prediction API payload."""
    status = PredictionStatus.from_value(data.get('status'))

    output: list[str] = []
    error_detail = None
    if status == PredictionStatus.SUCCEEDED:
      raw_output = data.get('output')
      if isinstance(raw_output, str):
        output = [raw_output]
      elif isinstance(raw_output, list):
        output = [str(url) for url in raw_output if url]
    elif status == PredictionStatus.FAILED:
      error_detail = str(data.get('error') or 'Unknown error')

    return cls(
      job_id=str(data.get('id') or ''),
      status=status,
      output=output,
      error_detail=error_detail,
    )


@dataclass(kw_only=True)
class StoryRequest:
  """Structured input for a bedtime story."""

  name: str
  gender: str
  keywords: str
  image_base64: str | None = None
  """Optional reference photo used for image-to-image covers."""


@dataclass(kw_only=True)
class StoryResult:
  """A generated story split into title and content."""

  title: str
  content: str = ""

  @property
  def excerpt(self) -> str:
    """Short teaser used on share images."""
    if len(self.content) <= 100:
      return self.content
    return self.content[:100] + '...'

  def to_dict(self) -> dict[str, str]:
    """Serialize for JSON responses."""
    return {
      'title': self.title,
      'content': self.content,
    }


@dataclass(kw_only=True)
class UserQuota:
  """Per-user usage counters stored at users/{uid}."""

  user_id: str
  monthly_generations: int = 0
  share_count: int = 0
  created_at: datetime.datetime | None = None

  def __post_init__(self):
    self.monthly_generations = max(0, int(self.monthly_generations or 0))
    self.share_count = max(0, int(self.share_count or 0))

  @property
  def bonus_unlocked(self) -> bool:
    """Whether the user has shared enough to unlock the bonus tier."""
    return self.share_count >= config.SHARE_REQUIREMENT

  @property
  def generation_limit(self) -> int:
    """The user's current monthly generation cap."""
    if self.bonus_unlocked:
      return config.BASE_MONTHLY_LIMIT + config.SHARE_BONUS_LIMIT
    return config.BASE_MONTHLY_LIMIT

  @property
  def remaining_generations(self) -> int:
    """Number of generations left this month."""
    return max(0, self.generation_limit - self.monthly_generations)

  @property
  def shares_needed_for_bonus(self) -> int:
    """Number of shares still needed to unlock the bonus tier."""
    return max(0, config.SHARE_REQUIREMENT - self.share_count)

  @classmethod
  def from_firestore_dict(cls, data: dict[str, Any] | None,
                          user_id: str) -> UserQuota:
    """Create a UserQuota from a Firestore dictionary.

    Missing counters read as zero.
    """
    data = data or {}
    created_at = data.get('createdAt')
    return cls(
      user_id=user_id,
      monthly_generations=data.get('monthlyGenerations') or 0,
      share_count=data.get('shareCount') or 0,
      created_at=created_at if isinstance(created_at, datetime.datetime) else None,
    )

  def to_response_dict(self) -> dict[str, Any]:
    """Serialize for JSON responses."""
    return {
      'monthlyGenerations': self.monthly_generations,
      'shareCount': self.share_count,
      'generationLimit': self.generation_limit,
      'remainingGenerations': self.remaining_generations,
      'sharesNeededForBonus': self.shares_needed_for_bonus,
    }


@dataclass(kw_only=True)
class StoryBundle:
  """Result of the full story flow.

  The cover is optional: a failed cover still delivers the story, with
  `cover_error` set.
  """

  story: StoryResult
  image_url: str | None = None
  cover_error: str | None = None
  usage: UserQuota | None = None

  @property
  def has_cover(self) -> bool:
    """Whether a cover image was generated."""
    return self.image_url is not None

  @property
  def as_dict(self) -> dict[str, Any]:
    """Serialize the story and cover for JSON responses."""
    return {
      **self.story.to_dict(),
      'imageUrl': self.image_url,
      'coverError': self.cover_error,
    }
