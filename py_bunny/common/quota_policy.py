"""Monthly story generation limits."""

from common import config, models


def can_generate(quota: models.UserQuota) -> bool:
  """Whether the user may generate another story this month.

  Everyone gets BASE_MONTHLY_LIMIT stories. Users who have shared at least
  SHARE_REQUIREMENT times get SHARE_BONUS_LIMIT more.
  """
  if quota.monthly_generations < config.BASE_MONTHLY_LIMIT:
    return True

  bonus_limit = config.BASE_MONTHLY_LIMIT + config.SHARE_BONUS_LIMIT
  if (quota.monthly_generations < bonus_limit
      and quota.share_count >= config.SHARE_REQUIREMENT):
    return True

  return False
