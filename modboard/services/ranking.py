import math
from datetime import datetime, timezone


WILSON_Z = 1.96  # 95% confidence

# questions decay slower here than on a front page (2.5) so older
# unresolved threads stay visible to moderators
QUESTION_GRAVITY = 1.5

# ~10 years; older content has no freshness left
MAX_DECAY_HOURS = 87600


def wilson_score(upvotes: int, downvotes: int) -> float:
    """Lower bound of the Wilson score interval for the upvote ratio.

    Balances ratio against sample size: 1 up / 0 down ranks below
    950 up / 50 down. Returns 0 when there are no votes.
    """
    n = upvotes + downvotes
    if n <= 0:
        return 0.0
    p = upvotes / n
    z2 = WILSON_Z * WILSON_Z
    numerator = p + z2 / (2 * n) - WILSON_Z * math.sqrt((p * (1 - p) + z2 / (4 * n)) / n)
    denominator = 1 + z2 / n
    return max(0.0, min(1.0, numerator / denominator))


def _round1(value: float) -> float:
    # half-up, one decimal
    return math.floor(value * 10 + 0.5) / 10


def _as_utc(ts: datetime) -> datetime:
    # the sql store keeps naive utc timestamps
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def hotness(created_at: datetime, gravity: float, now: datetime) -> float:
    """Freshness weight in (0, 1]: 1 / (1 + hours/24) ** gravity."""
    hours = (_as_utc(now) - _as_utc(created_at)).total_seconds() / 3600
    if hours < 0:
        hours = 0.0
    if hours > MAX_DECAY_HOURS:
        return 0.0
    return 1 / pow(1 + hours / 24, gravity)


def score_question(
    upvotes: int,
    downvotes: int,
    views: int,
    answer_count: int,
    created_at: datetime,
    now: datetime,
) -> float:
    wilson = wilson_score(upvotes, downvotes)
    hot = hotness(created_at, QUESTION_GRAVITY, now)
    view_bonus = 3.0 if views > 300 else views * 0.01
    answer_bonus = answer_count * 1.5
    # quality 60 / freshness 40, plus engagement
    score = wilson * 60 + hot * 40 + view_bonus + answer_bonus
    return _round1(score)


def score_answer(upvotes: int, downvotes: int, views: int = 0) -> float:
    # no time decay: a correct answer does not expire.
    # answers carry no view count yet, so callers pass 0 and the bonus is inert.
    wilson = wilson_score(upvotes, downvotes)
    view_bonus = min(views * 0.005, 2.0)
    return _round1(wilson * 100 + view_bonus)
