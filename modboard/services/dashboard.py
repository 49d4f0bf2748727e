"""Moderator dashboard: score, merge and paginate questions and answers.

Score sorts rank a bounded candidate set in memory: up to
``SCORE_SORT_LIMIT`` records of each kind are fetched in store order and
ranked together. Content outside that window is never considered, so the
ordering is approximate on very large stores. Date sorts delegate ordering
and paging to the store.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .. import config
from .content import ContentItem, answer_item, question_item
from .repository import ContentRepository, SortSpec


logger = logging.getLogger(__name__)

SCORE_SORT_LIMIT = 1000
DEFAULT_PAGE_SIZE = 20


class ContentFilter(str, Enum):
    question = "question"
    answer = "answer"
    all = "all"

    @classmethod
    def parse(cls, value) -> "ContentFilter":
        try:
            return cls(value)
        except ValueError:
            return cls.all

    @property
    def wants_questions(self) -> bool:
        return self in (ContentFilter.question, ContentFilter.all)

    @property
    def wants_answers(self) -> bool:
        return self in (ContentFilter.answer, ContentFilter.all)


class SortMode(str, Enum):
    high_score = "highScore"
    low_score = "lowScore"
    recent = "recent"
    old = "old"

    @classmethod
    def parse(cls, value) -> "SortMode":
        try:
            return cls(value)
        except ValueError:
            return cls.high_score

    @property
    def is_score_sort(self) -> bool:
        return self in (SortMode.high_score, SortMode.low_score)


@dataclass
class ModeratorPage:
    content: list[ContentItem] = field(default_factory=list)
    total_items: int = 0
    has_more: bool = False

    def to_dict(self) -> dict:
        return {
            "content": [item.to_dict() for item in self.content],
            "totalItems": self.total_items,
            "hasMore": self.has_more,
        }


async def _nothing() -> list:
    return []


async def _zero() -> int:
    return 0


async def _load(
    repository: ContentRepository,
    kind: ContentFilter,
    question_find: Optional[dict],
    answer_find: Optional[dict],
) -> list:
    # join every fetch before raising so nothing is left running
    results = await asyncio.gather(
        repository.find_questions(**question_find) if question_find is not None else _nothing(),
        repository.find_answers(**answer_find) if answer_find is not None else _nothing(),
        repository.count_questions() if kind.wants_questions else _zero(),
        repository.count_answers() if kind.wants_answers else _zero(),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


def _date_shares(kind: ContentFilter, page_size: int) -> tuple[int, int]:
    # questions take the odd row, so the two shares always add up to page_size
    if kind is ContentFilter.all:
        return (page_size + 1) // 2, page_size // 2
    return (
        page_size if kind.wants_questions else 0,
        page_size if kind.wants_answers else 0,
    )


def _date_find(order: SortSpec, page: int, share: int) -> Optional[dict]:
    if share <= 0:
        return None
    # each kind advances by its own share of the page
    return {"sort": order, "skip": (page - 1) * share, "limit": share}


def _normalize(records, build, now: datetime) -> list[ContentItem]:
    items: list[ContentItem] = []
    for rec in records or []:
        try:
            items.append(build(rec, now))
        except Exception:
            logger.warning("skipping malformed %s record %r", build.__name__, getattr(rec, "id", None), exc_info=True)
    return items


async def get_moderator_content(
    repository: ContentRepository,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    content_type: str = "all",
    sort_by: str = "highScore",
    now: Optional[datetime] = None,
    score_sort_limit: Optional[int] = None,
) -> ModeratorPage:
    """Return one page of scored moderator content.

    Never raises: a store failure is logged and reported as an empty page.
    """
    page = page if isinstance(page, int) and page >= 1 else 1
    page_size = page_size if isinstance(page_size, int) and page_size >= 1 else DEFAULT_PAGE_SIZE
    kind = ContentFilter.parse(content_type)
    sort = SortMode.parse(sort_by)
    now = now or datetime.now(timezone.utc)
    skip = (page - 1) * page_size
    if score_sort_limit is not None:
        cap = max(1, score_sort_limit)
    else:
        cap = config.score_sort_limit(SCORE_SORT_LIMIT)

    if sort.is_score_sort:
        question_find = {"limit": cap} if kind.wants_questions else None
        answer_find = {"limit": cap} if kind.wants_answers else None
    else:
        question_share, answer_share = _date_shares(kind, page_size)
        order = SortSpec("created_at", "desc" if sort is SortMode.recent else "asc")
        question_find = _date_find(order, page, question_share)
        answer_find = _date_find(order, page, answer_share)

    try:
        questions, answers, total_questions, total_answers = await _load(
            repository, kind, question_find, answer_find
        )
    except Exception:
        logger.exception("failed to load moderator content (type=%s, sort=%s, page=%s)", kind.value, sort.value, page)
        return ModeratorPage()

    items = _normalize(questions, question_item, now) + _normalize(answers, answer_item, now)
    total_items = total_questions + total_answers

    if sort.is_score_sort:
        # sorted() is stable, equal scores keep fetch order
        ranked = sorted(items, key=lambda it: it.score, reverse=sort is SortMode.high_score)
        content = ranked[skip:skip + page_size]
        has_more = skip + page_size < len(ranked)
    else:
        # already ordered and paged per kind by the store; not re-merged by date
        content = items
        has_more = (question_share > 0 and total_questions > page * question_share) or (
            answer_share > 0 and total_answers > page * answer_share
        )

    logger.debug(
        "moderator page type=%s sort=%s page=%s -> %d items (total=%d, more=%s)",
        kind.value, sort.value, page, len(content), total_items, has_more,
    )
    return ModeratorPage(content=content, total_items=total_items, has_more=bool(has_more))
