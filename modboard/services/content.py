"""Records read from the store and the ContentItem projection built from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .ranking import score_answer, score_question


DEFAULT_AVATAR_URL = "/static/images/default-avatar.svg"


class ContentKind(str, Enum):
    question = "question"
    answer = "answer"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class AuthorSummary:
    id: str
    display_name: str
    avatar_url: str
    external_id: str


UNKNOWN_AUTHOR = AuthorSummary(id="", display_name="Unknown", avatar_url=DEFAULT_AVATAR_URL, external_id="")


@dataclass(frozen=True)
class TagRef:
    id: str
    name: str


@dataclass(frozen=True)
class QuestionRef:
    id: str
    title: str


@dataclass
class QuestionRecord:
    """A question as the repository returns it.

    ``author`` and ``tags`` hold plain mappings (or None once the referenced
    document is gone); vote and answer collections hold ids and are only
    counted.
    """

    id: Any
    title: Optional[str]
    content: Optional[str]
    author: Optional[dict] = None
    tags: Any = field(default_factory=list)
    upvote_ids: Any = field(default_factory=list)
    downvote_ids: Any = field(default_factory=list)
    views: Optional[int] = 0
    answer_ids: Any = field(default_factory=list)
    created_at: Optional[datetime] = None


@dataclass
class AnswerRecord:
    id: Any
    content: Optional[str]
    author: Optional[dict] = None
    question: Optional[dict] = None
    upvote_ids: Any = field(default_factory=list)
    downvote_ids: Any = field(default_factory=list)
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ContentItem:
    id: str
    kind: ContentKind
    body: str
    author: AuthorSummary
    upvote_count: int
    downvote_count: int
    score: float
    created_at: datetime
    title: Optional[str] = None
    view_count: Optional[int] = None
    answer_count: Optional[int] = None
    tags: tuple[TagRef, ...] = ()
    parent_question: Optional[QuestionRef] = None

    @property
    def is_question(self) -> bool:
        return self.kind is ContentKind.question

    @property
    def is_answer(self) -> bool:
        return self.kind is ContentKind.answer

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.label,
            "body": self.body,
            "author": {
                "id": self.author.id,
                "displayName": self.author.display_name,
                "avatarUrl": self.author.avatar_url,
                "externalId": self.author.external_id,
            },
            "upvoteCount": self.upvote_count,
            "downvoteCount": self.downvote_count,
            "score": self.score,
            "createdAt": self.created_at.isoformat(),
        }
        if self.is_question:
            data["title"] = self.title
            data["viewCount"] = self.view_count
            data["answerCount"] = self.answer_count
            data["tags"] = [{"id": t.id, "name": t.name} for t in self.tags]
        else:
            data["parentQuestionRef"] = (
                {"id": self.parent_question.id, "title": self.parent_question.title}
                if self.parent_question
                else None
            )
        return data


def _count(ids: Any) -> int:
    return len(ids) if isinstance(ids, (list, tuple, set, frozenset)) else 0


def _nonneg(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def _str_id(value: Any) -> str:
    return "" if value is None else str(value)


def author_summary(author: Any) -> AuthorSummary:
    if not isinstance(author, dict):
        return UNKNOWN_AUTHOR
    return AuthorSummary(
        id=_str_id(author.get("id")),
        display_name=author.get("name") or "Unknown",
        avatar_url=author.get("picture") or DEFAULT_AVATAR_URL,
        external_id=author.get("external_id") or "",
    )


def _tags(tags: Any) -> tuple[TagRef, ...]:
    if not isinstance(tags, (list, tuple)):
        return ()
    return tuple(
        TagRef(id=_str_id(t.get("id")), name=t.get("name") or "")
        for t in tags
        if isinstance(t, dict)
    )


def _parent(question: Any) -> Optional[QuestionRef]:
    if not isinstance(question, dict) or question.get("id") is None:
        return None
    return QuestionRef(id=str(question["id"]), title=question.get("title") or "")


def question_item(record: QuestionRecord, now: datetime) -> ContentItem:
    upvotes = _count(record.upvote_ids)
    downvotes = _count(record.downvote_ids)
    views = _nonneg(record.views)
    answers = _count(record.answer_ids)
    created_at = record.created_at or now
    return ContentItem(
        id=_str_id(record.id),
        kind=ContentKind.question,
        title=record.title or "",
        body=record.content or "",
        author=author_summary(record.author),
        view_count=views,
        upvote_count=upvotes,
        downvote_count=downvotes,
        answer_count=answers,
        score=score_question(upvotes, downvotes, views, answers, created_at, now),
        created_at=created_at,
        tags=_tags(record.tags),
    )


def answer_item(record: AnswerRecord, now: datetime) -> ContentItem:
    upvotes = _count(record.upvote_ids)
    downvotes = _count(record.downvote_ids)
    created_at = record.created_at or now
    return ContentItem(
        id=_str_id(record.id),
        kind=ContentKind.answer,
        body=record.content or "",
        author=author_summary(record.author),
        upvote_count=upvotes,
        downvote_count=downvotes,
        score=score_answer(upvotes, downvotes, 0),
        created_at=created_at,
        parent_question=_parent(record.question),
    )
