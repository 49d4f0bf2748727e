from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload, selectinload

from ..models import Answer, Question, Tag, User, Vote, VoteTarget
from .content import AnswerRecord, QuestionRecord


@dataclass(frozen=True)
class SortSpec:
    field: str = "created_at"
    direction: Literal["asc", "desc"] = "desc"


class ContentRepository(Protocol):
    async def find_questions(
        self, *, sort: Optional[SortSpec] = None, skip: int = 0, limit: Optional[int] = None
    ) -> list[QuestionRecord]: ...

    async def find_answers(
        self, *, sort: Optional[SortSpec] = None, skip: int = 0, limit: Optional[int] = None
    ) -> list[AnswerRecord]: ...

    async def count_questions(self) -> int: ...

    async def count_answers(self) -> int: ...


_SORTABLE = {"created_at"}


def _user_dict(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "picture": user.picture, "external_id": user.external_id}


def _tag_dict(tag: Tag) -> dict:
    return {"id": tag.id, "name": tag.name}


def _voters(db: Session, target_type: VoteTarget, ids: list[int]) -> tuple[dict, dict]:
    up: dict[int, list[int]] = {}
    down: dict[int, list[int]] = {}
    if not ids:
        return up, down
    rows = db.execute(
        select(Vote.target_id, Vote.user_id, Vote.value).where(
            Vote.target_type == target_type, Vote.target_id.in_(ids)
        )
    ).all()
    for target_id, user_id, value in rows:
        if value > 0:
            up.setdefault(target_id, []).append(user_id)
        elif value < 0:
            down.setdefault(target_id, []).append(user_id)
    return up, down


class SqlContentRepository:
    """ContentRepository over the SQLAlchemy models.

    Every call opens its own session in a worker thread, so concurrent finds
    and counts from one aggregation never share a session.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self.session_factory = session_factory

    async def find_questions(
        self, *, sort: Optional[SortSpec] = None, skip: int = 0, limit: Optional[int] = None
    ) -> list[QuestionRecord]:
        return await asyncio.to_thread(self._find_questions, sort, skip, limit)

    async def find_answers(
        self, *, sort: Optional[SortSpec] = None, skip: int = 0, limit: Optional[int] = None
    ) -> list[AnswerRecord]:
        return await asyncio.to_thread(self._find_answers, sort, skip, limit)

    async def count_questions(self) -> int:
        return await asyncio.to_thread(self._count, Question)

    async def count_answers(self) -> int:
        return await asyncio.to_thread(self._count, Answer)

    # --- sync workers ---
    def _count(self, model) -> int:
        db = self.session_factory()
        try:
            return int(db.scalar(select(func.count()).select_from(model)) or 0)
        finally:
            db.close()

    @staticmethod
    def _page(stmt, model, sort: Optional[SortSpec], skip: int, limit: Optional[int]):
        if sort is not None:
            if sort.field not in _SORTABLE:
                raise ValueError(f"unsupported sort field: {sort.field}")
            col = getattr(model, sort.field)
            stmt = stmt.order_by(col.asc() if sort.direction == "asc" else col.desc(), model.id.asc())
        if skip:
            stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    def _find_questions(self, sort: Optional[SortSpec], skip: int, limit: Optional[int]) -> list[QuestionRecord]:
        db = self.session_factory()
        try:
            stmt = select(Question).options(
                joinedload(Question.author),
                selectinload(Question.tags),
                selectinload(Question.answers),
            )
            questions = db.scalars(self._page(stmt, Question, sort, skip, limit)).unique().all()
            up, down = _voters(db, VoteTarget.question, [q.id for q in questions])
            return [
                QuestionRecord(
                    id=q.id,
                    title=q.title,
                    content=q.content,
                    author=_user_dict(q.author),
                    tags=[_tag_dict(t) for t in q.tags],
                    upvote_ids=up.get(q.id, []),
                    downvote_ids=down.get(q.id, []),
                    views=q.views,
                    answer_ids=[a.id for a in q.answers],
                    created_at=q.created_at,
                )
                for q in questions
            ]
        finally:
            db.close()

    def _find_answers(self, sort: Optional[SortSpec], skip: int, limit: Optional[int]) -> list[AnswerRecord]:
        db = self.session_factory()
        try:
            stmt = select(Answer).options(joinedload(Answer.author), joinedload(Answer.question))
            answers = db.scalars(self._page(stmt, Answer, sort, skip, limit)).unique().all()
            up, down = _voters(db, VoteTarget.answer, [a.id for a in answers])
            return [
                AnswerRecord(
                    id=a.id,
                    content=a.content,
                    author=_user_dict(a.author),
                    question={"id": a.question.id, "title": a.question.title} if a.question else None,
                    upvote_ids=up.get(a.id, []),
                    downvote_ids=down.get(a.id, []),
                    created_at=a.created_at,
                )
                for a in answers
            ]
        finally:
            db.close()
