from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lingala_api.db.models import Quiz, QuizQuestion


class QuizRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, quiz_id: int) -> Quiz | None:
        return await self._session.get(Quiz, quiz_id)

    async def get_with_questions(self, quiz_id: int) -> Quiz | None:
        stmt = select(Quiz).where(Quiz.id == quiz_id).options(selectinload(Quiz.questions))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def create(self, **fields: Any) -> Quiz:
        quiz = Quiz(**fields)
        self._session.add(quiz)
        await self._session.flush()
        return quiz

    async def update(self, quiz: Quiz, **fields: Any) -> Quiz:
        for name, value in fields.items():
            setattr(quiz, name, value)
        await self._session.flush()
        return quiz

    async def delete(self, quiz: Quiz) -> None:
        await self._session.delete(quiz)
        await self._session.flush()

    async def get_question(self, question_id: int) -> QuizQuestion | None:
        return await self._session.get(QuizQuestion, question_id)

    async def add_question(self, **fields: Any) -> QuizQuestion:
        question = QuizQuestion(**fields)
        self._session.add(question)
        await self._session.flush()
        return question

    async def update_question(self, question: QuizQuestion, **fields: Any) -> QuizQuestion:
        for name, value in fields.items():
            setattr(question, name, value)
        await self._session.flush()
        return question

    async def delete_question(self, question: QuizQuestion) -> None:
        await self._session.delete(question)
        await self._session.flush()
