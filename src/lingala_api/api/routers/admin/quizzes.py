"""
lingala_api.api.routers.admin.quizzes

Quiz and quiz-question management for admins.

Responsibilities:
- Create/read/update/delete quizzes attached to a lesson.
- Create/update/delete the questions of a quiz.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from lingala_api.api.deps import db_session
from lingala_api.api.routers.admin.common import require_text
from lingala_api.api.schemas import ApiModel, QuizOut, QuizQuestionOut, QuizWithQuestionsOut
from lingala_api.auth.deps import require_admin
from lingala_api.auth.models import AdminPrincipal
from lingala_api.db.models import Quiz, QuizQuestion
from lingala_api.db.repositories.lessons import LessonRepo
from lingala_api.db.repositories.quizzes import QuizRepo
from lingala_api.entitlements.ids import parse_id
from lingala_api.entitlements.types import Action, ResourceKind
from lingala_api.errors import InvalidInput, NotFound

router = APIRouter(prefix="/api/admin/quizzes", tags=["admin-quizzes"])
questions_router = APIRouter(prefix="/api/admin/quiz-questions", tags=["admin-quizzes"])


class QuizCreateRequest(ApiModel):
    lesson_id: int | str | None = None
    title: str | None = None
    description: str | None = None
    passing_score: int | None = None


class QuizUpdateRequest(ApiModel):
    title: str | None = None
    description: str | None = None
    passing_score: int | None = None


class QuestionCreateRequest(ApiModel):
    quiz_id: int | str | None = None
    question_text: str | None = None
    question_type: str | None = None
    correct_answer: str | None = None
    options: list[Any] | None = None
    order_index: int | None = None


class QuestionUpdateRequest(ApiModel):
    question_text: str | None = None
    question_type: str | None = None
    correct_answer: str | None = None
    options: list[Any] | None = None
    order_index: int | None = None


def _check_passing_score(score: int) -> int:
    if score <= 0:
        raise InvalidInput("Passing score must be a positive number", code="INVALID_PASSING_SCORE")
    return score


async def _quiz_or_404(repo: QuizRepo, raw_id: str) -> Quiz:
    quiz = await repo.get(parse_id(raw_id, label="quiz ID"))
    if quiz is None:
        raise NotFound("Quiz not found", code="QUIZ_NOT_FOUND")
    return quiz


async def _question_or_404(repo: QuizRepo, raw_id: str) -> QuizQuestion:
    question = await repo.get_question(parse_id(raw_id, label="question ID"))
    if question is None:
        raise NotFound("Question not found", code="QUESTION_NOT_FOUND")
    return question


@router.post("", response_model=QuizOut, status_code=HTTP_201_CREATED)
async def create_quiz(
    body: QuizCreateRequest,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.QUIZ, Action.CREATE)),
    session: AsyncSession = Depends(db_session),
) -> QuizOut:
    if body.lesson_id is None or body.lesson_id == "":
        raise InvalidInput("Lesson ID is required", code="MISSING_LESSON_ID")
    lesson_id = parse_id(body.lesson_id, label="lesson ID")
    title = require_text(body.title, code="MISSING_TITLE", message="Title is required")
    if body.passing_score is None:
        raise InvalidInput("Passing score is required", code="MISSING_PASSING_SCORE")
    passing_score = _check_passing_score(body.passing_score)
    if await LessonRepo(session).get(lesson_id) is None:
        raise NotFound("Lesson not found", code="LESSON_NOT_FOUND")

    quiz = await QuizRepo(session).create(
        lesson_id=lesson_id, title=title, description=body.description, passing_score=passing_score
    )
    await session.commit()
    return QuizOut.model_validate(quiz)


@router.get("/{quiz_id}", response_model=QuizWithQuestionsOut)
async def get_quiz(
    quiz_id: str,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.QUIZ)),
    session: AsyncSession = Depends(db_session),
) -> QuizWithQuestionsOut:
    quiz = await QuizRepo(session).get_with_questions(parse_id(quiz_id, label="quiz ID"))
    if quiz is None:
        raise NotFound("Quiz not found", code="QUIZ_NOT_FOUND")
    return QuizWithQuestionsOut.model_validate(quiz)


@router.patch("/{quiz_id}", response_model=QuizOut)
async def update_quiz(
    quiz_id: str,
    body: QuizUpdateRequest,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.QUIZ, Action.UPDATE)),
    session: AsyncSession = Depends(db_session),
) -> QuizOut:
    repo = QuizRepo(session)
    quiz = await _quiz_or_404(repo, quiz_id)
    fields = body.model_dump(exclude_unset=True)
    if "title" in fields:
        fields["title"] = require_text(fields["title"], code="MISSING_TITLE", message="Title is required")
    if "passing_score" in fields:
        if fields["passing_score"] is None:
            raise InvalidInput("Passing score is required", code="MISSING_PASSING_SCORE")
        _check_passing_score(fields["passing_score"])
    await repo.update(quiz, **fields)
    await session.commit()
    return QuizOut.model_validate(quiz)


@router.delete("/{quiz_id}")
async def delete_quiz(
    quiz_id: str,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.QUIZ, Action.DELETE)),
    session: AsyncSession = Depends(db_session),
) -> dict[str, object]:
    repo = QuizRepo(session)
    quiz = await _quiz_or_404(repo, quiz_id)
    await repo.delete(quiz)
    await session.commit()
    return {"message": "Quiz deleted successfully"}


@questions_router.post("", response_model=QuizQuestionOut, status_code=HTTP_201_CREATED)
async def create_question(
    body: QuestionCreateRequest,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.QUIZ_QUESTION, Action.CREATE)),
    session: AsyncSession = Depends(db_session),
) -> QuizQuestionOut:
    if body.quiz_id is None or body.quiz_id == "":
        raise InvalidInput("Quiz ID is required", code="MISSING_QUIZ_ID")
    quiz_id = parse_id(body.quiz_id, label="quiz ID")
    question_text = require_text(
        body.question_text, code="MISSING_QUESTION_TEXT", message="Question text is required"
    )
    question_type = require_text(
        body.question_type, code="MISSING_QUESTION_TYPE", message="Question type is required"
    )
    correct_answer = require_text(
        body.correct_answer, code="MISSING_CORRECT_ANSWER", message="Correct answer is required"
    )
    repo = QuizRepo(session)
    if await repo.get(quiz_id) is None:
        raise NotFound("Quiz not found", code="QUIZ_NOT_FOUND")

    question = await repo.add_question(
        quiz_id=quiz_id,
        question_text=question_text,
        question_type=question_type,
        correct_answer=correct_answer,
        options=body.options,
        order_index=body.order_index,
    )
    await session.commit()
    return QuizQuestionOut.model_validate(question)


@questions_router.patch("/{question_id}", response_model=QuizQuestionOut)
async def update_question(
    question_id: str,
    body: QuestionUpdateRequest,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.QUIZ_QUESTION, Action.UPDATE)),
    session: AsyncSession = Depends(db_session),
) -> QuizQuestionOut:
    repo = QuizRepo(session)
    question = await _question_or_404(repo, question_id)
    fields = body.model_dump(exclude_unset=True)
    required = {
        "question_text": ("MISSING_QUESTION_TEXT", "Question text is required"),
        "question_type": ("MISSING_QUESTION_TYPE", "Question type is required"),
        "correct_answer": ("MISSING_CORRECT_ANSWER", "Correct answer is required"),
    }
    for name, (code, message) in required.items():
        if name in fields:
            fields[name] = require_text(fields[name], code=code, message=message)
    await repo.update_question(question, **fields)
    await session.commit()
    return QuizQuestionOut.model_validate(question)


@questions_router.delete("/{question_id}")
async def delete_question(
    question_id: str,
    _: AdminPrincipal = Depends(require_admin(ResourceKind.QUIZ_QUESTION, Action.DELETE)),
    session: AsyncSession = Depends(db_session),
) -> dict[str, object]:
    repo = QuizRepo(session)
    question = await _question_or_404(repo, question_id)
    await repo.delete_question(question)
    await session.commit()
    return {"message": "Question deleted successfully"}
