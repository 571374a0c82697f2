from __future__ import annotations

import asyncio
import logging

from questquiz.core.config import settings
from questquiz.core.errors import QuestApiError, QuizLoadError
from questquiz.schemas.quiz import GenericQuizResponse, QuestQuizSetResponse
from questquiz.services.quest_api import QuestApiClient
from questquiz.services.review import ReviewEngine
from questquiz.services.scoring import QuizMode
from questquiz.services.session import QuestionSet, QuizEngine, QuizQuestion, Session

log = logging.getLogger(__name__)


def question_set_from_quest(payload: QuestQuizSetResponse) -> QuestionSet:
    questions = tuple(
        QuizQuestion(
            id=str(item.id),
            prompt=item.question,
            choices=tuple(item.options),
            hint=item.hint or "",
            difficulty=item.difficulty,
        )
        for item in payload.quizzes
    )
    return QuestionSet(
        questions=questions,
        quest=payload.quest,
        correct_indices=tuple(item.answer for item in payload.quizzes),
    )


def question_set_from_generic(items: list[GenericQuizResponse], *, hint: str | None = None) -> QuestionSet:
    use_hint = hint if hint is not None else settings.general_quiz_default_hint
    questions = tuple(
        QuizQuestion(
            id=str(i),
            prompt=item.question,
            choices=tuple(item.options),
            hint=use_hint,
            correct_choice=item.options[item.correct_answer],
        )
        for i, item in enumerate(items, start=1)
    )
    return QuestionSet(questions=questions, correct_indices=tuple(item.correct_answer for item in items))


async def load_quest_question_set(client: QuestApiClient, quest_id: str) -> QuestionSet:
    try:
        payload = await client.fetch_quest_quiz(quest_id)
    except QuestApiError as e:
        raise QuizLoadError(f"could not load quest quiz: {e}", quest_id=str(quest_id)) from e
    return question_set_from_quest(payload)


async def load_generic_question_set(
    client: QuestApiClient,
    landmark: str | None = None,
    count: int | None = None,
    language: str | None = None,
) -> QuestionSet:
    use_landmark = (str(landmark).strip() if landmark is not None else "") or settings.general_quiz_default_landmark
    n = int(count) if count is not None else int(settings.general_quiz_question_count)
    if n <= 0:
        raise QuizLoadError("question count must be positive")

    tasks = [asyncio.ensure_future(client.fetch_generic_quiz(use_landmark, language)) for _ in range(n)]
    try:
        items = await asyncio.gather(*tasks)
    except QuestApiError as e:
        raise QuizLoadError(f"could not load quiz for {use_landmark}: {e}") from e
    finally:
        # One failed fetch fails the whole set; nothing may keep retrying behind it.
        pending = [t for t in tasks if not t.done()]
        for t in pending:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    log.info("generic quiz fetched landmark=%s count=%s", use_landmark, len(items))
    return question_set_from_generic(list(items))


async def start_quest_quiz(engine: QuizEngine, client: QuestApiClient, quest_id: str) -> Session:
    try:
        payload, status = await asyncio.gather(
            client.fetch_quest_quiz(quest_id),
            client.fetch_quest_status(quest_id),
        )
    except QuestApiError as e:
        raise QuizLoadError(f"could not start quest quiz: {e}", quest_id=str(quest_id)) from e
    return engine.load_session(question_set_from_quest(payload), QuizMode.quest, status.completed)


async def start_general_quiz(
    engine: QuizEngine,
    client: QuestApiClient,
    landmark: str | None = None,
    count: int | None = None,
    language: str | None = None,
) -> Session:
    question_set = await load_generic_question_set(client, landmark, count, language)
    return engine.load_session(question_set, QuizMode.general)


async def start_review(review_engine: ReviewEngine, client: QuestApiClient, quest_id: str) -> Session:
    question_set = await load_quest_question_set(client, quest_id)
    return review_engine.load(question_set)
