import asyncio
import sys
from pathlib import Path

import pytest

backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from questquiz.core.errors import QuestApiError
from questquiz.schemas.quiz import QuestSummary, SubmitAnswerResponse
from questquiz.services.session import QuestionSet, QuizEngine, QuizQuestion


class FakeGateway:
    """In-memory submission gateway judging answers against known indices."""

    def __init__(self, correct: dict[str, int], *, already_completed: bool = False, reward: int = 100):
        self.correct = dict(correct)
        self.already_completed = already_completed
        self.reward = reward
        self.calls: list[dict] = []
        self.fail_next = 0
        self.gate: asyncio.Event | None = None
        self._total = 0

    async def submit_answer(self, *, quest_id, question_id, choice_index, is_last_question):
        self.calls.append(
            {
                "quest_id": quest_id,
                "question_id": question_id,
                "choice_index": choice_index,
                "is_last_question": is_last_question,
            }
        )
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_next > 0:
            self.fail_next -= 1
            raise QuestApiError("connection refused")

        ok = self.correct[question_id] == choice_index
        earned = 20 if ok else 0
        self._total += earned
        done = bool(is_last_question)
        return SubmitAnswerResponse(
            is_correct=ok,
            earned=earned,
            total_score=self._total,
            retry_allowed=not ok,
            completed=done,
            points_awarded=(0 if self.already_completed else self.reward) if done else 0,
            already_completed=self.already_completed and done,
            new_balance=1000 if done else None,
        )


def make_questions(n: int, *, with_answers: bool = False) -> tuple[QuizQuestion, ...]:
    return tuple(
        QuizQuestion(
            id=f"q{i}",
            prompt=f"Question {i}?",
            choices=("Silla", "Goryeo", "Joseon", "Baekje"),
            hint=f"hint {i}",
            correct_choice="Joseon" if with_answers else None,
            difficulty="easy",
        )
        for i in range(1, n + 1)
    )


QUEST = QuestSummary(id="7", name="Gyeongbokgung Palace", reward_point=100)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def quest_setup():
    def _make(n: int = 2, **gateway_kwargs):
        questions = make_questions(n)
        gateway = FakeGateway({q.id: 2 for q in questions}, **gateway_kwargs)
        engine = QuizEngine(gateway)
        question_set = QuestionSet(questions=questions, quest=QUEST, correct_indices=tuple(2 for _ in questions))
        return engine, gateway, question_set

    return _make


@pytest.fixture
def general_set():
    def _make(n: int = 3):
        questions = make_questions(n, with_answers=True)
        return QuestionSet(questions=questions, correct_indices=tuple(2 for _ in questions))

    return _make
