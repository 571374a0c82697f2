from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class QuestSummary(_WireModel):
    id: str
    name: str = ""
    reward_point: int = 0


class QuestQuizItem(_WireModel):
    id: str
    question: str
    options: list[str]
    hint: str = ""
    difficulty: str | None = None
    # Correct option index. Only sent for completed quests (review).
    answer: int | None = None


class QuestQuizSetResponse(_WireModel):
    quest: QuestSummary
    quizzes: list[QuestQuizItem] = Field(default_factory=list)


class QuestStatusResponse(_WireModel):
    quest_id: str
    completed: bool = False


class SubmitAnswerRequest(_WireModel):
    answer: int
    is_last_quiz: bool = False


class SubmitAnswerResponse(_WireModel):
    is_correct: bool
    earned: int = 0
    total_score: int = 0
    retry_allowed: bool = False
    completed: bool = False
    points_awarded: int = 0
    already_completed: bool = False
    new_balance: int | None = None


class GenericQuizResponse(_WireModel):
    question: str
    options: list[str]
    correct_answer: int
    explanation: str | None = None
