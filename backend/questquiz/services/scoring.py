from __future__ import annotations

import enum


class QuizMode(str, enum.Enum):
    quest = "quest"
    general = "general"


QUEST_FIRST_TRY_POINTS = 20
QUEST_ASSISTED_POINTS = 10
QUEST_WRONG_POINTS = 0

GENERAL_CORRECT_POINTS = 60
GENERAL_WRONG_POINTS = 5


def points_for_attempt(mode: QuizMode, correct: bool, hint_or_retry_active: bool) -> int:
    """Points earned by a resolving attempt.

    Quest mode rewards a first-try answer over a hint-assisted one and never
    goes below zero. General mode has no retry, so a wrong answer still earns
    a small consolation score.
    """

    if QuizMode(mode) == QuizMode.general:
        return GENERAL_CORRECT_POINTS if correct else GENERAL_WRONG_POINTS

    if not correct:
        return QUEST_WRONG_POINTS
    return QUEST_ASSISTED_POINTS if hint_or_retry_active else QUEST_FIRST_TRY_POINTS


def retry_triggered(mode: QuizMode, correct: bool, hint_used: bool, is_retry: bool) -> bool:
    """True when a wrong answer opens the single hint-gated retry instead of resolving."""

    return QuizMode(mode) == QuizMode.quest and not correct and not hint_used and not is_retry
