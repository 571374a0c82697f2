"""Read-only replay of an already completed quest.

Answers are judged against correct indices supplied with the question set.
Nothing here talks to the backend or touches scores.
"""

from __future__ import annotations

import logging
from typing import Sequence

from questquiz.core.errors import QuizLoadError
from questquiz.services.scoring import QuizMode
from questquiz.services.session import (
    HintOutcome,
    QuestionResult,
    QuestionSet,
    Resolution,
    Session,
    SubmitOutcome,
    validate_question_set,
)

log = logging.getLogger(__name__)


class ReviewEngine:
    def load(
        self,
        question_set: QuestionSet,
        correct_indices: Sequence[int] | None = None,
        mode: QuizMode = QuizMode.quest,
    ) -> Session:
        quest_id = question_set.quest.id if question_set.quest is not None else None
        validate_question_set(question_set, quest_id=quest_id)

        indices = tuple(correct_indices if correct_indices is not None else question_set.correct_indices)
        if len(indices) != len(question_set.questions):
            raise QuizLoadError("review needs a correct answer for every question", quest_id=quest_id)
        for q, idx in zip(question_set.questions, indices):
            if idx is None or not 0 <= int(idx) < len(q.choices):
                raise QuizLoadError(f"question {q.id} has no valid correct answer", quest_id=quest_id)

        session = Session(
            mode=QuizMode(mode),
            questions=tuple(question_set.questions),
            quest=question_set.quest,
            prior_completed=True,
            review=True,
            correct_indices=tuple(int(i) for i in indices),
        )
        session.reset_on_entry()
        log.info("quiz review loaded quest_id=%s questions=%s", quest_id, session.question_count)
        return session

    def submit_answer(self, session: Session, choice_index: int) -> SubmitOutcome:
        index = session.current_index
        if not session.review:
            return SubmitOutcome(Resolution.rejected, index, reason="not_review_session")
        if session.current_resolved:
            return SubmitOutcome(Resolution.rejected, index, reason="already_resolved")
        if not 0 <= int(choice_index) < len(session.current_question.choices):
            return SubmitOutcome(Resolution.rejected, index, reason="invalid_choice")

        correct = int(choice_index) == session.correct_indices[index]
        session.selected_choice = int(choice_index)
        session.per_question_result[index] = QuestionResult.correct if correct else QuestionResult.wrong
        return SubmitOutcome(Resolution.resolved, index, correct=correct)

    def correct_choice(self, session: Session, index: int | None = None) -> str:
        i = session.current_index if index is None else int(index)
        return session.questions[i].choices[session.correct_indices[i]]

    def jump_to(self, session: Session, index: int) -> bool:
        if not session.review or not 0 <= int(index) < session.question_count:
            return False
        if int(index) != session.current_index:
            session.current_index = int(index)
            session.clear_question_flags()
        return True

    def next(self, session: Session) -> bool:
        return self.jump_to(session, session.current_index + 1)

    def previous(self, session: Session) -> bool:
        return self.jump_to(session, session.current_index - 1)

    def request_hint(self, session: Session) -> HintOutcome | None:
        if not session.review:
            return None
        newly_used = not session.hint_used_for_current
        session.hint_used_for_current = True
        session.hint_panel_open = True
        return HintOutcome(hint=session.current_question.hint, newly_used=newly_used)
