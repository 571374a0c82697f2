from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

from questquiz.core.config import settings
from questquiz.core.errors import QuestApiError, QuizLoadError, SubmissionError
from questquiz.schemas.quiz import QuestSummary
from questquiz.services.quest_api import SubmissionGateway
from questquiz.services.scoring import QuizMode, points_for_attempt, retry_triggered

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuizQuestion:
    id: str
    prompt: str
    choices: tuple[str, ...]
    hint: str = ""
    # Known locally for general quizzes only; quest answers are judged by the backend.
    correct_choice: str | None = None
    difficulty: str | None = None


@dataclass(frozen=True)
class QuestionSet:
    questions: tuple[QuizQuestion, ...]
    quest: QuestSummary | None = None
    correct_indices: tuple[int | None, ...] = ()


class QuestionResult(str, enum.Enum):
    pending = "pending"
    correct = "correct"
    wrong = "wrong"


class Resolution(str, enum.Enum):
    resolved = "resolved"
    retry_required = "retry_required"
    rejected = "rejected"


@dataclass(frozen=True)
class SubmitOutcome:
    resolution: Resolution
    question_index: int
    correct: bool | None = None
    points: int | None = None
    # Set for retry_required: the hint panel must be shown with this text.
    hint: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class HintOutcome:
    hint: str
    newly_used: bool


@dataclass(frozen=True)
class QuizResult:
    mode: QuizMode
    total_score: int
    per_question_scores: tuple[int, ...]
    per_question_results: tuple[QuestionResult, ...]
    question_count: int
    already_completed: bool
    points_awarded: int
    quest_completed: bool = False
    quest_id: str | None = None
    quest_name: str | None = None
    reward_point: int = 0
    server_total_score: int | None = None
    new_balance: int | None = None


@dataclass(eq=False)
class Session:
    mode: QuizMode
    questions: tuple[QuizQuestion, ...]
    quest: QuestSummary | None = None
    prior_completed: bool = False
    baseline_score: int = 0
    review: bool = False
    correct_indices: tuple[int | None, ...] = ()

    current_index: int = 0
    per_question_score: dict[int, int] = field(default_factory=dict)
    per_question_result: list[QuestionResult] = field(default_factory=list)
    total_score: int = 0
    hint_used_for_current: bool = False
    is_retry_for_current: bool = False
    completed: bool = False
    already_completed_before_session: bool = False

    selected_choice: int | None = None
    hint_panel_open: bool = False
    submitting: bool = False
    server_total_score: int | None = None
    points_awarded: int = 0
    new_balance: int | None = None
    quest_completed: bool = False
    result: QuizResult | None = None
    # Bumped on every reset; a pending submission from an older play-through is dropped.
    generation: int = 0

    def reset_on_entry(self) -> None:
        """Start a fresh play-through. There is no resume from the middle."""
        self.current_index = 0
        self.per_question_score = {}
        self.per_question_result = [QuestionResult.pending] * len(self.questions)
        self.total_score = self.baseline_score
        self.completed = False
        self.already_completed_before_session = bool(self.prior_completed)
        # submitting is left alone: a pending call still holds the single in-flight slot.
        self.generation += 1
        self.server_total_score = None
        self.points_awarded = 0
        self.new_balance = None
        self.quest_completed = False
        self.result = None
        self.clear_question_flags()

    def clear_question_flags(self) -> None:
        self.hint_used_for_current = False
        self.is_retry_for_current = False
        self.selected_choice = None
        self.hint_panel_open = False

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> QuizQuestion:
        return self.questions[self.current_index]

    @property
    def is_last_question(self) -> bool:
        return self.current_index == len(self.questions) - 1

    @property
    def current_resolved(self) -> bool:
        return self.per_question_result[self.current_index] != QuestionResult.pending

    def progress(self) -> list[QuestionResult]:
        return list(self.per_question_result)


def validate_question_set(question_set: QuestionSet, *, quest_id: str | None = None) -> None:
    if not question_set.questions:
        raise QuizLoadError("question set is empty", quest_id=quest_id)
    for q in question_set.questions:
        if not q.choices:
            raise QuizLoadError(f"question {q.id} has no choices", quest_id=quest_id)


class QuizEngine:
    """Drives one quiz play-through at a time over an explicitly owned Session."""

    def __init__(self, gateway: SubmissionGateway | None = None, *, baseline_score: int | None = None):
        self.gateway = gateway
        self.baseline_score = (
            int(settings.general_baseline_score) if baseline_score is None else int(baseline_score)
        )

    def load_session(
        self,
        question_set: QuestionSet,
        mode: QuizMode,
        prior_completion_status: bool = False,
    ) -> Session:
        mode = QuizMode(mode)
        quest_id = question_set.quest.id if question_set.quest is not None else None
        validate_question_set(question_set, quest_id=quest_id)

        if mode == QuizMode.quest:
            if question_set.quest is None:
                raise QuizLoadError("quest quiz requires a quest summary")
            if self.gateway is None:
                raise QuizLoadError("quest quiz requires a submission gateway", quest_id=quest_id)
        else:
            missing = [q.id for q in question_set.questions if q.correct_choice is None]
            if missing:
                raise QuizLoadError(f"general quiz questions without an answer: {missing}")

        session = Session(
            mode=mode,
            questions=tuple(question_set.questions),
            quest=question_set.quest,
            prior_completed=bool(prior_completion_status),
            baseline_score=self.baseline_score if mode == QuizMode.general else 0,
        )
        session.reset_on_entry()
        log.info(
            "quiz session loaded mode=%s questions=%s quest_id=%s prior_completed=%s",
            mode.value,
            session.question_count,
            quest_id,
            session.prior_completed,
        )
        return session

    def _reject_reason(self, session: Session, choice_index: int) -> str | None:
        if session.review:
            return "review_session"
        if session.result is not None:
            return "session_finished"
        if session.submitting:
            return "submission_in_flight"
        if session.current_resolved:
            return "already_resolved"
        if not 0 <= int(choice_index) < len(session.current_question.choices):
            return "invalid_choice"
        return None

    async def submit_answer(self, session: Session, choice_index: int) -> SubmitOutcome:
        index = session.current_index
        reason = self._reject_reason(session, choice_index)
        if reason is not None:
            log.debug("quiz submit ignored index=%s reason=%s", index, reason)
            return SubmitOutcome(Resolution.rejected, index, reason=reason)

        if session.mode == QuizMode.general:
            return self._resolve_general(session, int(choice_index))
        return await self._submit_quest(session, int(choice_index))

    def _resolve_general(self, session: Session, choice_index: int) -> SubmitOutcome:
        index = session.current_index
        question = session.current_question
        correct = question.choices[choice_index] == question.correct_choice
        points = points_for_attempt(
            QuizMode.general, correct, session.hint_used_for_current or session.is_retry_for_current
        )

        session.selected_choice = choice_index
        session.per_question_score[index] = points
        session.per_question_result[index] = QuestionResult.correct if correct else QuestionResult.wrong
        session.total_score += points
        log.info("quiz question resolved mode=general index=%s correct=%s points=%s", index, correct, points)
        return SubmitOutcome(Resolution.resolved, index, correct=correct, points=points)

    async def _submit_quest(self, session: Session, choice_index: int) -> SubmitOutcome:
        index = session.current_index
        question = session.current_question
        quest_id = session.quest.id

        generation = session.generation
        previous_choice = session.selected_choice
        session.selected_choice = choice_index
        session.submitting = True
        try:
            response = await self.gateway.submit_answer(
                quest_id=quest_id,
                question_id=question.id,
                choice_index=choice_index,
                is_last_question=session.is_last_question,
            )
        except QuestApiError as e:
            log.warning(
                "quiz submit failed quest_id=%s question_id=%s status=%s err=%s",
                quest_id,
                question.id,
                e.status_code,
                e,
            )
            if session.generation != generation:
                return SubmitOutcome(Resolution.rejected, index, reason="session_reset")
            session.selected_choice = previous_choice
            raise SubmissionError(f"could not submit answer: {e}", index) from e
        finally:
            session.submitting = False

        if session.generation != generation:
            log.info("quiz submit dropped after reset quest_id=%s question_id=%s", quest_id, question.id)
            return SubmitOutcome(Resolution.rejected, index, reason="session_reset")

        correct = bool(response.is_correct)
        session.server_total_score = int(response.total_score)

        if retry_triggered(session.mode, correct, session.hint_used_for_current, session.is_retry_for_current):
            session.hint_used_for_current = True
            session.is_retry_for_current = True
            session.hint_panel_open = True
            session.selected_choice = None
            if not response.retry_allowed:
                log.debug("quiz retry forced although backend disallowed it quest_id=%s index=%s", quest_id, index)
            log.info("quiz retry forced quest_id=%s index=%s", quest_id, index)
            return SubmitOutcome(Resolution.retry_required, index, correct=False, hint=question.hint)

        points = points_for_attempt(
            session.mode, correct, session.hint_used_for_current or session.is_retry_for_current
        )
        if int(response.earned) != points:
            log.debug(
                "quiz score disagreement quest_id=%s index=%s local=%s backend=%s",
                quest_id,
                index,
                points,
                response.earned,
            )

        # A retry overwrites, it never accumulates.
        session.per_question_score[index] = points
        session.per_question_result[index] = QuestionResult.correct if correct else QuestionResult.wrong
        session.total_score = sum(session.per_question_score.values())

        if response.new_balance is not None:
            session.new_balance = int(response.new_balance)
        if response.already_completed:
            session.already_completed_before_session = True

        if session.already_completed_before_session:
            session.points_awarded = 0
        else:
            session.points_awarded += max(0, int(response.points_awarded))

        if response.completed:
            session.quest_completed = True
            session.completed = True

        log.info(
            "quiz question resolved mode=quest quest_id=%s index=%s correct=%s points=%s",
            quest_id,
            index,
            correct,
            points,
        )
        return SubmitOutcome(Resolution.resolved, index, correct=correct, points=points)

    def request_hint(self, session: Session) -> HintOutcome | None:
        if session.review or session.result is not None:
            return None

        question = session.current_question
        newly_used = False
        # Flags only change while the question is still open and nothing is in flight.
        if not session.hint_used_for_current and not session.current_resolved and not session.submitting:
            session.hint_used_for_current = True
            session.is_retry_for_current = True
            newly_used = True
        session.hint_panel_open = True
        return HintOutcome(hint=question.hint, newly_used=newly_used)

    def close_hint(self, session: Session) -> None:
        session.hint_panel_open = False

    def advance(self, session: Session) -> QuizResult | None:
        if session.review or session.result is not None or session.submitting or not session.current_resolved:
            return None

        if not session.is_last_question:
            session.current_index += 1
            session.clear_question_flags()
            return None

        session.completed = True
        session.result = build_result(session)
        log.info(
            "quiz session finished mode=%s total=%s points_awarded=%s already_completed=%s",
            session.mode.value,
            session.result.total_score,
            session.result.points_awarded,
            session.result.already_completed,
        )
        return session.result


def build_result(session: Session) -> QuizResult:
    quest = session.quest
    already = bool(session.already_completed_before_session)
    return QuizResult(
        mode=session.mode,
        total_score=session.total_score,
        per_question_scores=tuple(session.per_question_score.get(i, 0) for i in range(session.question_count)),
        per_question_results=tuple(session.per_question_result),
        question_count=session.question_count,
        already_completed=already,
        points_awarded=0 if already else session.points_awarded,
        quest_completed=session.quest_completed,
        quest_id=quest.id if quest is not None else None,
        quest_name=quest.name if quest is not None else None,
        reward_point=int(quest.reward_point) if quest is not None else 0,
        server_total_score=session.server_total_score,
        new_balance=session.new_balance,
    )
