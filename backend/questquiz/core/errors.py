"""
Exceptions raised by the quest quiz engine and its backend client.

Invalid state transitions (double taps, advancing an unresolved question)
are not errors: the engine answers them with a rejected outcome instead.
"""


class QuestQuizError(Exception):
    """Base exception for all quest quiz errors."""
    pass


class QuestApiError(QuestQuizError):
    """Raised when the backend is unreachable or answers with an error."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class QuizLoadError(QuestQuizError):
    """Raised when a question set or quest status cannot be loaded."""

    def __init__(self, message: str, quest_id: str | None = None):
        self.quest_id = quest_id
        super().__init__(message)


class SubmissionError(QuestQuizError):
    """Raised when an answer could not be recorded; the question stays open."""

    def __init__(self, message: str, question_index: int):
        self.question_index = question_index
        super().__init__(message)
