from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ValidationError

from questquiz.core.config import settings
from questquiz.core.errors import QuestApiError
from questquiz.schemas.quiz import (
    GenericQuizResponse,
    QuestQuizSetResponse,
    QuestStatusResponse,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
)

log = logging.getLogger(__name__)


class SubmissionGateway(Protocol):
    async def submit_answer(
        self,
        *,
        quest_id: str,
        question_id: str,
        choice_index: int,
        is_last_question: bool,
    ) -> SubmitAnswerResponse: ...


def _body_snippet(resp: httpx.Response | None) -> str | None:
    if resp is None:
        return None
    try:
        txt = resp.text
    except Exception:
        return None
    return txt[:600] if isinstance(txt, str) and txt else None


class QuestApiClient:
    """Async client for the quest backend endpoints the quiz engine consumes."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        token: str | None = None,
        fetch_attempts: int | None = None,
        timeout: httpx.Timeout | None = None,
    ):
        use_base = (str(base_url).strip() if base_url is not None else "") or str(settings.quest_api_base_url or "").strip()
        self.base_url = use_base.rstrip("/")
        self.token = (token if token is not None else settings.quest_api_token) or None
        self.fetch_attempts = max(1, int(fetch_attempts if fetch_attempts is not None else settings.quest_api_fetch_attempts))
        self.timeout = timeout or httpx.Timeout(
            connect=float(settings.quest_api_timeout_connect),
            read=float(settings.quest_api_timeout_read),
            write=float(settings.quest_api_timeout_write),
            pool=3.0,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        attempts: int = 1,
    ) -> Any:
        url = self.base_url + path
        last_exc: Exception | None = None
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(1, attempts + 1):
                try:
                    r = await client.request(method, url, params=params, json=json, headers=self._headers())
                    r.raise_for_status()
                    return r.json()
                except httpx.HTTPStatusError as e:
                    last_exc = e
                    # Client errors will not succeed on a second try.
                    if e.response.status_code < 500:
                        break
                except (httpx.HTTPError, ValueError) as e:
                    last_exc = e
                if attempt < attempts:
                    log.warning(
                        "quest api %s %s failed attempt=%s/%s err=%s: %s",
                        method,
                        path,
                        attempt,
                        attempts,
                        type(last_exc).__name__,
                        last_exc,
                    )
                    await asyncio.sleep(0.35 * attempt)

        resp = getattr(last_exc, "response", None) if isinstance(last_exc, httpx.HTTPStatusError) else None
        status = int(resp.status_code) if resp is not None else None
        raise QuestApiError(
            f"{method} {path} failed: {type(last_exc).__name__}{(':HTTP_' + str(status)) if status else ''}",
            status_code=status,
            body=_body_snippet(resp),
        ) from last_exc

    @staticmethod
    def _parse(model: type[BaseModel], data: Any, what: str):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise QuestApiError(f"{what}: schema_validation_failed") from e

    async def fetch_quest_quiz(self, quest_id: str) -> QuestQuizSetResponse:
        data = await self._request("GET", f"/quest/{quest_id}/quizzes", attempts=self.fetch_attempts)
        return self._parse(QuestQuizSetResponse, data, "quest quiz set")

    async def fetch_quest_status(self, quest_id: str) -> QuestStatusResponse:
        data = await self._request("GET", f"/quest/{quest_id}/status", attempts=self.fetch_attempts)
        return self._parse(QuestStatusResponse, data, "quest status")

    async def submit_answer(
        self,
        *,
        quest_id: str,
        question_id: str,
        choice_index: int,
        is_last_question: bool,
    ) -> SubmitAnswerResponse:
        body = SubmitAnswerRequest(answer=int(choice_index), is_last_quiz=bool(is_last_question))
        # Never retried here: the backend records every submission.
        data = await self._request(
            "POST",
            f"/quest/{quest_id}/quizzes/{question_id}/submit",
            json=body.model_dump(),
        )
        return self._parse(SubmitAnswerResponse, data, "submit answer")

    async def fetch_generic_quiz(self, landmark: str, language: str | None = None) -> GenericQuizResponse:
        use_language = (str(language).strip() if language is not None else "") or settings.quiz_language
        data = await self._request(
            "POST",
            "/docent/quiz",
            params={"landmark": landmark, "language": use_language},
            attempts=self.fetch_attempts,
        )
        parsed = self._parse(GenericQuizResponse, data, "generic quiz")
        if not 0 <= parsed.correct_answer < len(parsed.options):
            raise QuestApiError(f"generic quiz: correct_answer {parsed.correct_answer} out of range")
        return parsed
