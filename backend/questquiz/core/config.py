from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(default="development", validation_alias="APP_ENV")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    quest_api_base_url: str = Field(default="http://localhost:8000", validation_alias="QUEST_API_BASE_URL")
    quest_api_token: str | None = Field(default=None, validation_alias="QUEST_API_TOKEN")

    quest_api_timeout_connect: float = Field(default=4.0, validation_alias="QUEST_API_TIMEOUT_CONNECT")
    quest_api_timeout_read: float = Field(default=15.0, validation_alias="QUEST_API_TIMEOUT_READ")
    quest_api_timeout_write: float = Field(default=10.0, validation_alias="QUEST_API_TIMEOUT_WRITE")
    quest_api_fetch_attempts: int = Field(default=3, validation_alias="QUEST_API_FETCH_ATTEMPTS")

    quiz_language: str = Field(default="en", validation_alias="QUIZ_LANGUAGE")
    general_quiz_question_count: int = Field(default=5, validation_alias="GENERAL_QUIZ_QUESTION_COUNT")
    general_quiz_default_landmark: str = Field(
        default="Gyeongbokgung Palace",
        validation_alias="GENERAL_QUIZ_DEFAULT_LANDMARK",
    )
    general_quiz_default_hint: str = Field(
        default="Think carefully about this question!",
        validation_alias="GENERAL_QUIZ_DEFAULT_HINT",
    )
    general_baseline_score: int = Field(default=25, validation_alias="GENERAL_BASELINE_SCORE")


settings = Settings()


def _is_prod() -> bool:
    return (settings.app_env or "").strip().lower() in {"prod", "production"}


def validate_settings(s: Settings) -> None:
    is_prod = (s.app_env or "").strip().lower() in {"prod", "production"}
    if not is_prod:
        return
    base = (s.quest_api_base_url or "").strip().rstrip("/")
    if base == "http://localhost:8000":
        raise RuntimeError("QUEST_API_BASE_URL must be set in production")
    if not base.lower().startswith("https://"):
        raise RuntimeError("QUEST_API_BASE_URL must use https in production")


if _is_prod():
    validate_settings(settings)
