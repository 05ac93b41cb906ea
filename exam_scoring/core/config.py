from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Share of short-answer keywords that must appear for full credit
    SHORT_ANSWER_MATCH_RATIO: float = Field(0.6, ge=0.0, le=1.0)

    # Separator used by multi-value answer keys and multi-select responses
    ANSWER_DELIMITER: str = ","

    PASS_PERCENTAGE: float = Field(60.0, ge=0.0, le=100.0)
    REPORTS_DIR: str = "reports"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("ANSWER_DELIMITER")
    @classmethod
    def _delimiter_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("ANSWER_DELIMITER must not be empty")
        return value


settings = Settings()
