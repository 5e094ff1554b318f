"""Configuration models for the insurance assistant."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORPUS_PATH = Path(__file__).parent / "data" / "knowledge-base.json"
DEFAULT_BOOKING_URL = (
    "https://calendar.google.com/calendar/appointments/schedules/"
    "AcZssZ0ORrvJhRP3kGcmYIOl5S_BZfb45n3aex1Lt-Yew3wXTkjLhEBhJsJm1bD0BQFH7FZbpKX69Ci"
)


class RetrievalConfig(BaseModel):
    """Per-collection caps used by search tools and context assembly."""

    context_articles: int = Field(default=2, ge=0)
    context_policies: int = Field(default=3, ge=0)
    context_claims: int = Field(default=3, ge=0)
    context_claims_chars: int = Field(default=1500, ge=1)
    article_chunks: int = Field(default=2, ge=1)
    scored_prefix_chars: int = Field(default=500, ge=1)

    search_articles_k: int = Field(default=3, ge=1)
    search_policies_k: int = Field(default=5, ge=1)
    search_claims_k: int = Field(default=3, ge=1)
    claims_guide_chars: int = Field(default=2000, ge=1)


class AgentConfig(BaseModel):
    """Configures the tool-calling loop."""

    max_iterations: int = Field(default=5, ge=1)
    history_window: int = Field(default=10, ge=0)
    context_char_budget: int | None = Field(default=None, ge=1)


class Settings(BaseSettings):
    """Process settings read from the environment or a `.env` file."""

    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", validation_alias="OPENAI_MODEL")
    booking_url: str = Field(default="", validation_alias="BOOKING_URL")
    corpus_path: Path = DEFAULT_CORPUS_PATH
    log_level: str = "INFO"
    max_tokens: int = Field(default=400, ge=1)
    context_char_budget: int | None = Field(default=None, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="COVER_AGENT_",
        extra="ignore",
        populate_by_name=True,
    )

    def resolved_booking_url(self) -> str:
        return self.booking_url or DEFAULT_BOOKING_URL
