from pathlib import Path
from typing import Literal, Optional
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[3] / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    project_name: str = "Literature Tracer"
    log_level: str = "INFO"

    # Neural search provider (Exa). Absence is an explicit configuration condition.
    exa_api_key: Optional[SecretStr] = Field(default=None, description="Exa API key for neural search")
    exa_base_url: str = "https://api.exa.ai"

    # LLM judge / splitter / highlighter (any OpenAI-compatible endpoint)
    llm_api_key: Optional[SecretStr] = Field(default=None, description="OpenRouter or OpenAI API key")
    llm_base_url: Optional[str] = "https://openrouter.ai/api/v1"
    evaluation_model: str = "openai/gpt-4o"

    crossref_base_url: str = "https://api.crossref.org/works"

    # API contact email used in User-Agent headers for polite API access
    api_contact_email: str = Field(
        default="researcher@example.com",
        description="Email for API contact/User-Agent (update with your real email)"
    )

    redis_host: str = "localhost"
    redis_port: int = 6379
    evaluation_cache_ttl_hours: int = 24

    # slowapi limits, per client IP. A search fans out to three provider calls per sentence.
    rate_limit_default: str = "100/minute"
    search_rate_limit: str = "10/minute"
    evaluate_rate_limit: str = "30/minute"
    highlight_rate_limit: str = "30/minute"
    cache_clear_rate_limit: str = "5/minute"

    # What to do when the neural provider is unconfigured or entirely unreachable
    primary_unavailable_policy: Literal["error", "placeholder"] = "error"

    max_results_per_sentence: int = Field(default=6, ge=1, le=50)
    max_evaluated_per_sentence: int = Field(default=6, ge=0, le=50)
    neural_results_per_query: int = Field(default=3, ge=1, le=25)
    crossref_rows_per_query: int = Field(default=2, ge=1, le=50)
    crossref_max_concurrency: int = Field(default=4, ge=1, le=20)

    retry_max_attempts: int = Field(default=3, ge=0, le=10)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0.0)
    provider_timeout_seconds: float = 15.0
    evaluation_timeout_seconds: float = 20.0
    split_timeout_seconds: float = 8.0

    @property
    def API_CONTACT_EMAIL(self) -> str:
        return self.api_contact_email

    @property
    def EXA_API_KEY(self) -> Optional[str]:
        if self.exa_api_key:
            return self.exa_api_key.get_secret_value() or None
        return None

    @property
    def LLM_API_KEY(self) -> Optional[str]:
        if self.llm_api_key:
            return self.llm_api_key.get_secret_value() or None
        return None

    @property
    def PROJECT_NAME(self) -> str:
        return self.project_name

    @property
    def REDIS_HOST(self) -> str:
        return self.redis_host

    @property
    def REDIS_PORT(self) -> int:
        return self.redis_port

    @property
    def EVALUATION_CACHE_TTL_HOURS(self) -> int:
        return self.evaluation_cache_ttl_hours


settings = Settings()
