from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from article_reader.domain.entities import SummaryMode

REPO_ROOT_ENV_PATH = Path(__file__).resolve().parents[4] / ".env"
SERVICE_ENV_PATH = Path(__file__).resolve().parents[2] / ".env"

# Load monorepo-level env first, then service-local env (service file overrides shared values).
load_dotenv(REPO_ROOT_ENV_PATH, override=False)
load_dotenv(SERVICE_ENV_PATH, override=True)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=5000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"], alias="CORS_ORIGINS")

    request_timeout_ms: int = Field(default=20_000, alias="REQUEST_TIMEOUT_MS")
    min_content_length: int = Field(default=200, alias="MIN_CONTENT_LENGTH")
    summary_input_max_chars: int = Field(default=5_000, alias="SUMMARY_INPUT_MAX_CHARS")
    blocked_domains: list[str] = Field(
        default_factory=lambda: ["twitter.com", "x.com"],
        alias="BLOCKED_DOMAINS",
    )
    summary_mode: SummaryMode = Field(default=SummaryMode.EXTRACTIVE, alias="SUMMARY_MODE")

    lm_base_url: str = Field(default="", alias="LM_BASE_URL")
    lm_api_key: str = Field(default="", alias="LM_API_KEY")
    lm_model_id: str = Field(default="gpt-4o-mini", alias="LM_MODEL_ID")
    lm_http_timeout_seconds: int = Field(default=30, alias="LM_HTTP_TIMEOUT_SECONDS")

    narration_model_id: str = Field(default="mlx-community/Kokoro-82M-bf16", alias="NARRATION_MODEL_ID")
    narration_voice: str = Field(default="af_heart", alias="NARRATION_VOICE")
    narration_speed: float = Field(default=1.0, alias="NARRATION_SPEED")
    narration_output_dir: Path = Field(default=Path("data/narration"), alias="NARRATION_OUTPUT_DIR")
    narration_voice_timeout_seconds: float = Field(default=10.0, alias="NARRATION_VOICE_TIMEOUT_SECONDS")

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout_ms / 1000


@lru_cache
def get_settings() -> Settings:
    return Settings()
