from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration, read from the environment (and .env)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = "development"
    log_level: str = "INFO"
    port: int = 3001

    data_dir: Path = Path("./data")
    upload_dir: Path = Path("./uploads")

    # Uploaded originals: "local" or "supabase"
    storage_backend: str = "local"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    storage_bucket: str = "pdfbucket"

    # OpenAI-compatible chat completions endpoint
    ai_api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("OPENROUTER_API_KEY", "ai_api_key"),
    )
    ai_base_url: str = "https://openrouter.ai/api/v1/chat/completions"
    ai_model: str = "google/gemini-2.5-flash"
    ai_temperature: float = 0.7
    ai_top_p: float = 0.8
    ai_max_tokens: int = 8192
    ai_timeout: float = 120.0

    frontend_url: str = "http://localhost:5173"
    # CORS_ORIGINS is comma separated, not JSON
    cors_origins: Annotated[List[str], NoDecode] = ["http://localhost:5173", "http://localhost:3000"]

    max_file_size_mb: int = 10
    max_files_per_upload: int = 10
    max_arguments_per_side: int = 5

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def cases_dir(self) -> Path:
        return self.data_dir / "cases"

    @property
    def max_file_size(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    @property
    def ai_configured(self) -> bool:
        return bool(self.ai_api_key)


def get_settings() -> Settings:
    return Settings()
