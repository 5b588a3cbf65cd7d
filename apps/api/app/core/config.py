"""Environment-driven API configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGED_QUESTION_BANK = Path(__file__).resolve().parent.parent / "data" / "questions"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "SustainAssess API"
    app_version: str = "0.1.0"
    database_url: str = "sqlite:///.data/sustainassess.sqlite"
    runtime_environment: str = "development"
    security_enabled: bool = True
    auth_api_keys: str = "dev-key"
    admin_api_keys: str = "admin-key"
    upload_storage_root: Path = Path(".data/uploads")
    upload_max_bytes: int = 10 * 1024 * 1024
    upload_allowed_extensions: str = "jpeg,jpg,png,gif,pdf,doc,docx,txt"
    question_bank_root: Path = _PACKAGED_QUESTION_BANK
    llm_enabled: bool = False
    llm_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai"
    llm_api_key: str = ""
    llm_model: str = "gemini-1.5-flash"
    llm_fallback_models: str = "gemini-1.5-pro,gemini-pro,gemini-1.0-pro"
    llm_timeout_seconds: float = 20.0
    report_product_name: str = "SustainAssess Platform"
    id_allocation_max_attempts: int = 10
    cors_allowed_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    model_config = SettingsConfigDict(
        env_prefix="SUSTAINASSESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def fallback_model_list(self) -> list[str]:
        return [item.strip() for item in self.llm_fallback_models.split(",") if item.strip()]

    @property
    def allowed_extension_set(self) -> set[str]:
        return {
            item.strip().lower().lstrip(".")
            for item in self.upload_allowed_extensions.split(",")
            if item.strip()
        }


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()
