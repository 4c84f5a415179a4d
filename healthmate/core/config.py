from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env at the project root: healthmate/core/config.py -> healthmate/core -> healthmate -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"


class Settings(BaseSettings):
    # Required: the process refuses to start without a signing secret.
    secret_key: str
    access_token_expire_days: int = 7
    database_url: str = "sqlite:///./healthmate.db"
    openai_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"
    openai_timeout: float = 30.0
    chat_max_tokens: int = 500
    chat_temperature: float = 0.7
    report_max_tokens: int = 1000
    report_temperature: float = 0.3
    report_second_language: str = "Urdu"
    upload_dir: Path = _ROOT / "uploads"
    upload_max_mb: int = 10
    # Comma separated list of allowed origins
    cors_origins: str = "http://localhost:5173"
    environment: str = "production"  # development: 500 responses include the error message
    log_level: str = "INFO"

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("secret_key", mode="before")
    @classmethod
    def require_secret_key(cls, v: str | None) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("SECRET_KEY must be set to a non-empty value.")
        return v

    @field_validator("openai_api_key", mode="before")
    @classmethod
    def strip_openai_key(cls, v: str | None) -> str:
        return (v or "").strip()

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() == "development"

    @property
    def cors_origin_list(self) -> list[str]:
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins if origins and origins != ["*"] else ["*"]

    @property
    def upload_max_bytes(self) -> int:
        return self.upload_max_mb * 1024 * 1024


settings = Settings()


def is_openai_configured() -> bool:
    return bool(settings.openai_api_key)
