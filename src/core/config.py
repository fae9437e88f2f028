"""Configuration management for the todo service."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Runtime environment
    environment: str = Field(default="development", description="Deployment environment name")
    app_timezone: str = Field(default="Asia/Seoul", description="Timezone used for \"today\" and user-facing dates")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"], description="Origins allowed to call the API from a browser"
    )

    # PocketBase Configuration
    pocketbase_url: str = Field(default="http://127.0.0.1:8090", description="PocketBase server URL")
    pocketbase_admin_email: str = Field(
        default="admin@test.local", description="PocketBase admin email for privileged operations"
    )
    pocketbase_admin_password: str = Field(
        default="testpassword123", description="PocketBase admin password for privileged operations"
    )

    # OpenRouter Configuration
    openrouter_api_key: str | None = Field(default=None, description="OpenRouter API key for LLM access")

    # AI Model Configuration
    model_id: str = Field(
        default="google/gemini-2.0-flash-001",
        description="Model ID for OpenRouter",
    )
    model_provider: str | None = Field(default=None, description="Pin OpenRouter to a single upstream provider")
    llm_timeout_seconds: float = Field(default=30.0, description="Request timeout for a single model call")

    # Resend Configuration
    resend_api_key: str | None = Field(default=None, description="Resend API key for transactional email")
    resend_base_url: str = Field(default="https://api.resend.com", description="Resend API base URL")
    email_from: str = Field(
        default="AI 할 일 관리 <onboarding@resend.dev>", description="Sender address for notification email"
    )
    app_url: str = Field(default="https://ai-to-manager.vercel.app", description="Link target in email bodies")

    # Overdue sweep
    cron_secret: str | None = Field(default=None, description="Bearer secret required by the overdue sweep endpoint")
    overdue_threshold_hours: int = Field(
        default=24, description="Hours past the due date before a high-priority todo triggers an email"
    )
    overdue_sweep_cron: str = Field(default="0 9 * * *", description="Crontab for the in-process sweep")
    enable_scheduler: bool = Field(
        default=False, description="Run the overdue sweep in-process instead of relying on an external cron"
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    @property
    def is_production(self) -> bool:
        """Whether the service runs in production mode."""
        return self.environment.lower() == "production"

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    API_TIMEOUT_SECONDS: int = 30

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_BAD_REQUEST: int = 400
    HTTP_UNAUTHORIZED: int = 401
    HTTP_NOT_FOUND: int = 404
    HTTP_TOO_MANY_REQUESTS: int = 429
    HTTP_SERVER_ERROR: int = 500
    HTTP_SERVICE_UNAVAILABLE: int = 503

    # Natural language input bounds
    INPUT_MIN_LENGTH: int = 2
    INPUT_MAX_LENGTH: int = 500

    # Todo title bounds
    TITLE_MIN_LENGTH: int = 1
    TITLE_MAX_LENGTH: int = 100
    TITLE_ELLIPSIS: str = "..."

    # Draft defaults
    DEFAULT_TODO_TITLE: str = "새 할 일"
    DEFAULT_CATEGORY: str = "개인"
    DEFAULT_DUE_TIME: str = "09:00"

    # Analysis
    MAX_URGENT_TASKS: int = 5
    TOP_CATEGORY_COUNT: int = 3

    # Auth
    MIN_PASSWORD_LENGTH: int = 8

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 500

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
    TEMPLATES_DIR: Path = PROJECT_ROOT / "templates"
    CHANGELOG_PATH: Path = PROJECT_ROOT / "CHANGELOG.md"
    TERMS_PATH: Path = PROJECT_ROOT / "docs" / "TERMS_OF_SERVICE.md"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
