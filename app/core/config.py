"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Required fields (e.g. SECRET_KEY) and the storage
backend are validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings are optional with defaults except those validated in
    validate_required_and_storage (secret_key, and Firestore credentials
    when storage_backend is 'firestore').
    """

    # App
    app_name: str = "docbase"
    app_version: str = "1.0.0"
    debug: bool = False

    # Storage engine: "memory" (in-process) or "firestore" (Firestore REST)
    storage_backend: str = "memory"

    # Firebase / Firestore: use key (env) or path (file).
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None

    # Security
    secret_key: SecretStr = SecretStr("")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 480  # 8 hours

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # Request / middleware
    request_timeout_seconds: int = 60
    request_id_header: str = "X-Request-ID"

    # Documents
    public_project_name: str = "public"
    id_generation_max_attempts: int = 5

    # Task execution
    task_timeout_seconds: float = 30.0
    task_max_call_depth: int = 5
    outbound_http_timeout_seconds: float = 30.0

    # Cron scheduler
    scheduler_enabled: bool = False
    scheduler_interval_seconds: int = 60

    # Task services: SMS (Twilio) and email (Postmark)
    twilio_account_sid: str | None = None
    twilio_auth_token: SecretStr | None = None
    twilio_phone_number: str | None = None
    postmark_server_token: SecretStr | None = None
    postmark_from_email: str | None = None

    # OpenTelemetry
    telemetry_enabled: bool = True
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_required_and_storage(self) -> "Settings":
        """Validate required env and storage backend.

        - Firestore: FIREBASE_SERVICE_ACCOUNT_KEY or FIREBASE_SERVICE_ACCOUNT_PATH required.
        - Memory: no extra configuration.
        """
        if self.storage_backend == "firestore":
            has_key = (
                self.firebase_service_account_key
                and self.firebase_service_account_key.get_secret_value()
            )
            if not has_key and not self.firebase_service_account_path:
                raise ValueError(
                    "When storage_backend is 'firestore', set FIREBASE_SERVICE_ACCOUNT_KEY (full JSON string) "
                    "or FIREBASE_SERVICE_ACCOUNT_PATH (path to JSON file)."
                )
        elif self.storage_backend != "memory":
            raise ValueError(
                f"storage_backend must be 'memory' or 'firestore', got: {self.storage_backend!r}"
            )
        if not self.secret_key.get_secret_value():
            raise ValueError(
                "SECRET_KEY is required. Generate with: openssl rand -hex 32."
            )
        if self.task_timeout_seconds <= 0:
            raise ValueError("TASK_TIMEOUT_SECONDS must be positive")
        if self.task_max_call_depth < 1:
            raise ValueError("TASK_MAX_CALL_DEPTH must be at least 1")
        if self.id_generation_max_attempts < 1:
            raise ValueError("ID_GENERATION_MAX_ATTEMPTS must be at least 1")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
