from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_PORT,
    FALLBACK_ALLOWED_ORIGINS,
    HEALTH_PATH,
    MAX_BODY_BYTES,
    MAX_UPLOAD_BYTES,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_MESSAGE,
    RATE_LIMIT_WINDOW_SECONDS,
    REQUIRED_SETTINGS,
    STATIC_ALLOWED_ORIGINS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env files.

    Built once at process start and passed into the application factory.
    Instances are frozen so nothing can reconfigure the pipeline at runtime.
    """

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="Server port")
    node_env: str | None = Field(
        default=None, description="Runtime environment (development, production)"
    )

    # Security configuration
    jwt_secret: str | None = Field(
        default=None, description="Secret used to sign authentication tokens"
    )
    jwt_algorithm: str = Field(default="HS256", description="Token signing algorithm")
    jwt_expires_minutes: int = Field(
        default=60 * 24, ge=1, description="Lifetime of issued tokens in minutes"
    )

    # Frontend and hosting platform markers
    frontend_url: str | None = Field(
        default=None, description="Production frontend origin"
    )
    vercel: str | None = Field(default=None, description="Set to '1' on Vercel")
    vercel_env: str | None = Field(default=None, description="Vercel environment")
    vercel_url: str | None = Field(default=None, description="Vercel deployment host")
    next_public_vercel_url: str | None = Field(
        default=None, description="Vercel frontend deployment host"
    )
    aws_lambda_function_name: str | None = Field(
        default=None, description="Set by AWS Lambda"
    )

    # Database configuration
    database_url: str = Field(
        default="sqlite:///./heartsmiles.db", description="Database connection URL"
    )

    # Rate limiting
    rate_limit_window_seconds: int = Field(
        default=RATE_LIMIT_WINDOW_SECONDS, ge=1, description="Rate window in seconds"
    )
    rate_limit_max_requests: int = Field(
        default=RATE_LIMIT_MAX_REQUESTS, ge=1, description="Requests allowed per window"
    )
    rate_limit_message: str = Field(
        default=RATE_LIMIT_MESSAGE, description="Message returned when blocked"
    )
    rate_limit_exempt_paths: tuple[str, ...] = Field(
        default=(HEALTH_PATH,), description="Paths that are never rate limited"
    )
    trusted_proxy_hops: int = Field(
        default=1, ge=0, description="Number of reverse proxies trusted for client IP"
    )

    # Request bodies and uploads
    max_body_bytes: int = Field(
        default=MAX_BODY_BYTES, ge=1, description="JSON/form body size ceiling"
    )
    upload_dir: str = Field(default="uploads", description="Directory for uploads")
    max_upload_bytes: int = Field(
        default=MAX_UPLOAD_BYTES, ge=1, description="Upload size ceiling"
    )
    allowed_upload_extensions: str = Field(
        default=".csv,.pdf,.png,.jpg,.jpeg",
        description="Allowed upload extensions (comma-separated)",
    )

    # Logging and telemetry
    log_to_file: bool = Field(
        default=False, description="Force logging to file even in development"
    )
    enable_telemetry: bool = Field(
        default=False, description="Enable OpenTelemetry tracing and metrics"
    )

    # Pydantic Settings configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.node_env == "development"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.node_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def environment_name(self) -> str:
        """Environment name for display, defaulting to development."""
        return self.node_env or "development"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_serverless(self) -> bool:
        """Check if a serverless platform is hosting the process."""
        return (
            self.vercel == "1"
            or bool(self.vercel_env)
            or bool(self.aws_lambda_function_name)
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def allowed_origins(self) -> list[str]:
        """Origins allowed to receive permissive CORS headers.

        Static origins come first, followed by environment-provided ones.
        Empty values are dropped and duplicates removed, keeping the first
        occurrence.
        """
        candidates = [
            *STATIC_ALLOWED_ORIGINS,
            self.frontend_url,
            f"https://{self.vercel_url}" if self.vercel_url else None,
            f"https://{self.next_public_vercel_url}"
            if self.next_public_vercel_url
            else None,
        ]
        origins = list(dict.fromkeys(origin for origin in candidates if origin))
        return origins or list(FALLBACK_ALLOWED_ORIGINS)

    @property
    def allowed_upload_extensions_list(self) -> list[str]:
        """Parse ALLOWED_UPLOAD_EXTENSIONS into a list of lowercase suffixes."""
        return [
            ext.strip().lower()
            for ext in self.allowed_upload_extensions.split(",")
            if ext.strip()
        ]

    def missing_required_settings(self) -> list[str]:
        """Environment variable names of required settings that are unset."""
        return [name.upper() for name in REQUIRED_SETTINGS if not getattr(self, name)]


def load_settings() -> Settings:
    """Read settings from the process environment."""
    return Settings()
