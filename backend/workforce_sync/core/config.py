from typing import Optional
from urllib.parse import urlsplit

from pydantic import AliasChoices, Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Known insecure default values that must be changed in production
_INSECURE_DB_PASSWORDS = {
    "postgres",
    "password",
    "changeme",
}


def _extract_password_from_database_url(database_url: str | None) -> str | None:
    if not database_url:
        return None
    try:
        parts = urlsplit(database_url)
        return parts.password
    except ValueError:
        return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    PROJECT_NAME: str = "Workforce Sync"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Database settings
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_SERVER: str = Field(
        default="db",
        validation_alias=AliasChoices("POSTGRES_SERVER", "POSTGRES_HOST", "POSTGRES_HOSTNAME"),
    )
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "workforce_sync"

    # Database connection pooling
    DB_POOL_SIZE: int = Field(default=10, description="Number of persistent DB connections")
    DB_MAX_OVERFLOW: int = Field(default=20, description="Max additional connections under load")

    # Full DB URL (preferred in CI/containers). If not provided, we build it from POSTGRES_*.
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "SQLALCHEMY_DATABASE_URI"),
    )

    SQLALCHEMY_ECHO: bool = False

    # Downstream HR API
    DOWNSTREAM_API_URL: str = "http://localhost:8080/rest/v1"
    DOWNSTREAM_CLIENT_ID: Optional[str] = None
    DOWNSTREAM_CLIENT_SECRET: Optional[str] = None
    # Optional bootstrap token; when absent the first call goes through the refresh grant
    DOWNSTREAM_ACCESS_TOKEN: Optional[str] = None
    DOWNSTREAM_REFRESH_TOKEN: Optional[str] = None
    DOWNSTREAM_TOKEN_PATH: str = "/oauth2/access_token"
    DOWNSTREAM_EMPLOYEES_PATH: str = "/employees"
    DOWNSTREAM_HTTP_TIMEOUT_SECONDS: float = 30.0
    TOKEN_EXPIRY_SKEW_SECONDS: int = 60  # refresh this many seconds before the token really expires

    # Pending sweep
    SYNC_BATCH_LIMIT: int = Field(default=100, ge=1)

    @computed_field
    @property
    def IS_PRODUCTION(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def model_post_init(self, __context):
        """
        Validate configuration on startup. In production, fail hard if insecure defaults
        or missing downstream credentials are detected.
        """
        # Fill DATABASE_URL if it wasn't provided explicitly
        if not self.DATABASE_URL:
            self.DATABASE_URL = (
                f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
            )

        is_prod = self.ENVIRONMENT.lower() == "production"
        if not is_prod:
            return

        errors = []
        db_url_password = _extract_password_from_database_url(self.DATABASE_URL)
        if db_url_password and db_url_password in _INSECURE_DB_PASSWORDS:
            errors.append("DATABASE_URL contains an insecure password.")

        if not self.DOWNSTREAM_CLIENT_ID or not self.DOWNSTREAM_CLIENT_SECRET:
            errors.append("DOWNSTREAM_CLIENT_ID and DOWNSTREAM_CLIENT_SECRET are required in production.")

        if not (self.DOWNSTREAM_ACCESS_TOKEN or self.DOWNSTREAM_REFRESH_TOKEN):
            errors.append(
                "Set DOWNSTREAM_REFRESH_TOKEN (and optionally DOWNSTREAM_ACCESS_TOKEN) in production."
            )

        if self.DOWNSTREAM_API_URL.startswith("http://"):
            errors.append("DOWNSTREAM_API_URL must use https in production.")

        # In production, DEBUG must be disabled
        if self.DEBUG:
            errors.append("DEBUG must be False in production.")

        # Fail hard with all errors at once for easier debugging
        if errors:
            error_msg = "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_msg)

    @field_validator("DOWNSTREAM_API_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, value):
        if isinstance(value, str):
            return value.rstrip("/")
        return value


settings = Settings()
