from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, Field, HttpUrl, computed_field
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

_PSYCOPG_SCHEME = "postgresql+psycopg"


def split_origins(value: Any) -> list[str] | str:
    """Accept a comma separated string or a JSON list for CORS origins."""
    if isinstance(value, str) and not value.startswith("["):
        return [origin.strip() for origin in value.split(",") if origin.strip()]
    if isinstance(value, list | str):
        return value
    raise ValueError(value)


def with_psycopg_driver(url: str) -> str:
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return f"{_PSYCOPG_SCHEME}://{url[len(prefix):]}"
    return url


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # .env at the repository root, one level above ./backend/
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Service
    PROJECT_NAME: str = "FieldOps"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    FRONTEND_HOST: str = "http://localhost:5173"
    BACKEND_CORS_ORIGINS: Annotated[list[AnyUrl] | str, BeforeValidator(split_origins)] = []

    # Database; DATABASE_URL wins over the POSTGRES_* parts
    DATABASE_URL: str | None = None
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "fieldops"
    DATABASE_POOL_PRE_PING: bool = True
    PERSISTENCE_READ_RETRY_ATTEMPTS: int = Field(default=3, ge=1)
    PERSISTENCE_READ_RETRY_MAX_DELAY: float = Field(default=2.0, gt=0)

    # Logging, metrics, tracing, error reporting
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"
    LOG_SQL: bool = False
    ENABLE_METRICS: bool = True
    METRICS_PORT: int = 8001
    ENABLE_TRACING: bool = True
    SENTRY_DSN: HttpUrl | None = None

    # Scheduling engine
    AUTOMATION_DISPATCH_MODE: Literal["inline", "background"] = "background"
    AUTOMATION_MAX_WORKERS: int = Field(default=4, ge=1)
    AUTOMATION_MAX_CHAIN_DEPTH: int = Field(default=3, ge=0)
    OPTIMIZER_TIME_BUDGET_SECONDS: float = Field(default=30.0, gt=0)
    DEFAULT_TASK_MINUTES: int = Field(default=60, ge=1)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        origins = [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]
        return [*origins, self.FRONTEND_HOST]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return with_psycopg_driver(self.DATABASE_URL)
        return str(
            MultiHostUrl.build(
                scheme=_PSYCOPG_SCHEME,
                username=self.POSTGRES_USER,
                password=self.POSTGRES_PASSWORD,
                host=self.POSTGRES_SERVER,
                port=self.POSTGRES_PORT,
                path=self.POSTGRES_DB,
            )
        )


settings = Settings()  # type: ignore
