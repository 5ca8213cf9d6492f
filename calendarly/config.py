"""Settings for Calendarly, read from the environment.

Each section has its own prefix and is loaded on its own; ``get_settings()``
returns one cached ``Settings`` holding all of them.

Usage:
    from calendarly.config import get_settings
    public_url = get_settings().app.public_url
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class RedisSettings(BaseSettings):
    """Redis holds the JWKS cache; the app runs without it."""

    model_config = SettingsConfigDict(env_prefix="REDIS_", extra="ignore")

    host: str = "redis"
    port: int = 6379
    password: str = ""
    max_connections: int = Field(default=50, description="Upper bound of the blocking pool")
    pool_timeout_sec: float = Field(default=5.0, description="Wait for a free pooled connection")
    health_check_interval: int = 30
    retry_on_timeout: bool = True
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0


class PostgresSettings(BaseSettings):
    """Where events and schedules are stored."""

    model_config = SettingsConfigDict(
        env_prefix="POSTGRES_",
        extra="ignore",
        populate_by_name=True,
    )

    host: str = "postgres"
    port: int = 5432
    user: str = "calendarly"
    password: str = ""
    database: str = Field(default="calendarly", validation_alias="POSTGRES_DB")
    pool_min_size: int = 2
    pool_max_size: int = 10
    pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    pool_max_lifetime: int = Field(default=1800, description="Recycle connections after this many seconds")
    pool_max_idle: int = Field(default=300, description="Close connections idle this long")

    def get_dsn(self) -> str:
        """libpq keyword DSN for psycopg."""
        return (
            f"host={self.host} port={self.port} user={self.user} "
            f"password={self.password} dbname={self.database} sslmode=disable"
        )


class AuthSettings(BaseSettings):
    """Session token verification and hosted sign-in pages."""

    model_config = SettingsConfigDict(env_prefix="AUTH_", extra="ignore")

    jwks_url: str = Field(default="", description="JWKS endpoint of the auth provider")
    issuer: str = Field(default="", description="Expected token issuer (empty disables the check)")
    jwt_secret: str = Field(
        default="",
        description="HS256 shared secret; when set, JWKS verification is skipped",
    )
    authorized_parties_raw: str = Field(
        default="",
        validation_alias="AUTH_AUTHORIZED_PARTIES",
        description="Comma-separated origins accepted in the azp claim",
    )
    provider_sign_in_url: str = Field(default="", description="Hosted sign-in page of the auth provider")
    provider_sign_up_url: str = Field(default="", description="Hosted sign-up page of the auth provider")
    session_cookie: str = Field(default="__session", description="Cookie carrying the session token")
    jwks_cache_ttl_sec: int = Field(default=3600, description="How long fetched JWKS stay cached")
    leeway_sec: int = Field(default=5, description="Clock skew tolerated on exp/nbf")

    @property
    def authorized_parties(self) -> list[str]:
        return _csv(self.authorized_parties_raw)


class CorsSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    origins_raw: str = Field(default="http://localhost:3000", validation_alias="CORS_ORIGINS")
    origins_regex: str = Field(default="", validation_alias="CORS_ORIGINS_REGEX")

    @property
    def origins(self) -> list[str]:
        return _csv(self.origins_raw)

    @property
    def allow_credentials(self) -> bool:
        # browsers reject credentials with a wildcard origin
        return self.origins != ["*"]


class _FlagSettings(BaseSettings):
    """Boolean switches read from un-prefixed env vars such as ``ENABLE_DB=1``."""

    model_config = SettingsConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def parse_bool(cls, v):
        if isinstance(v, str):
            return v.lower() in ("1", "true", "yes")
        return bool(v)


class DebugSettings(_FlagSettings):
    request: bool = Field(default=False, alias="request_debug")
    auth: bool = Field(default=False, alias="auth_debug")


class FeatureSettings(_FlagSettings):
    db: bool = Field(default=True, alias="enable_db")
    redis: bool = Field(default=True, alias="enable_redis")


class AppSettings(BaseSettings):
    """Public-facing application settings."""

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    name: str = Field(default="Calendarly", description="Display name")
    public_url: str = Field(
        default="http://localhost:3000",
        description="Origin used to build shareable booking links",
    )
    default_timezone: str = Field(
        default="UTC",
        description="Timezone offered when a user has no schedule yet",
    )

    @field_validator("public_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class Settings:
    """All sections together.

    Plain class rather than ``BaseSettings`` so that each section keeps its
    own prefix.
    """

    def __init__(self) -> None:
        self.redis = RedisSettings()
        self.postgres = PostgresSettings()
        self.auth = AuthSettings()
        self.cors = CorsSettings()
        self.debug = DebugSettings()
        self.features = FeatureSettings()
        self.app = AppSettings()


@lru_cache
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    """Drop the cached settings so the next ``get_settings()`` rereads the environment."""
    get_settings.cache_clear()
