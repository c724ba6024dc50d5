"""
Database settings.

Loaded from DB_* environment variables (or the .env file) once at
process start and handed to the pool manager explicitly.
"""
from typing import Dict, List, Optional

from pydantic import Field
from sqlalchemy.engine import URL, make_url

from bakery.settings.base import BakeryBaseSettings, ConfigurationError


REQUIRED_FIELDS = ("host", "name", "user", "password")


class DatabaseSettings(BakeryBaseSettings):
    """
    Connection and pool configuration for the relational store.

    ``url`` overrides the host/port/name/user/password parts when set
    (used for SQLite in tests and local runs).
    """

    # Connection
    host: Optional[str] = None
    port: int = 3306
    name: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    driver: str = "mysql+aiomysql"
    url: Optional[str] = None

    # Pool bounds (seconds for timeouts)
    pool_max: int = Field(default=10, ge=1)
    pool_min: int = Field(default=2, ge=0)
    acquire_timeout: float = Field(default=60.0, gt=0)
    pool_recycle: int = Field(default=3600, gt=0)  # 1 hour, max connection age
    connect_timeout: int = Field(default=60, gt=0)

    # Session
    timezone: str = "+02:00"
    charset: str = "utf8mb4"
    collation: str = "utf8mb4_unicode_ci"

    # Echo SQL (for debugging)
    echo_sql: bool = False

    model_config = {"env_prefix": "DB_"}

    def missing_fields(self) -> List[str]:
        """Return the env variable names of required settings that are unset."""
        if self.url:
            return []
        return [
            f"DB_{field.upper()}"
            for field in REQUIRED_FIELDS
            if getattr(self, field) is None
        ]

    def require(self) -> None:
        """
        Fail fast when required connection settings are absent.

        Raises:
            ConfigurationError: If any of DB_HOST, DB_NAME, DB_USER or
                DB_PASSWORD is missing and no DB_URL is given
        """
        missing = self.missing_fields()
        if missing:
            raise ConfigurationError(
                f"Missing required database settings: {', '.join(missing)}"
            )
        if self.pool_min > self.pool_max:
            raise ConfigurationError(
                f"DB_POOL_MIN ({self.pool_min}) exceeds DB_POOL_MAX ({self.pool_max})"
            )

    def sqlalchemy_url(self) -> URL:
        """Build the SQLAlchemy URL, validating required settings first."""
        self.require()
        if self.url:
            return make_url(self.url)
        return URL.create(
            self.driver,
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.name,
        )

    def connect_args(self, backend: str) -> Dict[str, object]:
        """
        Driver-level connect arguments pinning timeout, charset and time zone.

        Args:
            backend: SQLAlchemy backend name ("mysql", "postgresql", ...)
        """
        if backend == "mysql":
            return {
                "connect_timeout": self.connect_timeout,
                "charset": self.charset,
                "init_command": (
                    f"SET time_zone = '{self.timezone}', "
                    f"collation_connection = '{self.collation}'"
                ),
            }
        if backend == "postgresql":
            return {
                "timeout": self.connect_timeout,
                "server_settings": {"timezone": self.timezone},
            }
        return {}

    def safe_url(self) -> str:
        """URL with the password masked, for logging."""
        return self.sqlalchemy_url().render_as_string(hide_password=True)
