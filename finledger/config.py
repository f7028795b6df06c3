"""Configuration management for finledger."""

from dataclasses import dataclass, field

from finledger.exceptions import ConfigurationError

STORE_BACKENDS = ("memory", "postgres")


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "finledger"
    user: str = "postgres"
    password: str = "postgres"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class StoreConfig:
    """Record store selection."""

    backend: str = "memory"

    def __post_init__(self) -> None:
        if self.backend not in STORE_BACKENDS:
            raise ConfigurationError(
                f"Unknown store backend {self.backend!r}, expected one of {', '.join(STORE_BACKENDS)}"
            )


@dataclass
class LedgerConfig:
    """Main configuration for finledger."""

    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    log_level: str = "INFO"
    log_format: str = "standard"
    seed: int | None = None

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Create config from environment variables."""
        import os

        postgres = PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=int(os.getenv("POSTGRES_PORT", "5432")),
            database=os.getenv("POSTGRES_DB", "finledger"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD", "postgres"),
        )

        store = StoreConfig(backend=os.getenv("LEDGER_STORE", "memory").lower())

        return cls(
            postgres=postgres,
            store=store,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
            seed=int(os.getenv("SEED")) if os.getenv("SEED") else None,
        )
