from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MockRSSettings(BaseSettings):
    """Mock replica set configuration settings.

    Values are read from the environment with a ``MOCKRS_`` prefix (for example
    ``MOCKRS_REQUEST_TIMEOUT=0.5``) or from a local ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="MOCKRS_", env_file=".env", extra="ignore"
    )

    set_name: str = Field(
        "rs", description="Replica set name advertised in handshakes and the URI."
    )
    request_timeout: float = Field(
        0.1,
        description="Seconds a retrieval waits for a funneled request.",
    )
    verbose: bool = Field(
        False, description="Log every request members hand to the funnel."
    )
    log_level: str = Field("INFO", description="Minimum loguru level for stderr.")
    log_debug_scopes: tuple[str, ...] = Field(
        (),
        description="Module prefixes (e.g. core.topology) that always log at DEBUG.",
    )

    @field_validator("request_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("request_timeout must be positive")
        return value

    @field_validator("set_name")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("value cannot be empty")
        return value
