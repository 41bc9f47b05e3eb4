from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

from fitplan.planning.errors import ConfigurationError


class Settings(BaseSettings):
    """Process-wide configuration, built once at startup and passed explicitly.

    Nothing below the application factory reads the environment; the service,
    generation client and session factory all receive this object (or values
    taken from it) through their constructors.
    """

    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    database_url: str = Field(default="", validation_alias="DATABASE_URL")
    database_password: str = Field(
        default="",
        validation_alias="DATABASE_PASSWORD",
        description="Service credential for the data store, merged into DATABASE_URL when it carries none",
    )

    generation_model: str = Field(default="gpt-4o-mini", validation_alias="GENERATION_MODEL")
    generation_max_tokens: int = Field(default=4000, validation_alias="GENERATION_MAX_TOKENS")
    generation_temperature: float = Field(
        default=0.2,
        validation_alias="GENERATION_TEMPERATURE",
        description="Kept low: creative variance shows up downstream as parse failures",
    )
    generation_timeout_s: float = Field(default=20.0, validation_alias="GENERATION_TIMEOUT_S")
    generation_max_retries: int = Field(default=2, validation_alias="GENERATION_MAX_RETRIES")
    request_timeout_s: float = Field(
        default=30.0,
        validation_alias="REQUEST_TIMEOUT_S",
        description="Upper bound for everything before the persistence step",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(sorted(valid_levels))}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("generation_temperature")
    @classmethod
    def validate_temperature(cls, value: float) -> float:
        if not 0.0 <= value <= 2.0:
            raise ValueError(f"GENERATION_TEMPERATURE must be within [0, 2], got {value}")
        return value

    @field_validator("generation_max_retries")
    @classmethod
    def validate_max_retries(cls, value: int) -> int:
        if not 0 <= value <= 2:
            raise ValueError(f"GENERATION_MAX_RETRIES must be within [0, 2], got {value}")
        return value

    @field_validator("generation_max_tokens", "generation_timeout_s", "request_timeout_s")
    @classmethod
    def validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"Value must be positive, got {value}")
        return value

    @property
    def uses_sqlite(self) -> bool:
        return self.database_url.lower().startswith("sqlite")

    def engine_url(self) -> URL:
        """Return DATABASE_URL with DATABASE_PASSWORD merged in when the URL has none."""
        url = make_url(self.database_url)
        if self.database_password and not url.password and not self.uses_sqlite:
            url = url.set(password=self.database_password)
        return url

    def ensure_complete(self) -> None:
        """Fail before serving any request when a required value is missing.

        Raises:
            ConfigurationError: Naming every missing environment variable
        """
        missing: list[str] = []
        if not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        if not self.database_url:
            missing.append("DATABASE_URL")
        elif not self.uses_sqlite and not self.database_password and not make_url(self.database_url).password:
            missing.append("DATABASE_PASSWORD")

        if missing:
            raise ConfigurationError(missing)

        logger.info(
            "Configuration validated",
            generation_model=self.generation_model,
            generation_timeout_s=self.generation_timeout_s,
            sqlite=self.uses_sqlite,
        )
