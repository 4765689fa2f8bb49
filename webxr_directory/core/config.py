import logging
from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from webxr_directory.core.errors import ConfigurationError


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application Settings.

    This class loads variables from the environment (or .env file).
    Pydantic automatically validates types and missing values.
    """

    # --- Core Settings ---
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars (like SYSTEM_*)
    )

    # Stack traces are only returned to clients in development
    environment: Literal["development", "production"] = "production"
    log_level: str = "INFO"

    # --- Airtable ---
    airtable_api_key: Optional[SecretStr] = Field(
        default=None, description="Personal access token for the Airtable base"
    )
    airtable_base_id: Optional[str] = Field(
        default=None, description="Identifier of the base (appXXXXXXXXXXXXXX)"
    )
    airtable_table_name: Optional[str] = Field(
        default=None, description="Table holding the tool listings"
    )
    airtable_api_url: str = "https://api.airtable.com/v0"
    airtable_timeout: float = Field(
        default=15.0, description="Timeout in seconds for Airtable requests"
    )

    # --- HTTP Server ---
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Origin allowed to call the API from a browser",
    )
    host: str = "0.0.0.0"
    port: int = 5001
    require_store_config: bool = Field(
        default=False,
        description="Refuse to start the API when Airtable settings are missing",
    )

    # --- Directory Client ---
    api_base_url: str = Field(
        default="http://localhost:5001/api",
        description="Base URL of the directory API used by the client layer",
    )
    search_debounce_ms: int = Field(
        default=400,
        description="Quiet period before a typed search term is applied",
    )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def missing_airtable_settings(self) -> list[str]:
        missing = []
        if not self.airtable_api_key or not self.airtable_api_key.get_secret_value():
            missing.append("AIRTABLE_API_KEY")
        if not self.airtable_base_id:
            missing.append("AIRTABLE_BASE_ID")
        if not self.airtable_table_name:
            missing.append("AIRTABLE_TABLE_NAME")
        return missing

    def validate_airtable_config(self) -> None:
        """Ensure Airtable credentials and table are present."""
        missing = self.missing_airtable_settings()
        if missing:
            raise ConfigurationError(
                "Airtable configuration missing: " + ", ".join(missing)
            )


# Create a global settings object
settings = Settings()

# Report immediately upon import; requests keep failing until this is fixed
try:
    settings.validate_airtable_config()
except ConfigurationError as e:
    logger.warning("Configuration Error: %s", e)
