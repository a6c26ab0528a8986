"""Mailchimp configuration settings.

Environment-based configuration for Mailchimp API authentication and defaults.
"""


from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MailChimpSettings(BaseSettings):
    """Configuration for the Mailchimp API client.

    All settings can be configured via environment variables or .env file.

    Attributes:
        mailchimp_api_key: API key, ending in the data center suffix (e.g. ``-us6``)
        mailchimp_server_prefix: Data center prefix; derived from the key if unset
        request_timeout: HTTP request timeout in seconds
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    mailchimp_api_key: SecretStr = Field(
        ...,
        alias="MAILCHIMP_API_KEY",
        description="Mailchimp API key",
    )
    mailchimp_server_prefix: str | None = Field(
        default=None,
        alias="MAILCHIMP_SERVER_PREFIX",
        description="Data center prefix, e.g. us6",
    )

    request_timeout: int = Field(
        default=30,
        alias="MC_REQUEST_TIMEOUT",
        description="HTTP request timeout in seconds",
    )

    @field_validator("mailchimp_server_prefix")
    @classmethod
    def validate_server_prefix(cls, v: str | None) -> str | None:
        """Normalize the server prefix."""
        if v is None:
            return None
        v = v.strip().lower()
        return v or None

    @model_validator(mode="after")
    def derive_server_prefix(self) -> "MailChimpSettings":
        """Take the data center from the API key suffix when not set explicitly."""
        if self.mailchimp_server_prefix is None:
            key = self.get_api_key_value()
            if "-" not in key:
                msg = "MAILCHIMP_SERVER_PREFIX is required when the API key has no data center suffix"
                raise ValueError(msg)
            self.mailchimp_server_prefix = key.rsplit("-", 1)[-1].strip().lower()
        return self

    def get_api_key_value(self) -> str:
        """Get the API key as a plain string.

        Returns:
            The API key value.
        """
        return self.mailchimp_api_key.get_secret_value()

    @property
    def base_url(self) -> str:
        """Root URL of the Marketing API for this account's data center."""
        return f"https://{self.mailchimp_server_prefix}.api.mailchimp.com/3.0"


_settings_instance: MailChimpSettings | None = None


def get_mailchimp_settings() -> MailChimpSettings:
    """Get default settings (singleton, reads from environment).

    Returns:
        MailChimpSettings instance.

    Raises:
        ValidationError: If required environment variables are missing.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = MailChimpSettings()
    return _settings_instance


def reset_settings() -> None:
    """Reset singleton (for testing)."""
    global _settings_instance
    _settings_instance = None
