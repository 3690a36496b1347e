"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pydantic import BaseModel, Field, field_validator, model_validator

# Catalog version tokens accepted by the help service, keyed by display name
VS_VERSIONS = {
    "visualstudio11": "Visual Studio 2012",
    "visualstudio12": "Visual Studio 2013",
    "dev14": "Visual Studio 2015",
    "dev15": "Visual Studio 2017",
}

DEFAULT_CATALOG_BASE_URL = "https://services.mtps.microsoft.com/serviceapi/"
DEFAULT_PACKAGES_BASE_URL = "https://packages.mtps.microsoft.com/"


class AppConfig(BaseModel):
    """A validated configuration model for the application."""

    # Catalog selection
    cache_directory: str
    vs_version: str = "visualstudio11"
    locale: str = ""

    # Transport
    catalog_base_url: str = DEFAULT_CATALOG_BASE_URL
    packages_base_url: str = DEFAULT_PACKAGES_BASE_URL
    max_attempts: int = 3

    # Optional forward proxy
    proxy_address: str = ""
    proxy_login: str = ""
    proxy_password: str = ""
    proxy_domain: str = ""

    # Internal fields not loaded from INI file
    config_path: str = Field(..., repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("cache_directory")
    @classmethod
    def validate_cache_directory(cls, v: str) -> str:
        if not v:
            raise ValueError("Cache directory cannot be empty.")
        return v

    @field_validator("vs_version")
    @classmethod
    def validate_vs_version(cls, v: str) -> str:
        """Ensures the version is one the help service publishes."""
        v = v.lower()
        if v not in VS_VERSIONS:
            raise ValueError(
                f"Visual Studio version must be one of: {', '.join(VS_VERSIONS)}."
            )
        return v

    @field_validator("max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("Max attempts must be between 1 and 10.")
        return v

    @field_validator("catalog_base_url", "packages_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Base URLs are joined with relative links, so they need a trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Base URL must be an http(s) URL, but got: {v}")
        if not v.endswith("/"):
            v += "/"
        return v

    @model_validator(mode="after")
    def validate_proxy(self) -> "AppConfig":
        """Checks that proxy credentials are only given together with an address."""
        has_credentials = bool(self.proxy_login or self.proxy_password)
        if has_credentials and not self.proxy_address:
            raise ValueError("Proxy credentials require 'proxy_address' to be set.")
        if self.proxy_address and not self.proxy_address.startswith(
            ("http://", "https://")
        ):
            raise ValueError(
                f"Proxy address must be an http(s) URL, but got: {self.proxy_address}"
            )
        return self

    @property
    def proxy_user(self) -> str:
        """The proxy login, qualified with the domain when one is configured."""
        if self.proxy_domain and self.proxy_login:
            return f"{self.proxy_domain}\\{self.proxy_login}"
        return self.proxy_login

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}
