"""
Forward proxy settings shared by the catalog client and the package downloader.
"""

from dataclasses import dataclass
from typing import Any

import aiohttp

from vshelp_cli.models.config import AppConfig


@dataclass(frozen=True)
class ProxySettings:
    """An HTTP proxy address with optional credentials."""

    address: str
    login: str = ""
    password: str = ""

    @classmethod
    def from_config(cls, config: AppConfig) -> "ProxySettings | None":
        """Returns the configured proxy, or None when no proxy address is set."""
        if not config.proxy_address:
            return None
        return cls(
            address=config.proxy_address,
            login=config.proxy_user,
            password=config.proxy_password,
        )

    def request_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for aiohttp's request methods."""
        kwargs: dict[str, Any] = {"proxy": self.address}
        if self.login:
            kwargs["proxy_auth"] = aiohttp.BasicAuth(self.login, self.password)
        return kwargs
