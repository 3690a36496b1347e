"""
Catalog API Layer.

This package handles all communication with the help catalog service.
"""

from .client import CatalogClient
from .proxy import ProxySettings

__all__ = ["CatalogClient", "ProxySettings"]
