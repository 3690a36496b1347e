"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class VsHelpError(Exception):
    """Base exception for all application-specific errors."""


class InvalidArgumentError(VsHelpError):
    """Raised when a required argument is missing or empty."""


class CatalogParseError(VsHelpError):
    """Raised when a catalog payload is malformed or lacks the expected shape."""


class NetworkError(VsHelpError):
    """Raised when fetching a catalog or downloading a package fails."""


class FilesystemError(VsHelpError):
    """Raised when the cache directory or one of its files cannot be written."""


class IntegrityError(VsHelpError):
    """Raised when a downloaded package fails its signature check."""


class ConfigurationError(VsHelpError):
    """Raised for issues related to configuration loading or validation."""
