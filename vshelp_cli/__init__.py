"""
vshelp-cli: mirrors the offline Visual Studio help catalog into a local cache.
"""

__version__ = "1.0.0"
