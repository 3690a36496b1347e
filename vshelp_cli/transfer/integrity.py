"""
Provides methods for checking the integrity of downloaded package files.
"""

import logging
import os
import struct

log = logging.getLogger(__name__)

CABINET_SIGNATURE = b"MSCF"
# signature, reserved, total cabinet size (little endian)
_CABINET_HEADER = struct.Struct("<4sII")


class FileIntegrityChecker:
    """A collection of static methods for validating package file integrity."""

    @staticmethod
    def check_cabinet(filepath: str | os.PathLike) -> bool:
        """
        Performs a structural check on a Microsoft Cabinet file.

        The file must start with the 'MSCF' signature and the cabinet size
        declared in its header must equal the size of the file on disk, which
        catches truncated transfers and error pages saved in place of a package.

        Args:
            filepath: Path to the cabinet file.

        Returns:
            True if the file appears to be a complete cabinet, False otherwise.
        """
        try:
            with open(filepath, "rb") as f:
                header = f.read(_CABINET_HEADER.size)
            file_size = os.path.getsize(filepath)
        except OSError as e:
            log.debug(f"Cabinet check failed for '{filepath}' with error: {e}")
            return False

        if len(header) < _CABINET_HEADER.size:
            log.warning(f"Cabinet integrity check failed for '{filepath}': File too short.")
            return False

        signature, _, declared_size = _CABINET_HEADER.unpack(header)
        if signature != CABINET_SIGNATURE:
            log.warning(
                f"Cabinet integrity check failed for '{filepath}': Missing MSCF signature."
            )
            return False
        if declared_size != file_size:
            log.warning(
                f"Cabinet integrity check failed for '{filepath}': Header declares "
                f"{declared_size} bytes but the file has {file_size}."
            )
            return False
        return True
