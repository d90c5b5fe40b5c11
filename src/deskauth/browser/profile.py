"""Browser profile housekeeping."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from deskauth.client.models.errors import ParameterValidationError

logger = logging.getLogger(__name__)


def clear_profile_directory(profile_directory: str | Path) -> bool:
    """Delete an embedded browser user-data directory.

    The next surface created with this directory starts without cookies or
    cached sign-in sessions. The host must have closed every surface using
    the directory first.

    Returns:
        True if a directory was removed, False if there was nothing to clear

    Raises:
        ParameterValidationError: If the path exists but is not a directory
    """
    path = Path(profile_directory)
    if not path.exists():
        logger.debug(f"Browser profile {path} does not exist, nothing to clear")
        return False
    if not path.is_dir():
        raise ParameterValidationError(f"Browser profile path is not a directory: {path}")

    shutil.rmtree(path)
    logger.info(f"Cleared browser profile {path}")
    return True
