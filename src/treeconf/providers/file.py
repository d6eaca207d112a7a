"""File provider."""

import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class FileProvider:
    """Provider reading the raw content of a file."""

    def __init__(self, path: Union[str, Path]):
        """Initialize file provider.

        Args:
            path: Path of the configuration file
        """
        self.path = Path(path)

    def read_bytes(self) -> bytes:
        """Read the whole file.

        Returns:
            File content

        Raises:
            OSError: If the file cannot be read
        """
        data = self.path.read_bytes()
        logger.debug("Read %d bytes from %s", len(data), self.path)
        return data

    def __repr__(self) -> str:
        return f"FileProvider({str(self.path)!r})"
