"""In-memory map provider."""

import logging
from typing import Any, Dict

from .. import maps

logger = logging.getLogger(__name__)


class ConfmapProvider:
    """Provider handing over a dict, optionally written with flat key paths."""

    def __init__(self, mapping: Dict[str, Any], delim: str = ""):
        """Initialize map provider.

        Args:
            mapping: Configuration data  # (nested, or flat like {"server.port": 80} when delim is set)
            delim: Delimiter used to unflatten keys  # (empty string: mapping is already nested)
        """
        self.mapping = maps.copy(mapping)
        self.delim = delim

    def read(self) -> Dict[str, Any]:
        """Return a copy of the mapping, unflattened when a delimiter was given.

        Raises:
            StructuralConflictError: If flat keys imply incompatible structure
        """
        if self.delim:
            tree = maps.unflatten(self.mapping, self.delim)
        else:
            tree = maps.copy(self.mapping)
        logger.debug("Providing %d top-level keys from a map", len(tree))
        return tree
