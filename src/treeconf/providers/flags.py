"""Command line flag provider built on ``argparse``."""

import argparse
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from .. import maps

if TYPE_CHECKING:
    from ..config import Config

logger = logging.getLogger(__name__)


class ArgparseProvider:
    """Provider reading the values of a parsed ``argparse.Namespace``.

    Destinations may contain the delimiter, so ``--server.port`` is loaded at
    ``server.port``.
    """

    def __init__(
        self,
        namespace: argparse.Namespace,
        delim: str = ".",
        parser: Optional[argparse.ArgumentParser] = None,
        config: Optional["Config"] = None,
    ):
        """Initialize flag provider.

        Args:
            namespace: Parsed command line arguments
            delim: Delimiter splitting destinations into key paths
            parser: Parser that produced the namespace; enables default detection
            config: Configuration already loaded from other sources  # (defaults never shadow its keys)
        """
        self.namespace = namespace
        self.delim = delim
        self.parser = parser
        self.config = config

    def read(self) -> Dict[str, Any]:
        """Collect flag values into a tree.

        Flags left at ``None`` are skipped. When a parser is known, a flag still
        at its default value is only loaded if ``config`` does not already hold
        that key path.
        """
        flat: Dict[str, Any] = {}

        for dest, value in sorted(vars(self.namespace).items()):
            if value is None:
                continue
            if self._is_default(dest, value) and self.config is not None and self.config.exists(dest):
                continue
            flat[dest] = value

        logger.debug("Read %d command line flags", len(flat))
        return maps.unflatten(flat, self.delim)

    def _is_default(self, dest: str, value: Any) -> bool:
        """Check whether a flag still holds its parser default."""
        if self.parser is None:
            return False
        return value == self.parser.get_default(dest)
