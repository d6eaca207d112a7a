"""Environment variable provider."""

import logging
import os
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .. import maps

logger = logging.getLogger(__name__)

EnvCallback = Callable[[str, str], Tuple[str, Any]]


def key_mapper(prefix: str, separator: str = "__", delim: str = ".") -> EnvCallback:
    """Build a callback turning ``APP_SERVER__PORT`` into ``server.port``.

    Args:
        prefix: Prefix stripped from every variable name  # (e.g., "APP_")
        separator: Marker in variable names that separates nesting levels
        delim: Key path delimiter replacing the separator

    Returns:
        Callback for :class:`EnvProvider`
    """

    def _map(key: str, value: str) -> Tuple[str, Any]:
        name = key[len(prefix) :] if key.startswith(prefix) else key
        return name.lower().replace(separator, delim), value

    return _map


class EnvProvider:
    """Provider reading environment variables into a tree."""

    def __init__(
        self,
        prefix: str = "",
        delim: str = ".",
        callback: Optional[EnvCallback] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """Initialize environment provider.

        Args:
            prefix: Only variables starting with this prefix are read
            delim: Delimiter splitting (transformed) variable names into key paths
            callback: Maps ``(name, value)`` to ``(key path, value)``; an empty key path skips the variable
            environ: Variables to read instead of ``os.environ``
        """
        self.prefix = prefix
        self.delim = delim
        self.callback = callback
        self.environ = environ

    def read(self) -> Dict[str, Any]:
        """Collect matching variables and nest them on the delimiter.

        Raises:
            StructuralConflictError: If two variables imply incompatible structure  # (e.g., A and A.B)
        """
        source = os.environ if self.environ is None else self.environ
        flat: Dict[str, Any] = {}

        for name in sorted(source):
            if not name.startswith(self.prefix):
                continue
            key, value = name, source[name]
            if self.callback is not None:
                key, value = self.callback(key, value)
            if not key:
                continue
            flat[key] = value

        logger.debug("Read %d environment variables with prefix %r", len(flat), self.prefix)
        return maps.unflatten(flat, self.delim)
