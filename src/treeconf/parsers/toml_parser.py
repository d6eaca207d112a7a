"""TOML parser."""

import tomllib
from typing import Any, Dict

import tomli_w


class TOMLParser:
    """Parser for TOML documents, read with tomllib and written with tomli-w."""

    def unmarshal(self, data: bytes) -> Dict[str, Any]:
        return tomllib.loads(data.decode("utf-8"))

    def marshal(self, tree: Dict[str, Any]) -> bytes:
        """Encode a tree as TOML.

        Raises:
            TypeError: If the tree holds a value TOML cannot express  # (e.g., None)
        """
        return tomli_w.dumps(tree).encode("utf-8")
