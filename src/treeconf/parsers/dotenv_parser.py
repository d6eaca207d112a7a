"""Dotenv parser built on python-dotenv."""

import io
import re
from typing import Any, Dict, List

from dotenv import dotenv_values

from .. import coerce, maps
from ..exceptions import CoercionError

_NEEDS_QUOTES = re.compile(r"[\s#\"'\\]")


def _format_value(value: Any) -> str:
    """Render one leaf as a dotenv value, quoting it when the raw form would not read back."""
    if value is None:
        return ""
    try:
        text = coerce.to_str(value)
    except CoercionError:
        # Empty maps and lists survive flattening as leaves
        text = ""

    if not _NEEDS_QUOTES.search(text):
        return text
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


class DotenvParser:
    """Parser for ``KEY=value`` files."""

    def __init__(self, delim: str = ""):
        """Initialize dotenv parser.

        Args:
            delim: Delimiter splitting variable names into key paths  # (empty string: keep names flat)
        """
        self.delim = delim

    def unmarshal(self, data: bytes) -> Dict[str, Any]:
        """Decode a dotenv document; variables declared without a value are skipped."""
        values = dotenv_values(stream=io.StringIO(data.decode("utf-8")), interpolate=False)
        flat = {key: value for key, value in values.items() if value is not None}
        return maps.unflatten(flat, self.delim)

    def marshal(self, tree: Dict[str, Any]) -> bytes:
        """Encode a tree as ``KEY=value`` lines, addressing list elements by index."""
        flat, _ = maps.flatten(tree, self.delim or ".", flatten_slices=True)
        lines: List[str] = []

        for key in sorted(flat):
            lines.append(f"{key}={_format_value(flat[key])}")

        return "".join(f"{line}\n" for line in lines).encode("utf-8")
