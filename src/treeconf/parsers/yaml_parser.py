"""YAML parser."""

import re
from typing import Any, Dict

import yaml


class _ConfigLoader(yaml.SafeLoader):
    """Safe loader that also reads scientific notation without a dot (``1e-4``) as float."""


_ConfigLoader.add_implicit_resolver(
    "tag:yaml.org,2002:float",
    re.compile(r"^[-+]?(?:[0-9][0-9_]*(?:\.[0-9_]*)?|\.[0-9_]+)[eE][-+]?[0-9]+$"),
    list("-+0123456789."),
)


class YAMLParser:
    """Parser for YAML documents."""

    def unmarshal(self, data: bytes) -> Dict[str, Any]:
        """Decode a YAML document; an empty document is an empty tree."""
        result = yaml.load(data, Loader=_ConfigLoader)
        return {} if result is None else result

    def marshal(self, tree: Dict[str, Any]) -> bytes:
        return yaml.safe_dump(tree, default_flow_style=False, indent=2, sort_keys=False, allow_unicode=True).encode(
            "utf-8"
        )


def load_value(text: str) -> Any:
    """Read a single value written in YAML, e.g. a command line override such as ``8080`` or ``[a, b]``."""
    return yaml.load(text, Loader=_ConfigLoader)
