"""JSON parser."""

import json
from typing import Any, Dict


class JSONParser:
    """Parser for JSON documents."""

    def unmarshal(self, data: bytes) -> Dict[str, Any]:
        return json.loads(data)

    def marshal(self, tree: Dict[str, Any]) -> bytes:
        # Timestamps decoded from YAML or TOML have no JSON form of their own
        return json.dumps(tree, indent=2, ensure_ascii=False, default=str).encode("utf-8")
