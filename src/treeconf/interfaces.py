"""Contracts between the configuration tree engine and its providers and parsers.

A provider hands over either raw bytes (to be decoded by a parser) or an
already structured tree. The engine only ever talks to these protocols.
"""

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class BytesProvider(Protocol):
    """Source producing raw configuration content."""

    def read_bytes(self) -> bytes:
        """Return the raw content of the source."""
        ...


@runtime_checkable
class TreeProvider(Protocol):
    """Source producing an already structured configuration tree."""

    def read(self) -> Dict[str, Any]:
        """Return the source as a nested dict."""
        ...


@runtime_checkable
class Parser(Protocol):
    """Format decoder turning raw bytes into a configuration tree."""

    def unmarshal(self, data: bytes) -> Dict[str, Any]:
        """Decode raw content into a nested dict."""
        ...


@runtime_checkable
class Marshaller(Protocol):
    """Optional parser capability serializing a tree back into bytes."""

    def marshal(self, tree: Dict[str, Any]) -> bytes:
        """Encode a nested dict."""
        ...
