"""treeconf configuration object module."""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from . import coerce, maps
from .decode import UnmarshalConf, unmarshal
from .exceptions import CoercionError, DecodeError, SourceError, UsageError
from .interfaces import BytesProvider, Marshaller, Parser, TreeProvider

_MISSING = object()


class Config:
    """Configuration tree merged from any number of sources and addressed by key paths.

    A ``Config`` performs no locking: callers that mutate one instance from
    several threads must serialize access themselves, and hand other threads
    an independent snapshot with :meth:`copy` or :meth:`cut`.
    """

    def __init__(self, delim: str = ".", strict_merge: bool = False):
        """Initialize an empty configuration.

        Args:
            delim: Key path delimiter  # (empty string: paths are never split)
            strict_merge: Refuse merges that change the type of an existing value
        """
        self._delim = delim
        self._strict_merge = strict_merge
        self._tree: Dict[str, Any] = {}

    @property
    def delim(self) -> str:
        """Key path delimiter of this instance."""
        return self._delim

    @property
    def strict_merge(self) -> bool:
        """Whether merges refuse to change the type of existing values."""
        return self._strict_merge

    # Loading and merging

    def load(self, provider: Any, parser: Optional[Parser] = None) -> None:
        """Load one source and merge it into the tree.

        Without a parser the provider must hand over a ready tree (``read()``);
        with a parser the provider's bytes (``read_bytes()``) are decoded first.
        The tree is left untouched unless the whole call succeeds.

        Args:
            provider: Source of configuration  # (BytesProvider or TreeProvider)
            parser: Format decoder for byte providers

        Raises:
            UsageError: If the provider does not support the requested mode
            SourceError: If the provider fails to read
            DecodeError: If the parser fails or the result is not a mapping
            StructuralConflictError: If two keys of one map convert to the same string key
        """
        if parser is None:
            if not isinstance(provider, TreeProvider):
                raise UsageError(f"{type(provider).__name__} only provides bytes; a parser is required")
            try:
                data = provider.read()
            except Exception as e:
                raise SourceError(f"{type(provider).__name__} failed to read: {e}") from e
        else:
            if not isinstance(provider, BytesProvider):
                raise UsageError(f"{type(provider).__name__} provides a tree; it cannot be used with a parser")
            try:
                raw = provider.read_bytes()
            except Exception as e:
                raise SourceError(f"{type(provider).__name__} failed to read: {e}") from e
            try:
                data = parser.unmarshal(raw)
            except Exception as e:
                raise DecodeError(f"{type(parser).__name__} failed to decode: {e}") from e

        if not isinstance(data, dict):
            raise DecodeError(f"Configuration root must be a mapping, got {type(data).__name__}")

        self._merge_tree(maps.stringify_keys(data, self._delim))

    def merge(self, other: Config) -> None:
        """Merge another configuration into this one, with ``other`` taking precedence."""
        self._merge_tree(other._tree)

    def merge_at(self, other: Config, path: str) -> None:
        """Merge another configuration under a key path of this one.

        Args:
            other: Configuration to merge
            path: Key path to merge at  # (empty string merges at the root)
        """
        if not path:
            self.merge(other)
            return
        self._merge_tree(self._nest(path, other._tree))

    def set(self, path: str, value: Any) -> None:
        """Set a value at a key path, creating intermediate maps as needed.

        Args:
            path: Key path  # (e.g., "server.port")
            value: Value to store  # (dicts are merged into an existing map at the same path)
        """
        value = maps.stringify_keys(value, self._delim)
        if not path:
            if not isinstance(value, dict):
                raise UsageError("Only a mapping can be set at the root")
            self._merge_tree(value)
            return
        self._merge_tree(self._nest(path, value))

    def delete(self, path: str) -> None:
        """Delete a key path and prune maps left empty; the empty path clears everything."""
        if not path:
            self._tree = {}
            return
        maps.delete(self._tree, maps.split_path(path, self._delim))

    def _merge_tree(self, incoming: Dict[str, Any]) -> None:
        """Fold a tree into the owned tree according to the merge policy."""
        if self._strict_merge:
            # Merge into a copy so a conflict leaves the current tree as it was
            merged = maps.copy(self._tree)
            maps.merge_strict(incoming, merged, self._delim or ".")
            self._tree = merged
        else:
            maps.merge(incoming, self._tree)

    def _nest(self, path: str, value: Any) -> Dict[str, Any]:
        """Wrap a value into nested maps following a key path."""
        result = value
        for segment in reversed(maps.split_path(path, self._delim)):
            result = {segment: result}
        return result

    # Path index

    def keys(self) -> List[str]:
        """Return every leaf key path, sorted."""
        flat, _ = maps.flatten(self._tree, self._delim)
        return sorted(flat)

    def key_map(self) -> Dict[str, List[str]]:
        """Return every key path prefix mapped to its own prefixes.

        Returns:
            Key map  # (e.g., "a.b" -> ["a", "a.b"])
        """
        _, key_map = maps.flatten(self._tree, self._delim)
        return {key: key_map[key] for key in sorted(key_map)}

    def all(self) -> Dict[str, Any]:
        """Return a flat copy of the tree keyed by full key paths."""
        flat, _ = maps.flatten(self._tree, self._delim)
        return {key: deepcopy(flat[key]) for key in sorted(flat)}

    def raw(self) -> Dict[str, Any]:
        """Return a deep copy of the nested tree."""
        return maps.copy(self._tree)

    def map_keys(self, path: str) -> List[str]:
        """Return the sorted child keys of the map at a key path, or an empty list."""
        value = self._lookup(path, _MISSING)
        if not isinstance(value, dict):
            return []
        return sorted(value)

    def sprint(self) -> str:
        """Render the flattened tree as ``key -> value`` lines."""
        lines = [f"{key} -> {value}" for key, value in self.all().items()]
        return "".join(f"{line}\n" for line in lines)

    def print(self) -> None:
        """Print the flattened tree as ``key -> value`` lines."""
        print(self.sprint(), end="")

    # Accessors

    def _lookup(self, path: str, default: Any = None) -> Any:
        """Resolve a key path without copying.

        Args:
            path: Key path  # (empty string addresses the root)
            default: Value returned when the path does not resolve

        Returns:
            Stored value or default
        """
        if not path:
            return self._tree
        try:
            return maps.search(self._tree, maps.split_path(path, self._delim))
        except KeyError:
            return default

    def get(self, path: str) -> Any:
        """Return a copy of the value at a key path, or ``None`` when absent."""
        return deepcopy(self._lookup(path))

    def exists(self, path: str) -> bool:
        """Check whether a key path resolves to a value."""
        return self._lookup(path, _MISSING) is not _MISSING

    def __getitem__(self, path: str) -> Any:
        """Dict-style getter with support for key paths."""
        value = self._lookup(path, _MISSING)
        if value is _MISSING:
            raise KeyError(path)
        return deepcopy(value)

    def __contains__(self, path: str) -> bool:
        """Dict-style contains check with support for key paths."""
        return self.exists(path)

    def __len__(self) -> int:
        return len(maps.flatten(self._tree, self._delim)[0])

    def _typed(self, path: str, convert: Callable[[Any], Any], zero: Any) -> Any:
        """Resolve a key path and convert it, falling back to the zero value."""
        value = self._lookup(path, _MISSING)
        if value is _MISSING:
            return zero
        try:
            return convert(value)
        except CoercionError:
            return zero

    def string(self, path: str) -> str:
        """Return the value at a key path as ``str``, or ``""``."""
        return self._typed(path, coerce.to_str, "")

    def strings(self, path: str) -> List[str]:
        """Return the list at a key path as ``str`` values, dropping elements that do not convert."""
        return coerce.to_list(self._lookup(path), coerce.to_str)

    def string_map(self, path: str) -> Dict[str, str]:
        """Return the map at a key path with ``str`` values."""
        return coerce.to_map(self._lookup(path), coerce.to_str)

    def strings_map(self, path: str) -> Dict[str, List[str]]:
        """Return the map at a key path with list-of-``str`` values."""
        value = self._lookup(path)
        if not isinstance(value, dict):
            return {}
        return {key: coerce.to_list(item, coerce.to_str) for key, item in value.items() if isinstance(item, list)}

    def int(self, path: str) -> int:
        """Return the value at a key path as ``int``, or ``0``."""
        return self._typed(path, coerce.to_int, 0)

    def ints(self, path: str) -> List[int]:
        return coerce.to_list(self._lookup(path), coerce.to_int)

    def int_map(self, path: str) -> Dict[str, int]:
        return coerce.to_map(self._lookup(path), coerce.to_int)

    def int64(self, path: str) -> int:
        """Same as :meth:`int`; Python integers are unbounded."""
        return self.int(path)

    def int64s(self, path: str) -> List[int]:
        return self.ints(path)

    def int64_map(self, path: str) -> Dict[str, int]:
        return self.int_map(path)

    def float64(self, path: str) -> float:
        """Return the value at a key path as ``float``, or ``0.0``."""
        return self._typed(path, coerce.to_float, 0.0)

    def float64s(self, path: str) -> List[float]:
        return coerce.to_list(self._lookup(path), coerce.to_float)

    def float64_map(self, path: str) -> Dict[str, float]:
        return coerce.to_map(self._lookup(path), coerce.to_float)

    def bool(self, path: str) -> bool:
        """Return the value at a key path as ``bool``, or ``False``."""
        return self._typed(path, coerce.to_bool, False)

    def bools(self, path: str) -> List[bool]:
        return coerce.to_list(self._lookup(path), coerce.to_bool)

    def bool_map(self, path: str) -> Dict[str, bool]:
        return coerce.to_map(self._lookup(path), coerce.to_bool)

    def duration(self, path: str) -> timedelta:
        """Return the value at a key path as ``timedelta``; numbers are seconds.

        Strings such as ``"1h30m"`` or ``"250ms"`` are parsed with the usual
        duration units (``ns``, ``us``, ``ms``, ``s``, ``m``, ``h``).
        """
        return self._typed(path, coerce.to_duration, timedelta(0))

    def time(self, path: str, layout: str = "") -> datetime:
        """Return the value at a key path as ``datetime``.

        Args:
            path: Key path
            layout: ``strptime`` format for string values  # (ISO-8601 when empty)

        Returns:
            Parsed datetime, or ``ZERO_TIME``  # (numbers are Unix epoch seconds in UTC)
        """
        return self._typed(path, lambda value: coerce.to_time(value, layout), coerce.ZERO_TIME)

    def bytes(self, path: str) -> bytes:
        """Return the value at a key path as ``bytes``, or ``b""``."""
        return self._typed(path, coerce.to_bytes, b"")

    # Strict accessors

    def _must(self, path: str, convert: Callable[[Any], Any]) -> Any:
        """Resolve a key path and convert it, raising instead of defaulting.

        Raises:
            KeyError: If the path does not exist
            CoercionError: If the value cannot be converted
        """
        value = self._lookup(path, _MISSING)
        if value is _MISSING:
            raise KeyError(path)
        try:
            return convert(value)
        except CoercionError as e:
            raise CoercionError(value, e.target, path) from None

    def _must_list(self, path: str, convert: Callable[[Any], Any]) -> List[Any]:
        def _convert_all(value: Any) -> List[Any]:
            if not isinstance(value, list):
                raise CoercionError(value, "list")
            return [convert(item) for item in value]

        return self._must(path, _convert_all)

    def must_string(self, path: str) -> str:
        return self._must(path, coerce.to_str)

    def must_strings(self, path: str) -> List[str]:
        return self._must_list(path, coerce.to_str)

    def must_int(self, path: str) -> int:
        return self._must(path, coerce.to_int)

    def must_ints(self, path: str) -> List[int]:
        return self._must_list(path, coerce.to_int)

    def must_int64(self, path: str) -> int:
        return self._must(path, coerce.to_int)

    def must_float64(self, path: str) -> float:
        return self._must(path, coerce.to_float)

    def must_bool(self, path: str) -> bool:
        return self._must(path, coerce.to_bool)

    def must_duration(self, path: str) -> timedelta:
        return self._must(path, coerce.to_duration)

    def must_time(self, path: str, layout: str = "") -> datetime:
        return self._must(path, lambda value: coerce.to_time(value, layout))

    def must_bytes(self, path: str) -> bytes:
        return self._must(path, coerce.to_bytes)

    # Structural operations

    def copy(self) -> Config:
        """Return an independent deep copy of this configuration."""
        clone = Config(delim=self._delim, strict_merge=self._strict_merge)
        clone._tree = maps.copy(self._tree)
        return clone

    def cut(self, path: str) -> Config:
        """Return a new configuration rooted at the map found at a key path.

        Args:
            path: Key path of a map  # (empty string copies the whole tree)

        Returns:
            New configuration  # (empty when the path does not resolve to a map)
        """
        clone = Config(delim=self._delim, strict_merge=self._strict_merge)
        value = self._lookup(path, _MISSING)
        if isinstance(value, dict):
            clone._tree = maps.copy(value)
        return clone

    def slices(self, path: str) -> List[Config]:
        """Return one configuration per map element of the list at a key path."""
        value = self._lookup(path)
        if not isinstance(value, list):
            return []

        result = []
        for item in value:
            if not isinstance(item, dict):
                continue
            child = Config(delim=self._delim, strict_merge=self._strict_merge)
            child._tree = maps.copy(item)
            result.append(child)
        return result

    def marshal(self, parser: Any) -> bytes:
        """Serialize the tree with a parser that supports ``marshal``."""
        if not isinstance(parser, Marshaller):
            raise UsageError(f"{type(parser).__name__} cannot marshal configuration")
        return parser.marshal(self.raw())

    def unmarshal(self, path: str, target: Any, conf: Optional[UnmarshalConf] = None) -> Any:
        """Decode the sub-tree at a key path into an instance of a type.

        Args:
            path: Key path  # (empty string decodes the whole tree)
            target: Target type  # (dataclass, typing annotation or primitive)
            conf: Decoding options  # (field tag, weak typing, flat paths)

        Returns:
            Instance of target

        Raises:
            UnmarshalError: If the sub-tree does not fit the target
        """
        conf = conf or UnmarshalConf()
        data = self._lookup(path, {})

        if conf.flat_paths and isinstance(data, dict):
            data, _ = maps.flatten(data, self._delim)

        return unmarshal(data, target, conf)

    def __repr__(self) -> str:
        """String representation."""
        return f"Config({self._tree})"
