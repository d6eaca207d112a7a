"""Nested-map utilities: merging, flattening and path traversal of configuration trees.

Every function here works on plain ``dict`` trees whose leaves are scalars or
lists. Nothing in this module logs or keeps state.
"""

from copy import deepcopy
from typing import Any, Dict, List, Tuple

from .exceptions import StructuralConflictError


def split_path(path: str, delim: str) -> List[str]:
    """Split a key path into its segments.

    Args:
        path: Key path  # (e.g., "parent.child.name")
        delim: Path delimiter; an empty delimiter means the path is a single segment

    Returns:
        List of path segments
    """
    if not delim:
        return [path]
    return path.split(delim)


def copy(tree: Dict[str, Any]) -> Dict[str, Any]:
    """Deep copy a tree so the result shares no mutable node with the input."""
    return deepcopy(tree)


def stringify_keys(value: Any, delim: str = ".", _prefix: str = "") -> Any:
    """Recursively convert non-string map keys to strings.

    Decoders such as YAML accept ``1: one`` and produce integer keys; key paths
    are strings, so every key is normalized before it enters a tree.

    Args:
        value: Any decoded value  # (dict, list or scalar)
        delim: Path delimiter used in error messages

    Returns:
        The same structure with string keys at every level

    Raises:
        StructuralConflictError: If two keys of one map normalize to the same string  # (e.g., 1 and "1")
    """
    if isinstance(value, dict):
        result: Dict[str, Any] = {}
        for k, v in value.items():
            key = k if isinstance(k, str) else _key_to_str(k)
            path = f"{_prefix}{delim}{key}" if _prefix else key
            if key in result:
                raise StructuralConflictError(path, f"key {k!r} collides with another key as {key!r}")
            result[key] = stringify_keys(v, delim, path)
        return result
    elif isinstance(value, list):
        return [stringify_keys(item, delim, _prefix) for item in value]
    return value


def _key_to_str(key: Any) -> str:
    if isinstance(key, bool):
        return "true" if key else "false"
    return str(key)


def merge(src: Dict[str, Any], dest: Dict[str, Any]) -> None:
    """Merge ``src`` into ``dest`` in place, with ``src`` taking precedence.

    Nested dicts present on both sides are merged recursively. Any other
    collision (scalars, lists, a dict meeting a non-dict) is resolved by
    replacing the ``dest`` value with the ``src`` value. Keys only present in
    ``dest`` are left untouched.

    Args:
        src: Incoming tree  # (overrides and additions)
        dest: Existing tree  # (modified in place)
    """
    for key, value in src.items():
        if key in dest and isinstance(dest[key], dict) and isinstance(value, dict):
            merge(value, dest[key])
        else:
            # Lists are replaced wholesale, never concatenated
            dest[key] = deepcopy(value)


def merge_strict(src: Dict[str, Any], dest: Dict[str, Any], delim: str = ".", _prefix: str = "") -> None:
    """Merge ``src`` into ``dest`` in place, refusing to change the kind of a value.

    Behaves like :func:`merge`, except that a key present on both sides whose
    values have different types raises. ``dest`` may be partially updated
    when this raises, so callers merge into a copy.

    Args:
        src: Incoming tree
        dest: Existing tree  # (modified in place)
        delim: Delimiter used to render the conflicting key path

    Raises:
        StructuralConflictError: If a key holds values of different types on the two sides
    """
    for key, value in src.items():
        full_key = f"{_prefix}{delim}{key}" if _prefix else key
        if key not in dest:
            dest[key] = deepcopy(value)
            continue

        existing = dest[key]
        if _kind(existing) != _kind(value):
            raise StructuralConflictError(
                full_key, f"incoming {_kind(value)} cannot replace existing {_kind(existing)}"
            )

        if isinstance(value, dict):
            merge_strict(value, existing, delim, full_key)
        else:
            dest[key] = deepcopy(value)


def _kind(value: Any) -> str:
    if isinstance(value, dict):
        return "map"
    if isinstance(value, list):
        return "list"
    return type(value).__name__


def flatten(
    tree: Dict[str, Any], delim: str, flatten_slices: bool = False
) -> Tuple[Dict[str, Any], Dict[str, List[str]]]:
    """Flatten a tree into a path -> leaf mapping.

    Args:
        tree: Nested configuration tree
        delim: Delimiter joining path segments; an empty delimiter does not descend
        flatten_slices: Address list elements by their index instead of treating lists as leaves

    Returns:
        Tuple of (flat map, key map)  # (flat: "a.b.c" -> value, key map: "a.b" -> ["a", "a.b"])
    """
    flat: Dict[str, Any] = {}
    key_map: Dict[str, List[str]] = {}

    if not delim:
        for key, value in tree.items():
            flat[key] = value
            key_map[key] = [key]
        return flat, key_map

    def _walk(node: Any, segments: List[str]) -> None:
        """Visit one node, recording it as a leaf or descending into it.

        Args:
            node: Current node  # (dict, list or scalar)
            segments: Path segments from the root to this node
        """
        if isinstance(node, dict) and node:
            children = node.items()
        elif flatten_slices and isinstance(node, list) and node:
            children = ((str(i), item) for i, item in enumerate(node))
        else:
            # Scalars, lists and empty dicts are leaves
            path = delim.join(segments)
            flat[path] = node
            _add_key_parts(key_map, segments, delim)
            return

        for key, value in children:
            _walk(value, segments + [key])

    for key, value in tree.items():
        _walk(value, [key])

    return flat, key_map


def _add_key_parts(key_map: Dict[str, List[str]], segments: List[str], delim: str) -> None:
    """Register every prefix of a leaf path in the key map."""
    prefixes = [delim.join(segments[: i + 1]) for i in range(len(segments))]
    for i, prefix in enumerate(prefixes):
        if prefix not in key_map:
            key_map[prefix] = prefixes[: i + 1]


def unflatten(flat: Dict[str, Any], delim: str) -> Dict[str, Any]:
    """Build a nested tree from a path -> value mapping.

    Args:
        flat: Flat mapping  # (e.g., {"parent.child": 1})
        delim: Delimiter splitting keys into segments; an empty delimiter keeps keys as they are

    Returns:
        Nested tree  # (e.g., {"parent": {"child": 1}})

    Raises:
        StructuralConflictError: If one key ends where another key needs to descend
    """
    tree: Dict[str, Any] = {}

    for key, value in flat.items():
        segments = split_path(key, delim)
        current = tree

        # Descend, creating intermediate maps as needed
        for depth, segment in enumerate(segments[:-1]):
            if segment not in current:
                current[segment] = {}
            elif not isinstance(current[segment], dict):
                raise StructuralConflictError(
                    delim.join(segments[: depth + 1]), f"a value is stored here but '{key}' descends further"
                )
            current = current[segment]

        last = segments[-1]
        if last in current:
            if isinstance(current[last], dict) and isinstance(value, dict):
                merge(value, current[last])
                continue
            raise StructuralConflictError(key, "the path is already occupied by another key")
        current[last] = deepcopy(value)

    return tree


def search(tree: Dict[str, Any], segments: List[str]) -> Any:
    """Resolve path segments against a tree.

    Args:
        tree: Nested configuration tree
        segments: Path segments  # (e.g., ["parent", "child"])

    Returns:
        Value at the path (not copied)

    Raises:
        KeyError: If any segment does not resolve
    """
    current: Any = tree

    for segment in segments:
        if not isinstance(current, dict) or segment not in current:
            raise KeyError(segment)
        current = current[segment]

    return current


def delete(tree: Dict[str, Any], segments: List[str]) -> None:
    """Delete the value at a path and prune parents left empty by the removal.

    Missing paths are ignored.

    Args:
        tree: Nested configuration tree  # (modified in place)
        segments: Path segments of the key to remove
    """
    if not segments:
        return

    head, rest = segments[0], segments[1:]
    if head not in tree:
        return

    if not rest:
        del tree[head]
        return

    child = tree[head]
    if isinstance(child, dict):
        delete(child, rest)
        if not child:
            del tree[head]
