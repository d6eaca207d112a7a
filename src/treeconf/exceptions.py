"""Custom exceptions for treeconf."""

from dataclasses import dataclass
from textwrap import dedent
from typing import Any, List


class TreeConfError(Exception):
    """Base exception for treeconf errors."""

    pass


class LoadError(TreeConfError):
    """Raised when a load call cannot produce a configuration tree."""

    pass


class SourceError(LoadError):
    """Raised when a provider fails to read its source."""

    pass


class DecodeError(LoadError):
    """Raised when a parser cannot turn bytes into a configuration tree."""

    pass


class UsageError(TreeConfError):
    """Raised when a provider and parser are combined in a way that cannot work."""

    pass


class UnsupportedFormatError(TreeConfError):
    """Raised when no parser is registered for a file suffix."""

    pass


class StructuralConflictError(TreeConfError):
    """Raised when two parts of a tree imply incompatible structure at one key path."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Structural conflict at '{path}': {reason}")


class CoercionError(TreeConfError, ValueError):
    """Raised when a value cannot be converted to the requested type."""

    def __init__(self, value: Any, target: str, path: str = ""):
        self.value = value
        self.target = target
        self.path = path
        location = f" at '{path}'" if path else ""
        super().__init__(f"Cannot convert {value!r} ({type(value).__name__}) to {target}{location}")


@dataclass
class FieldError:
    """Represents a single field that could not be decoded."""

    field: str
    expected_type: Any
    actual_value: Any
    reason: str = "Type mismatch"

    def format_error_message(self) -> str:
        """Format error message for a field decode failure.

        Returns:
            Formatted error message string
        """
        expected_str = self._format_type(self.expected_type)

        # Long nested values are not useful in an error listing
        if isinstance(self.actual_value, (dict, list)):
            actual_value_str = "..."
        else:
            actual_value_str = repr(self.actual_value)

        return dedent(f"""\
            ❌ {self.reason}
            Field: {self.field}
            Expected: {expected_str}
            Actual: {actual_value_str} ({type(self.actual_value).__name__})\
            """).strip()

    def _format_type(self, type_obj: Any) -> str:
        """Format type object for display.

        Args:
            type_obj: Type object to format

        Returns:
            Formatted type string
        """
        # Generic aliases (List[int], Optional[str], ...) print well already
        if getattr(type_obj, "__origin__", None) is not None:
            return str(type_obj).replace("typing.", "")

        if type_obj in (int, float, str, bool, bytes):
            return type_obj.__name__

        if hasattr(type_obj, "__name__") and hasattr(type_obj, "__module__"):
            if type_obj.__module__ == "builtins":
                return type_obj.__name__
            return f"{type_obj.__module__}.{type_obj.__name__}"

        return str(type_obj)


class UnmarshalError(TreeConfError):
    """Raised when a sub-tree cannot be decoded into the target type."""

    def __init__(self, errors: List[FieldError]):
        """Initialize unmarshal error.

        Args:
            errors: List of field errors
        """
        self.errors = errors
        error_messages = []

        for error in errors:
            error_messages.append(error.format_error_message())

        super().__init__("\n\n".join(error_messages))
