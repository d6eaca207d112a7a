"""Structural decoding of configuration sub-trees into typed Python records."""

import collections.abc
import dataclasses
import inspect
import types
from copy import deepcopy
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence, Union, get_args, get_origin, get_type_hints

from . import coerce
from .exceptions import CoercionError, FieldError, UnmarshalError

_SEQUENCE_ORIGINS = (list, tuple, set, frozenset, collections.abc.Sequence, Sequence)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, Mapping)
_MISSING = object()


@dataclasses.dataclass
class UnmarshalConf:
    """Options for :meth:`treeconf.Config.unmarshal`.

    Attributes:
        tag: Dataclass field metadata key holding the config key name
        weakly_typed: Allow cross-type coercion such as ``"123"`` into an ``int`` field
        flat_paths: Match tags against full delimited paths of the flattened sub-tree

    Without ``weakly_typed`` numbers still widen both ways: an ``int`` fills a
    ``float`` field and a whole ``float`` such as ``3.0`` fills an ``int`` field.
    """

    tag: str = "treeconf"
    weakly_typed: bool = False
    flat_paths: bool = False


class _Invalid(Exception):
    """Internal signal that one value could not be decoded; carries no field path."""

    def __init__(self, reason: str = "Type mismatch"):
        self.reason = reason
        super().__init__(reason)


class RecordDecoder:
    """Decoder mapping nested dicts onto dataclasses and ``typing`` annotations."""

    def __init__(self, tag: str = "treeconf", weakly_typed: bool = False):
        """Initialize decoder.

        Args:
            tag: Dataclass field metadata key naming the config key of a field
            weakly_typed: Enable cross-type coercion of scalar values
        """
        self.tag = tag
        self.weakly_typed = weakly_typed
        self.errors: List[FieldError] = []

    def decode(self, data: Any, target: Any) -> Any:
        """Decode data into an instance of target.

        Args:
            data: Configuration sub-tree  # (dict, list or scalar)
            target: Target type  # (dataclass, typing annotation, primitive)

        Returns:
            Decoded value

        Raises:
            UnmarshalError: If any field fails to decode  # (all failures are reported together)
        """
        self.errors = []
        result = self._decode_value(data, target, "")
        if not self.errors and result is _MISSING:
            self.errors.append(FieldError(field="<root>", expected_type=target, actual_value=data))
        if self.errors:
            raise UnmarshalError(self.errors)
        return result

    def _decode_value(self, value: Any, target: Any, path: str) -> Any:
        """Decode one value, recording a field error and returning ``_MISSING`` on failure."""
        try:
            return self._convert(value, target, path)
        except _Invalid as e:
            self.errors.append(
                FieldError(field=path or "<root>", expected_type=target, actual_value=value, reason=e.reason)
            )
            return _MISSING

    def _convert(self, value: Any, target: Any, path: str) -> Any:
        """Convert a value to target, dispatching on the kind of annotation.

        Raises:
            _Invalid: If the value itself cannot take the target type
        """
        if target is Any or target is object or target is inspect.Parameter.empty:
            return deepcopy(value)

        origin = get_origin(target)

        # Handle both typing.Union and new | syntax
        if origin is Union or isinstance(target, types.UnionType):
            return self._convert_union(value, target, path)

        if origin is Literal:
            return self._convert_literal(value, target)

        if dataclasses.is_dataclass(target) and isinstance(target, type):
            return self._convert_dataclass(value, target, path)

        if origin in _SEQUENCE_ORIGINS or target in _SEQUENCE_ORIGINS:
            return self._convert_sequence(value, target, path)

        if origin in _MAPPING_ORIGINS or target in _MAPPING_ORIGINS:
            return self._convert_mapping(value, target, path)

        if inspect.isclass(target) and issubclass(target, Enum):
            try:
                return target(value)
            except ValueError:
                raise _Invalid() from None

        return self._convert_scalar(value, target)

    def _convert_union(self, value: Any, target: Any, path: str) -> Any:
        args = get_args(target)
        if value is None:
            if type(None) in args:
                return None
            raise _Invalid()

        # First member that accepts the value wins
        for arg in args:
            if arg is type(None):
                continue
            errors_before = len(self.errors)
            try:
                result = self._convert(value, arg, path)
            except _Invalid:
                continue
            if len(self.errors) == errors_before:
                return result
            del self.errors[errors_before:]
        raise _Invalid()

    def _convert_literal(self, value: Any, target: Any) -> Any:
        args = get_args(target)
        if value in args:
            return value
        if self.weakly_typed:
            for arg in args:
                try:
                    if coerce.to_str(arg) == coerce.to_str(value):
                        return arg
                except CoercionError:
                    continue
        raise _Invalid()

    def _convert_dataclass(self, value: Any, target: type, path: str) -> Any:
        if isinstance(value, target):
            return deepcopy(value)
        if self.weakly_typed and isinstance(value, list) and not value:
            value = {}
        if not isinstance(value, dict):
            raise _Invalid()

        hints = get_type_hints(target)
        kwargs: Dict[str, Any] = {}
        ok = True

        for field in dataclasses.fields(target):
            if not field.init:
                continue
            key = field.metadata.get(self.tag, field.name)
            if key == "-":
                continue
            field_path = f"{path}.{key}" if path else key

            if key not in value:
                has_default = (
                    field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING
                )
                if not has_default:
                    self.errors.append(
                        FieldError(
                            field=field_path,
                            expected_type=hints.get(field.name, Any),
                            actual_value=None,
                            reason="Missing field",
                        )
                    )
                    ok = False
                continue

            decoded = self._decode_value(value[key], hints.get(field.name, Any), field_path)
            if decoded is _MISSING:
                ok = False
            else:
                kwargs[field.name] = decoded

        if not ok:
            return _MISSING
        try:
            return target(**kwargs)
        except (TypeError, ValueError) as e:
            # Raised by __post_init__ checks of the record
            self.errors.append(
                FieldError(field=path or "<root>", expected_type=target, actual_value=value, reason=str(e))
            )
            return _MISSING

    def _convert_sequence(self, value: Any, target: Any, path: str) -> Any:
        origin = get_origin(target) or target
        args = get_args(target)

        if isinstance(value, str):
            # Comma-separated strings become lists
            value = [part.strip() for part in value.split(",")] if value else []
        elif not isinstance(value, (list, tuple, set, frozenset)):
            if not self.weakly_typed:
                raise _Invalid()
            value = [value]

        items = list(value)

        # Fixed-size tuples (Tuple[int, str]) decode position by position
        if origin is tuple and args and not (len(args) == 2 and args[1] is Ellipsis):
            if len(args) != len(items):
                raise _Invalid(f"Expected {len(args)} items, got {len(items)}")
            item_types = list(args)
        else:
            item_types = [args[0] if args else Any] * len(items)

        result = []
        for i, (item, item_type) in enumerate(zip(items, item_types)):
            result.append(self._decode_value(item, item_type, f"{path}[{i}]"))

        if any(item is _MISSING for item in result):
            return _MISSING
        if origin in (tuple, set, frozenset):
            return origin(result)
        return result

    def _convert_mapping(self, value: Any, target: Any, path: str) -> Any:
        args = get_args(target)
        key_type, value_type = args if len(args) == 2 else (Any, Any)

        if self.weakly_typed and isinstance(value, list) and not value:
            value = {}
        if not isinstance(value, dict):
            raise _Invalid()

        result = {}
        ok = True
        for key, item in value.items():
            item_path = f"{path}.{key}" if path else key
            try:
                decoded_key = self._convert(key, key_type, item_path)
            except _Invalid:
                self.errors.append(
                    FieldError(field=item_path, expected_type=key_type, actual_value=key, reason="Invalid key")
                )
                ok = False
                continue
            if decoded_key in result:
                self.errors.append(
                    FieldError(field=item_path, expected_type=key_type, actual_value=key, reason="Duplicate key")
                )
                ok = False
                continue
            result[decoded_key] = self._decode_value(item, value_type, item_path)

        if not ok or any(item is _MISSING for item in result.values()):
            return _MISSING
        return result

    def _convert_scalar(self, value: Any, target: Any) -> Any:
        # Durations and timestamps convert from strings and numbers in both modes
        if target is timedelta:
            return self._coerce(coerce.to_duration, value)
        if target is datetime:
            return self._coerce(coerce.to_time, value)

        if target is bool:
            if isinstance(value, bool):
                return value
            return self._weak(coerce.to_bool, value)
        if target is int:
            if isinstance(value, int) and not isinstance(value, bool):
                return value
            if isinstance(value, float) and value.is_integer():
                return int(value)
            return self._weak(coerce.to_int, value)
        if target is float:
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return float(value)
            return self._weak(coerce.to_float, value)
        if target is str:
            if isinstance(value, str):
                return value
            return self._weak(coerce.to_str, value)
        if target is bytes:
            if isinstance(value, bytes):
                return value
            return self._weak(coerce.to_bytes, value)

        if inspect.isclass(target) and isinstance(value, target):
            return deepcopy(value)
        raise _Invalid()

    def _weak(self, convert: Any, value: Any) -> Any:
        if not self.weakly_typed:
            raise _Invalid()
        return self._coerce(convert, value)

    def _coerce(self, convert: Any, value: Any) -> Any:
        try:
            return convert(value)
        except CoercionError:
            raise _Invalid() from None


def unmarshal(data: Any, target: Any, conf: Optional[UnmarshalConf] = None) -> Any:
    """Decode a configuration sub-tree into an instance of target.

    Args:
        data: Configuration sub-tree
        target: Target type  # (dataclass, typing annotation or primitive)
        conf: Decoding options

    Returns:
        Decoded value

    Raises:
        UnmarshalError: If the data does not fit the target
    """
    conf = conf or UnmarshalConf()
    return RecordDecoder(tag=conf.tag, weakly_typed=conf.weakly_typed).decode(data, target)
