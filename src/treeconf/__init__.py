"""treeconf - hierarchical configuration merged from many sources.

Loads configuration fragments from files, environment variables, command line
flags, byte buffers and in-memory maps, in any supported format, and merges
them into one tree addressed by delimited key paths.
"""
# ruff: noqa: F401

import logging

from .coerce import ZERO_TIME
from .config import Config
from .decode import UnmarshalConf
from .exceptions import (
    CoercionError,
    DecodeError,
    FieldError,
    LoadError,
    SourceError,
    StructuralConflictError,
    TreeConfError,
    UnmarshalError,
    UnsupportedFormatError,
    UsageError,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
