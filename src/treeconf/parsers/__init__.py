"""Configuration parsers: format decoders turning bytes into trees."""

from pathlib import Path
from typing import Any, Dict, Type, Union

from ..exceptions import UnsupportedFormatError
from .dotenv_parser import DotenvParser
from .json_parser import JSONParser
from .toml_parser import TOMLParser
from .yaml_parser import YAMLParser

PARSERS_BY_SUFFIX: Dict[str, Type[Any]] = {
    ".json": JSONParser,
    ".yaml": YAMLParser,
    ".yml": YAMLParser,
    ".toml": TOMLParser,
    ".env": DotenvParser,
}

__all__ = ["DotenvParser", "JSONParser", "PARSERS_BY_SUFFIX", "TOMLParser", "YAMLParser", "parser_for_path"]


def parser_for_path(path: Union[str, Path]) -> Any:
    """Pick a parser from the suffix of a file name.

    Args:
        path: Configuration file path  # (e.g., "config.yaml", ".env")

    Returns:
        Parser instance

    Raises:
        UnsupportedFormatError: If no parser handles the suffix
    """
    path = Path(path)
    # ".env" has no suffix as far as pathlib is concerned
    suffix = ".env" if path.name == ".env" else path.suffix.lower()

    if suffix not in PARSERS_BY_SUFFIX:
        raise UnsupportedFormatError(f"No parser for '{path.name}' (supported: {', '.join(sorted(PARSERS_BY_SUFFIX))})")
    return PARSERS_BY_SUFFIX[suffix]()
