"""treeconf command line interface."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import yaml

from .config import Config
from .exceptions import TreeConfError
from .parsers import JSONParser, YAMLParser, parser_for_path
from .parsers.yaml_parser import load_value
from .providers import EnvProvider, FileProvider
from .providers.env import key_mapper

logger = logging.getLogger(__name__)


class ConfigCLI:
    """Command line front end merging files, overrides and environment variables."""

    def run(self, args: Optional[List[str]] = None) -> int:
        """Parse arguments, build the configuration and print the requested view.

        Args:
            args: Command line arguments (defaults to sys.argv[1:])

        Returns:
            Process exit status  # (0 on success, 1 on configuration errors)
        """
        if args is None:
            args = sys.argv[1:]

        parsed_args = self._parse_command_line(args)
        logging.basicConfig(
            level=logging.DEBUG if parsed_args.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

        try:
            config = self._build_config(parsed_args)
        except TreeConfError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1

        if parsed_args.get is not None:
            if not config.exists(parsed_args.get):
                print(f"error: key path '{parsed_args.get}' not found", file=sys.stderr)
                return 1
            self._print_value(config.get(parsed_args.get))
        elif parsed_args.keys:
            for key in config.keys():
                print(key)
        else:
            self._print_config(config, parsed_args.format)
        return 0

    def _parse_command_line(self, args: List[str]) -> argparse.Namespace:
        """Parse command line arguments.

        Args:
            args: Command line arguments

        Returns:
            Parsed arguments namespace
        """
        parser = argparse.ArgumentParser(prog="treeconf", description="Merge configuration sources into one tree")
        parser.add_argument(
            "sources",
            nargs="*",
            help="Configuration files or overrides in format <key path>=<value in yaml>, applied in order.",
        )
        parser.add_argument("--env", dest="env_prefix", help="Load environment variables starting with this prefix")
        parser.add_argument("--delim", default=".", help="Key path delimiter (default: '.')")
        parser.add_argument("--strict-merge", action="store_true", help="Refuse merges that change a value's type")
        parser.add_argument("--get", metavar="PATH", help="Print the value at a key path")
        parser.add_argument("--keys", action="store_true", help="Print every leaf key path")
        parser.add_argument("--format", choices=["yaml", "json"], default="yaml", help="Output format of the tree")
        parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
        return parser.parse_args(args)

    def _build_config(self, args: argparse.Namespace) -> Config:
        """Build the configuration from sources in order, then the environment.

        Args:
            args: Parsed command line arguments

        Returns:
            Merged configuration
        """
        config = Config(delim=args.delim, strict_merge=args.strict_merge)

        for source in args.sources:
            if "=" in source and not Path(source).is_file():
                key, value_str = source.split("=", 1)
                logger.debug("Override %s=%s", key, value_str)
                config.set(key, load_value(value_str))
            else:
                logger.debug("Loading %s", source)
                config.load(FileProvider(source), parser_for_path(source))

        if args.env_prefix:
            callback = key_mapper(args.env_prefix, "__", args.delim)
            config.load(EnvProvider(prefix=args.env_prefix, delim=args.delim, callback=callback))

        return config

    def _print_value(self, value: Any) -> None:
        """Print one value: scalars as is, containers as YAML."""
        if isinstance(value, (dict, list)):
            print(yaml.safe_dump(value, default_flow_style=False, indent=2, sort_keys=False), end="")
        else:
            print(value)

    def _print_config(self, config: Config, output_format: str) -> None:
        """Print the whole tree.

        Args:
            config: Configuration to print
            output_format: "yaml" or "json"
        """
        parser = JSONParser() if output_format == "json" else YAMLParser()
        print(config.marshal(parser).decode("utf-8").rstrip("\n"))


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point."""
    return ConfigCLI().run(argv)


if __name__ == "__main__":
    sys.exit(main())
