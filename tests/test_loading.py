"""Test cases for loading and merging sources into a configuration."""

from pathlib import Path

import pytest
from treeconf import Config, DecodeError, SourceError, StructuralConflictError, UsageError
from treeconf.parsers import JSONParser, TOMLParser, YAMLParser
from treeconf.providers import ConfmapProvider, FileProvider, RawBytesProvider


def test_later_loads_override_earlier_loads():
    """Given two trees sharing keys
    When loading them in order
    Then scalars come from the later tree and nested maps are merged
    """
    config = Config()
    config.load(ConfmapProvider({"a": 1, "b": {"x": 1}}))
    config.load(ConfmapProvider({"a": 2, "b": {"y": 2}}))

    assert config.raw() == {"a": 2, "b": {"x": 1, "y": 2}}


def test_incoming_scalar_replaces_loaded_map():
    config = Config()
    config.load(ConfmapProvider({"a": {"x": 1}}))
    config.load(ConfmapProvider({"a": "scalar"}))

    assert config.raw() == {"a": "scalar"}


def test_load_files_in_different_formats(write_yaml_file, write_file):
    """Given YAML, JSON and TOML files
    When loading them one after another
    Then every file contributes and the last one wins on conflicts
    """
    yaml_path = write_yaml_file("base.yaml", {"server": {"host": "localhost", "port": 8080}, "exp": {"seed": 42}})
    json_path = write_file("override.json", '{"server": {"port": 9090, "debug": true}}')
    toml_path = write_file("extra.toml", '[server]\ntimeout = 10\n\n[exp]\nseed = 7\n')

    config = Config()
    config.load(FileProvider(yaml_path), YAMLParser())
    config.load(FileProvider(json_path), JSONParser())
    config.load(FileProvider(toml_path), TOMLParser())

    assert config.get("server.host") == "localhost"
    assert config.get("server.port") == 9090
    assert config.get("server.debug") is True
    assert config.get("server.timeout") == 10
    assert config.get("exp.seed") == 7


def test_load_raw_bytes_with_parser():
    config = Config()
    config.load(RawBytesProvider(b'{"parent": {"child": {"name": "x"}}}'), JSONParser())

    assert config.get("parent.child.name") == "x"


def test_colliding_keys_are_rejected():
    """Given a YAML map with an integer key and the same key as a string
    When loading it
    Then the load fails and keeps both values out of the tree
    """
    config = Config()
    config.load(ConfmapProvider({"a": 1}))

    with pytest.raises(StructuralConflictError):
        config.load(RawBytesProvider(b"ports:\n  1: int\n  '1': str\n"), YAMLParser())

    assert config.raw() == {"a": 1}


def test_decode_failure_leaves_tree_untouched():
    config = Config()
    config.load(ConfmapProvider({"a": 1, "b": {"c": 2}}))
    before = config.raw()

    with pytest.raises(DecodeError) as exc_info:
        config.load(RawBytesProvider(b'{"a": 2, "b": '), JSONParser())

    assert isinstance(exc_info.value.__cause__, ValueError)
    assert config.raw() == before


def test_non_mapping_root_is_a_decode_error():
    config = Config()

    with pytest.raises(DecodeError):
        config.load(RawBytesProvider(b"[1, 2, 3]"), JSONParser())

    assert config.raw() == {}


def test_missing_file_is_a_source_error(temp_dir: Path):
    config = Config()
    config.load(ConfmapProvider({"a": 1}))

    with pytest.raises(SourceError) as exc_info:
        config.load(FileProvider(temp_dir / "missing.yaml"), YAMLParser())

    assert isinstance(exc_info.value.__cause__, FileNotFoundError)
    assert config.raw() == {"a": 1}


def test_failing_tree_provider_is_a_source_error():
    class BrokenProvider:
        def read(self):
            raise PermissionError("denied")

    config = Config()

    with pytest.raises(SourceError, match="denied"):
        config.load(BrokenProvider())


def test_bytes_provider_without_parser_is_a_usage_error():
    with pytest.raises(UsageError):
        Config().load(RawBytesProvider(b"{}"))


def test_tree_provider_with_parser_is_a_usage_error():
    with pytest.raises(UsageError):
        Config().load(ConfmapProvider({"a": 1}), JSONParser())


def test_strict_merge_conflict_leaves_tree_untouched():
    """Given a strict configuration with an integer port
    When loading a source that turns the port into a string
    Then the load fails and the tree keeps every previous value
    """
    config = Config(strict_merge=True)
    config.load(ConfmapProvider({"server": {"port": 80, "host": "a"}}))

    with pytest.raises(StructuralConflictError):
        config.load(ConfmapProvider({"server": {"host": "b", "port": "80"}}))

    assert config.raw() == {"server": {"port": 80, "host": "a"}}


def test_strict_merge_accepts_compatible_sources():
    config = Config(strict_merge=True)
    config.load(ConfmapProvider({"server": {"port": 80}}))
    config.load(ConfmapProvider({"server": {"port": 81, "host": "b"}}))

    assert config.raw() == {"server": {"port": 81, "host": "b"}}


def test_reloading_the_same_tree_is_idempotent():
    tree = {"a": {"b": [1, 2], "c": {"d": "x"}}, "e": 1.5}
    once = Config()
    once.load(ConfmapProvider(tree))
    twice = Config()
    twice.load(ConfmapProvider(tree))
    twice.load(ConfmapProvider(tree))

    assert twice.all() == once.all()


def test_loaded_tree_is_isolated_from_provider_data():
    data = {"a": {"b": [1]}}
    config = Config()
    config.load(ConfmapProvider(data))

    data["a"]["b"].append(2)

    assert config.get("a.b") == [1]


def test_yaml_integer_keys_are_addressable_as_strings():
    config = Config()
    config.load(RawBytesProvider(b"ports:\n  80: http\n  443: https\n"), YAMLParser())

    assert config.get("ports.80") == "http"
    assert config.keys() == ["ports.443", "ports.80"]
