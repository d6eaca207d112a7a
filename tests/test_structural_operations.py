"""Test cases for copy, cut, merge and the other structural operations."""

import json

import pytest
import yaml
from treeconf import Config, UsageError
from treeconf.parsers import DotenvParser, JSONParser, TOMLParser, YAMLParser
from treeconf.providers import ConfmapProvider


def make_config(data, **kwargs) -> Config:
    config = Config(**kwargs)
    config.load(ConfmapProvider(data))
    return config


def test_copy_is_isolated_from_original(nested_config: Config):
    """Given a configuration and its copy
    When mutating nested maps of either side
    Then the other side is unchanged
    """
    clone = nested_config.copy()

    clone.set("parent.child.name", "y")
    clone.delete("parent.enabled")
    nested_config.set("version", "2.0")

    assert nested_config.get("parent.child.name") == "x"
    assert nested_config.exists("parent.enabled")
    assert clone.get("version") == "1.2"
    assert clone.get("parent.child.name") == "y"


def test_copy_keeps_options():
    clone = Config(delim="/", strict_merge=True).copy()

    assert clone.delim == "/"
    assert clone.strict_merge is True


def test_cut_roots_new_config_at_sub_tree(nested_config: Config):
    expected = nested_config.get("parent.child.name")

    sub = nested_config.cut("parent.child")

    assert sub.get("name") == expected
    assert sub.keys() == ["name", "port", "tags"]


def test_cut_is_isolated_from_original(nested_config: Config):
    sub = nested_config.cut("parent.child")

    sub.set("name", "z")
    nested_config.set("parent.child.port", 1)

    assert nested_config.get("parent.child.name") == "x"
    assert sub.get("port") == 8080


def test_cut_of_non_map_is_empty(nested_config: Config):
    assert nested_config.cut("parent.child.name").raw() == {}
    assert nested_config.cut("missing").raw() == {}
    assert nested_config.cut("").raw() == nested_config.raw()


def test_merge_instances():
    base = make_config({"a": 1, "b": {"x": 1}})
    other = make_config({"a": 2, "b": {"y": 2}})

    base.merge(other)
    other.set("b.y", 3)

    assert base.raw() == {"a": 2, "b": {"x": 1, "y": 2}}


def test_merge_at_nests_other_config():
    base = make_config({"server": {"host": "a"}})
    tls = make_config({"cert": "c.pem", "enabled": True})

    base.merge_at(tls, "server.tls")

    assert base.raw() == {"server": {"host": "a", "tls": {"cert": "c.pem", "enabled": True}}}


def test_set_creates_intermediate_maps_and_merges():
    config = make_config({"server": {"host": "a"}})

    config.set("server.port", 80)
    config.set("server", {"debug": True})
    config.set("db.pool.size", 5)

    assert config.raw() == {"server": {"host": "a", "port": 80, "debug": True}, "db": {"pool": {"size": 5}}}


def test_set_at_root_requires_a_mapping():
    config = Config()
    config.set("", {"a": 1})

    assert config.raw() == {"a": 1}
    with pytest.raises(UsageError):
        config.set("", 1)


def test_delete_prunes_empty_parents():
    config = make_config({"a": {"b": {"c": 1}}, "d": 1})

    config.delete("a.b.c")

    assert config.raw() == {"d": 1}
    config.delete("")
    assert config.raw() == {}


def test_keys_are_sorted_and_stable(nested_config: Config):
    keys = nested_config.keys()

    assert keys == ["parent.child.name", "parent.child.port", "parent.child.tags", "parent.enabled", "version"]
    assert nested_config.keys() == keys


def test_key_map_contains_every_prefix(nested_config: Config):
    """Given a nested tree
    When building the key map
    Then every prefix of every leaf path is present and each entry contains its own path
    """
    key_map = nested_config.key_map()

    for path in nested_config.keys():
        segments = path.split(".")
        for i in range(1, len(segments) + 1):
            prefix = ".".join(segments[:i])
            assert prefix in key_map
            assert prefix in key_map[prefix]
        assert key_map[path][-1] == path

    assert key_map["parent.child"] == ["parent", "parent.child"]


def test_all_returns_flat_copy(nested_config: Config):
    flat = nested_config.all()
    flat["parent.child.tags"].append("c")

    assert list(flat) == nested_config.keys()
    assert nested_config.get("parent.child.tags") == ["a", "b"]
    assert len(nested_config) == 5


def test_raw_returns_deep_copy(nested_config: Config):
    raw = nested_config.raw()
    raw["parent"]["child"]["name"] = "changed"

    assert nested_config.get("parent.child.name") == "x"


def test_map_keys(nested_config: Config):
    assert nested_config.map_keys("parent") == ["child", "enabled"]
    assert nested_config.map_keys("parent.child.name") == []


def test_slices_returns_config_per_map_element():
    config = make_config({"dbs": [{"name": "a", "pool": {"size": 1}}, "skip", {"name": "b"}]})

    slices = config.slices("dbs")

    assert [s.get("name") for s in slices] == ["a", "b"]
    assert slices[0].int("pool.size") == 1
    assert config.slices("dbs.0") == []


def test_sprint_and_print(capsys):
    config = make_config({"b": {"c": True}, "a": 1})

    assert config.sprint() == "a -> 1\nb.c -> True\n"
    config.print()
    assert capsys.readouterr().out == "a -> 1\nb.c -> True\n"


def test_custom_delimiter():
    config = make_config({"parent": {"child": {"name": "x"}}, "dotted.key": 1}, delim="/")

    assert config.get("parent/child/name") == "x"
    assert config.get("dotted.key") == 1
    assert config.keys() == ["dotted.key", "parent/child/name"]


def test_empty_delimiter_never_splits_paths():
    config = make_config({"a.b": 1, "c": {"d": 2}}, delim="")

    assert config.get("a.b") == 1
    assert config.get("c") == {"d": 2}
    assert config.exists("c.d") is False
    assert config.keys() == ["a.b", "c"]


def test_marshal_round_trips_through_parsers(nested_config: Config):
    assert yaml.safe_load(nested_config.marshal(YAMLParser())) == nested_config.raw()
    assert json.loads(nested_config.marshal(JSONParser())) == nested_config.raw()
    assert TOMLParser().unmarshal(nested_config.marshal(TOMLParser())) == nested_config.raw()

    dotenv = nested_config.marshal(DotenvParser(delim="."))
    assert b"parent.child.tags.0=a\n" in dotenv
    assert b"parent.enabled=true\n" in dotenv


class ReadOnlyParser:
    def unmarshal(self, data: bytes):
        return {}


def test_marshal_requires_marshal_capability(nested_config: Config):
    with pytest.raises(UsageError):
        nested_config.marshal(ReadOnlyParser())


def test_instances_are_independent():
    first = Config()
    second = Config()
    first.set("a", 1)

    assert second.raw() == {}
