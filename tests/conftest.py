"""Pytest configuration and shared fixtures for treeconf tests."""

import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Iterator

import pytest
import yaml
from treeconf import Config
from treeconf.providers import ConfmapProvider


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def write_file(temp_dir: Path) -> Callable[[str, str], Path]:
    """Return a helper writing text files into the temporary directory."""

    def _write(name: str, content: str) -> Path:
        path = temp_dir / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_yaml_file(temp_dir: Path) -> Callable[[str, Dict[str, Any]], Path]:
    """Return a helper dumping data to a YAML file in the temporary directory."""

    def _write(name: str, data: Dict[str, Any]) -> Path:
        path = temp_dir / name
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False)
        return path

    return _write


@pytest.fixture
def nested_config() -> Config:
    """Create a configuration holding a small nested tree."""
    config = Config()
    config.load(
        ConfmapProvider(
            {
                "parent": {
                    "child": {"name": "x", "port": 8080, "tags": ["a", "b"]},
                    "enabled": True,
                },
                "version": "1.2",
            }
        )
    )
    return config
