"""Configuration providers: sources handing bytes or ready trees to :meth:`treeconf.Config.load`."""
# ruff: noqa: F401

from .confmap import ConfmapProvider
from .env import EnvProvider
from .file import FileProvider
from .flags import ArgparseProvider
from .rawbytes import RawBytesProvider
