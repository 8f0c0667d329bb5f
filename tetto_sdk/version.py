"""
Version information for the Tetto SDK.
"""
import importlib.metadata
import pathlib

import tomli

# Installed metadata first, pyproject.toml for source checkouts
try:
    __version__ = importlib.metadata.version("tetto-sdk")
except importlib.metadata.PackageNotFoundError:
    try:
        path = pathlib.Path(__file__).parent.parent / "pyproject.toml"
        with path.open("rb") as f:
            data = tomli.load(f)
        __version__ = data["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        __version__ = "2.0.0"
