import importlib.machinery
import logging
import sys
import textwrap
from pathlib import Path

import pytest

from apitable.console import ConsoleManager


@pytest.fixture(autouse=True)
def isolated_imports():
    """Modules loaded by a test never leak into the next one."""
    saved_modules = dict(sys.modules)
    saved_meta_path = list(sys.meta_path)
    yield
    for name in set(sys.modules) - set(saved_modules):
        del sys.modules[name]
    sys.modules.update(saved_modules)
    sys.meta_path[:] = saved_meta_path


@pytest.fixture
def logger():
    return ConsoleManager(level=logging.DEBUG, no_color=True)


@pytest.fixture
def write_file(tmp_path):
    def _write(rel: str, content: str) -> Path:
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def app_config(tmp_path):
    return {
        "search_root": str(tmp_path),
        "library_patterns": ["*.py", "*.so", "*.pyd"],
        "manifest_patterns": ["*.yaml", "*.yml"],
        "exclude": [],
        "log_level": "DEBUG",
        "no_color": True,
    }


@pytest.fixture
def broken_extension(tmp_path):
    """A file with an extension-module suffix whose contents are not a binary."""
    path = tmp_path / f"native{importlib.machinery.EXTENSION_SUFFIXES[-1]}"
    path.write_bytes(b"\x00not a shared object\x00")
    return path
