from __future__ import annotations

import fnmatch
import importlib.machinery
import os
from collections.abc import Callable
from pathlib import Path

import pathspec

from apitable.console import ConsoleManager

IdentityFn = Callable[[Path, Path], str | None]


class SearchConfig:
    """Directory and file rules for the dependency search."""

    SKIP_DIRS: set[str] = {
        ".git",
        ".hg",
        ".svn",
        ".idea",
        ".vscode",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        ".tox",
        ".nox",
        ".venv",
        "venv",
        "__pycache__",
        "node_modules",
        ".eggs",
        ".cache",
    }

    @classmethod
    def should_skip_dir(cls, dirname: str) -> bool:
        return (dirname in cls.SKIP_DIRS) or dirname.endswith(".egg-info")


def module_identity(root: Path, path: Path) -> str | None:
    """
    Fully-qualified module name of a library file relative to `root`.

    `pkg/__init__.py` -> `pkg`, `pkg/mod.py` -> `pkg.mod`,
    `pkg/_ext.cpython-312-x86_64-linux-gnu.so` -> `pkg._ext`.
    """
    try:
        rel = path.relative_to(root)
    except ValueError:
        return None

    suffixes = sorted(
        importlib.machinery.SOURCE_SUFFIXES + importlib.machinery.EXTENSION_SUFFIXES,
        key=len,
        reverse=True,
    )
    stem = next(
        (rel.name[: -len(s)] for s in suffixes if rel.name.endswith(s)), None
    )
    if stem is None:
        return None

    parts = list(rel.parent.parts)
    if stem != "__init__":
        parts.append(stem)
    if not parts or not all(p.isidentifier() for p in parts):
        return None
    return ".".join(parts)


class DependencyResolver:
    """
    Finds the library file providing a requested module identity.

    Candidates are collected once from `root` (recursively, sorted by
    relative path) and the first whose identity matches wins. Each
    query records a resolution log that failures can surface later.
    """

    def __init__(
        self,
        *,
        root: Path,
        patterns: list[str],
        identity_of: IdentityFn,
        logger: ConsoleManager,
        exclude: list[str] | None = None,
    ) -> None:
        self._root = root
        self._patterns = patterns
        self._identity_of = identity_of
        self._logger = logger
        self._exclude_spec = self._init_exclude_spec(exclude)
        self._index: list[tuple[Path, str]] | None = None
        self._logs: dict[str, list[str]] = {}

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, identity: str) -> Path | None:
        index = self._candidate_index()
        log = [
            f"Searching '{self._root}' for '{identity}' "
            f"({len(index)} candidate(s))."
        ]
        self._logs[identity] = log

        last_segment = identity.rsplit(".", 1)[-1]
        for path, candidate_identity in index:
            rel = path.relative_to(self._root).as_posix()
            if candidate_identity == identity:
                log.append(f"Matched '{rel}'.")
                self._logger.debug(f"Resolved '{identity}' to {rel}")
                return path
            if candidate_identity.rsplit(".", 1)[-1] == last_segment:
                log.append(
                    f"Rejected '{rel}': identity '{candidate_identity}' "
                    f"does not match."
                )

        log.append(f"No candidate provides '{identity}'.")
        self._logger.debug(f"Could not resolve '{identity}' under {self._root}")
        return None

    def resolution_log(self, identity: str | None) -> str:
        if identity is None:
            return ""
        return "\n".join(self._logs.get(identity, []))

    def candidates(self) -> list[Path]:
        return [p for p, _ in self._candidate_index()]

    # --- Private Helpers ---

    def _init_exclude_spec(self, patterns: list[str] | None) -> pathspec.PathSpec | None:
        if patterns:
            try:
                return pathspec.PathSpec.from_lines("gitwildmatch", patterns)
            except Exception as e:
                self._logger.warning(f"Invalid exclude patterns: {e}")
        return None

    def _candidate_index(self) -> list[tuple[Path, str]]:
        if self._index is not None:
            return self._index

        index: list[tuple[Path, str]] = []
        for path in self._scan():
            try:
                identity = self._identity_of(self._root, path)
            except Exception as e:
                self._logger.debug(f"Skipping candidate {path}: {e}")
                continue
            if identity:
                index.append((path, identity))

        self._index = index
        return index

    def _scan(self) -> list[Path]:
        found: list[Path] = []
        if not self._root.is_dir():
            return found
        try:
            for dirpath, dirnames, filenames in os.walk(self._root):
                dirnames[:] = [d for d in dirnames if not SearchConfig.should_skip_dir(d)]
                for f in filenames:
                    if not any(fnmatch.fnmatch(f, pat) for pat in self._patterns):
                        continue
                    p = Path(dirpath) / f
                    rel = p.relative_to(self._root).as_posix()
                    if self._exclude_spec and self._exclude_spec.match_file(rel):
                        continue
                    found.append(p)
        except PermissionError as e:
            self._logger.warning(f"Permission denied: {e}")
        return sorted(found, key=lambda p: p.relative_to(self._root).as_posix())
