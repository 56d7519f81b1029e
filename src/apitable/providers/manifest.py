"""
manifest.py

Type-surface provider over a pre-parsed YAML surface manifest.

A manifest describes one module's raw type metadata:

    module: Geometry
    types:
      - name: Point
        kind: class            # class | enum | interface | delegate
        requires: [Geometry.Core]
        members:
          - {kind: property, name: X, type: int}
          - {kind: field, name: Origin, type: Point, static: true}
          - kind: method
            name: Offset
            returns: Point
            parameters: [{name: dx, type: int}, {name: dy, type: int}]

Members default to `public: true`, `static: false`, `inherited: false`
and `special_name: false`. The provider applies the public/own-declared
filters; special-name filtering is left to the classifier.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from apitable.console import ConsoleManager

from .interface import (
    DependencyNotFoundError,
    MemberInfo,
    MethodInfo,
    ModuleHandle,
    ModuleLoadError,
    ParameterInfo,
    TypeHandle,
    TypeIntrospectionError,
    TypeLoadError,
    TypeSurfaceProvider,
    TypeUnavailableError,
)
from .resolver import DependencyResolver

UNKNOWN_TYPE_NAME = "object"
TYPE_KINDS = {"class", "struct", "enum", "interface", "delegate"}
MEMBER_KINDS = {"field", "property", "method"}


def manifest_identity(root: Path, path: Path) -> str | None:
    """Identity of a manifest file: its `module` value."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if isinstance(data, dict) and isinstance(data.get("module"), str):
        return data["module"]
    return None


class ManifestTypeHandle(TypeHandle):
    def __init__(self, data: dict[str, Any]) -> None:
        self._data = data

    @property
    def name(self) -> str:
        return str(self._data["name"])

    @property
    def kind(self) -> str:
        return str(self._data.get("kind", "class"))

    @property
    def is_compiler_generated(self) -> bool:
        return bool(self._data.get("compiler_generated", False))

    @property
    def is_enum(self) -> bool:
        return self.kind == "enum"

    @property
    def is_interface(self) -> bool:
        return self.kind == "interface"

    @property
    def is_delegate(self) -> bool:
        return self.kind == "delegate"

    def static_fields(self) -> list[MemberInfo]:
        return [self._member(m) for m in self._select("field") if m.get("static")]

    def properties(self) -> list[MemberInfo]:
        return [
            self._member(m) for m in self._select("property") if not m.get("static")
        ]

    def methods(self) -> list[MethodInfo]:
        return [
            self._method(m) for m in self._select("method") if not m.get("static")
        ]

    def fields(self) -> list[MemberInfo]:
        return [self._member(m) for m in self._select("field")]

    # --- Private Helpers ---

    def _select(self, kind: str) -> list[dict[str, Any]]:
        members = self._data.get("members") or []
        if not isinstance(members, list):
            raise TypeIntrospectionError(
                f"Members of '{self.name}' must be a list, got {type(members).__name__}"
            )

        selected: list[dict[str, Any]] = []
        for m in members:
            if (
                not isinstance(m, dict)
                or not m.get("name")
                or m.get("kind") not in MEMBER_KINDS
            ):
                raise TypeIntrospectionError(
                    f"Malformed member in type '{self.name}': {m!r}"
                )
            if m["kind"] != kind:
                continue
            if m.get("public", True) and not m.get("inherited", False):
                selected.append(m)
        return selected

    @staticmethod
    def _member(m: dict[str, Any]) -> MemberInfo:
        return MemberInfo(str(m["name"]), str(m.get("type") or UNKNOWN_TYPE_NAME))

    def _method(self, m: dict[str, Any]) -> MethodInfo:
        params = m.get("parameters") or []
        if not isinstance(params, list) or not all(
            isinstance(p, dict) and p.get("name") for p in params
        ):
            raise TypeIntrospectionError(
                f"Malformed parameters on '{self.name}.{m['name']}': {params!r}"
            )
        return MethodInfo(
            name=str(m["name"]),
            return_type_name=str(m.get("returns") or UNKNOWN_TYPE_NAME),
            parameters=tuple(
                ParameterInfo(str(p["name"]), str(p.get("type") or UNKNOWN_TYPE_NAME))
                for p in params
            ),
            is_special_name=bool(m.get("special_name", False)),
        )


class ManifestModuleHandle(ModuleHandle):
    def __init__(
        self,
        data: dict[str, Any],
        resolver: DependencyResolver,
        logger: ConsoleManager,
    ) -> None:
        self._data = data
        self._resolver = resolver
        self._logger = logger

    @property
    def identity(self) -> str:
        return str(self._data["module"])

    def declared_types(self) -> list[TypeHandle]:
        handles: list[TypeHandle] = []
        failures: list[BaseException] = []

        for raw in self._data.get("types") or []:
            name = raw.get("name", "<unnamed>") if isinstance(raw, dict) else "<unnamed>"
            try:
                handles.append(self._load_type(raw))
            except (TypeUnavailableError, DependencyNotFoundError) as e:
                self._logger.warning(f"Failed to load type '{name}': {e}")
                failures.append(e)

        if failures:
            raise TypeLoadError(handles, failures)
        return handles

    def _load_type(self, raw: Any) -> ManifestTypeHandle:
        if not isinstance(raw, dict) or not raw.get("name"):
            raise TypeUnavailableError(
                f"Type record in '{self.identity}' has no name: {raw!r}"
            )
        if raw.get("kind", "class") not in TYPE_KINDS:
            raise TypeUnavailableError(
                f"Type '{raw['name']}' has unknown kind '{raw.get('kind')}'."
            )
        if raw.get("load_error"):
            raise TypeUnavailableError(str(raw["load_error"]))

        for dependency in raw.get("requires") or []:
            if self._resolver.resolve(str(dependency)) is None:
                raise DependencyNotFoundError(
                    f"Could not load file or module '{dependency}' "
                    f"required by type '{raw['name']}'.",
                    name=str(dependency),
                    resolution_log=self._resolver.resolution_log(str(dependency)),
                )
        return ManifestTypeHandle(raw)


class ManifestProvider(TypeSurfaceProvider):
    """
    Reads YAML surface manifests.
    """

    SUFFIXES = (".yaml", ".yml")

    def __init__(self, *, resolver: DependencyResolver, logger: ConsoleManager) -> None:
        self._resolver = resolver
        self._logger = logger

    def load_module(self, path: Path) -> ModuleHandle:
        if not path.is_file():
            raise ModuleLoadError(
                f"Could not load file or module '{path}'. "
                f"The system cannot find the file specified."
            )

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise ModuleLoadError(
                f"Could not load '{path}': the manifest could not be parsed.", [e]
            ) from e

        if not isinstance(data, dict) or not isinstance(data.get("module"), str):
            raise ModuleLoadError(
                f"Could not load '{path}': the manifest has no 'module' identity."
            )
        if not isinstance(data.get("types") or [], list):
            raise ModuleLoadError(
                f"Could not load '{path}': 'types' must be a list."
            )

        self._logger.info(f"Loaded manifest '{data['module']}' from {path}")
        return ManifestModuleHandle(data, self._resolver, self._logger)
