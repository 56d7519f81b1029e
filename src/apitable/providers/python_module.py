"""
python_module.py

Type-surface provider backed by live Python introspection.

Loads a source module, package directory or compiled extension module
with `importlib` and exposes its classes as TypeHandles. Imports that
the regular finders cannot satisfy are resolved through a
DependencyResolver rooted at the configured search directory, then
through the loaded module's own directory.
"""

from __future__ import annotations

import abc
import enum
import functools
import importlib.abc
import importlib.machinery
import importlib.util
import inspect
import sys
import types
import typing
from pathlib import Path
from typing import Any, ClassVar

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
)
from .resolver import DependencyResolver, module_identity

UNKNOWN_TYPE_NAME = "object"

_BUILTIN_METHOD_TYPES = (types.MethodDescriptorType, types.WrapperDescriptorType)


def type_name(annotation: Any) -> str:
    """Display name for an annotation or runtime type."""
    if annotation is inspect.Parameter.empty:
        return UNKNOWN_TYPE_NAME
    if annotation is None or annotation is type(None):
        return "None"
    if isinstance(annotation, str):
        return annotation
    if isinstance(annotation, typing.ForwardRef):
        return annotation.__forward_arg__
    if isinstance(annotation, type) and not typing.get_args(annotation):
        return annotation.__name__
    return repr(annotation).replace("typing.", "")


def is_public(name: str) -> bool:
    return not name.startswith("_")


def is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__") and len(name) > 4


def _is_classvar(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is ClassVar or typing.get_origin(annotation) is ClassVar


def _is_plain_data(value: Any) -> bool:
    return not isinstance(value, type) and not hasattr(type(value), "__get__")


# --- Import Hook ---


class SearchRootFinder(importlib.abc.MetaPathFinder):
    """
    Last-resort finder consulted after the standard ones fail.

    Used as a context manager so it is only installed while a module
    is being loaded or enumerated.
    """

    def __init__(self, resolver: DependencyResolver, sibling_dirs: list[Path]):
        self._resolver = resolver
        self._sibling_dirs = [str(d) for d in sibling_dirs]

    def find_spec(self, fullname, path, target=None):
        location = self._resolver.resolve(fullname)
        if location is not None:
            if location.name.startswith("__init__."):
                return importlib.util.spec_from_file_location(
                    fullname,
                    location,
                    submodule_search_locations=[str(location.parent)],
                )
            return importlib.util.spec_from_file_location(fullname, location)

        if path is None and self._sibling_dirs:
            return importlib.machinery.PathFinder.find_spec(
                fullname, self._sibling_dirs
            )
        return None

    def resolution_log(self, identity: str | None) -> str:
        return self._resolver.resolution_log(identity)

    def __enter__(self) -> SearchRootFinder:
        sys.meta_path.append(self)
        return self

    def __exit__(self, *exc_info) -> None:
        if self in sys.meta_path:
            sys.meta_path.remove(self)


# --- Handles ---


class PythonTypeHandle(TypeHandle):
    def __init__(self, cls: type) -> None:
        self._cls = cls

    @property
    def name(self) -> str:
        return self._cls.__name__

    @property
    def is_compiler_generated(self) -> bool:
        return "<" in self._cls.__qualname__

    @property
    def is_enum(self) -> bool:
        return issubclass(self._cls, enum.Enum)

    @property
    def is_interface(self) -> bool:
        if getattr(self._cls, "_is_protocol", False):
            return True
        if not isinstance(self._cls, abc.ABCMeta):
            return False
        own_methods = [
            v
            for k, v in vars(self._cls).items()
            if is_public(k) and inspect.isfunction(v)
        ]
        return bool(own_methods) and all(
            getattr(m, "__isabstractmethod__", False) for m in own_methods
        )

    @property
    def is_delegate(self) -> bool:
        return issubclass(self._cls, functools.partial)

    def static_fields(self) -> list[MemberInfo]:
        return self._introspect(self._static_fields)

    def properties(self) -> list[MemberInfo]:
        return self._introspect(self._properties)

    def methods(self) -> list[MethodInfo]:
        return self._introspect(self._methods)

    def fields(self) -> list[MemberInfo]:
        return self._introspect(self._fields)

    # --- Private Helpers ---

    def _introspect(self, query):
        try:
            return query()
        except TypeIntrospectionError:
            raise
        except Exception as e:
            raise TypeIntrospectionError(
                f"Cannot enumerate members of '{self._cls.__qualname__}': {e}"
            ) from e

    def _own_annotations(self) -> dict[str, Any]:
        return dict(inspect.get_annotations(self._cls))

    def _instance_field_names(self, annotations: dict[str, Any]) -> set[str]:
        names = {n for n, a in annotations.items() if not _is_classvar(a)}
        names.update(
            n for n, v in vars(self._cls).items() if inspect.ismemberdescriptor(v)
        )
        return names

    def _static_fields(self) -> list[MemberInfo]:
        annotations = self._own_annotations()
        instance_names = self._instance_field_names(annotations)
        result: list[MemberInfo] = []
        for name, value in vars(self._cls).items():
            if not is_public(name) or name in instance_names:
                continue
            if not _is_plain_data(value):
                continue
            result.append(
                MemberInfo(name, self._classvar_type(annotations.get(name), value))
            )
        return result

    def _classvar_type(self, declared: Any, value: Any) -> str:
        args = typing.get_args(declared) if declared is not None else ()
        if args:
            return type_name(args[0])
        return type(value).__name__

    def _properties(self) -> list[MemberInfo]:
        result: list[MemberInfo] = []
        for name, value in vars(self._cls).items():
            if not is_public(name):
                continue
            if isinstance(value, property):
                result.append(MemberInfo(name, self._return_type(value.fget)))
            elif isinstance(value, functools.cached_property):
                result.append(MemberInfo(name, self._return_type(value.func)))
            elif inspect.isgetsetdescriptor(value):
                result.append(MemberInfo(name, UNKNOWN_TYPE_NAME))
        return result

    def _methods(self) -> list[MethodInfo]:
        own = vars(self._cls)
        accessors = {
            id(f)
            for p in own.values()
            if isinstance(p, property)
            for f in (p.fget, p.fset, p.fdel)
            if f is not None
        }

        result: list[MethodInfo] = []
        for name, value in own.items():
            if not (is_public(name) or is_dunder(name)):
                continue
            if not (inspect.isfunction(value) or isinstance(value, _BUILTIN_METHOD_TYPES)):
                continue
            special = is_dunder(name) or id(value) in accessors
            result.append(self._method_info(name, value, special))
        return result

    def _method_info(self, name: str, func: Any, special: bool) -> MethodInfo:
        try:
            sig = inspect.signature(func)
        except (ValueError, TypeError):
            # Extension methods without a text signature
            return MethodInfo(name, UNKNOWN_TYPE_NAME, (), special)

        params = list(sig.parameters.values())
        if params and params[0].kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            params = params[1:]

        return MethodInfo(
            name=name,
            return_type_name=type_name(sig.return_annotation),
            parameters=tuple(
                ParameterInfo(self._param_name(p), type_name(p.annotation))
                for p in params
            ),
            is_special_name=special,
        )

    @staticmethod
    def _param_name(p: inspect.Parameter) -> str:
        if p.kind is inspect.Parameter.VAR_POSITIONAL:
            return f"*{p.name}"
        if p.kind is inspect.Parameter.VAR_KEYWORD:
            return f"**{p.name}"
        return p.name

    @staticmethod
    def _return_type(func: Any) -> str:
        if func is None:
            return UNKNOWN_TYPE_NAME
        try:
            return type_name(inspect.signature(func).return_annotation)
        except (ValueError, TypeError):
            return UNKNOWN_TYPE_NAME

    def _fields(self) -> list[MemberInfo]:
        own = vars(self._cls)
        annotations = self._own_annotations()
        instance_names = self._instance_field_names(annotations)
        statics = {m.name: m for m in self._static_fields()}

        ordered = list(annotations) + [n for n in own if n not in annotations]
        result: list[MemberInfo] = []
        for name in ordered:
            if not is_public(name):
                continue
            if name in statics:
                result.append(statics[name])
            elif name in instance_names:
                declared = annotations.get(name, inspect.Parameter.empty)
                result.append(MemberInfo(name, type_name(declared)))
        return result


class PythonModuleHandle(ModuleHandle):
    def __init__(
        self, module: types.ModuleType, finder: SearchRootFinder, logger: ConsoleManager
    ) -> None:
        self._module = module
        self._finder = finder
        self._logger = logger

    @property
    def identity(self) -> str:
        return self._module.__name__

    def declared_types(self) -> list[TypeHandle]:
        exports = vars(self._module).get("__all__")
        names = list(exports) if exports is not None else list(vars(self._module))

        handles: list[TypeHandle] = []
        failures: list[BaseException] = []
        seen: set[int] = set()

        with self._finder:
            for name in names:
                if not isinstance(name, str) or not is_public(name):
                    continue
                try:
                    obj = getattr(self._module, name)
                except (Exception, SystemExit) as e:
                    self._logger.warning(f"Failed to load type '{name}': {e}")
                    failures.append(_as_loader_exception(e, self._finder))
                    continue

                if not isinstance(obj, type) or id(obj) in seen:
                    continue
                if exports is None and obj.__module__ != self._module.__name__:
                    continue
                for cls in _with_nested(obj):
                    seen.add(id(cls))
                    handles.append(PythonTypeHandle(cls))

        if failures:
            raise TypeLoadError(handles, failures)
        return handles


def _with_nested(cls: type) -> list[type]:
    found = [cls]
    for name, value in vars(cls).items():
        if (
            isinstance(value, type)
            and is_public(name)
            and value.__qualname__ == f"{cls.__qualname__}.{name}"
        ):
            found.extend(_with_nested(value))
    return found


def _as_loader_exception(exc: BaseException, finder: SearchRootFinder) -> BaseException:
    if isinstance(exc, SystemExit):
        return ImportError(f"Module exited during import with status {exc.code!r}.")
    if isinstance(exc, ModuleNotFoundError) and not isinstance(
        exc, DependencyNotFoundError
    ):
        return DependencyNotFoundError(
            str(exc), name=exc.name, resolution_log=finder.resolution_log(exc.name)
        )
    return exc


# --- Provider ---


class PythonModuleProvider(TypeSurfaceProvider):
    """
    Loads Python modules for introspection.
    """

    def __init__(self, *, resolver: DependencyResolver, logger: ConsoleManager) -> None:
        self._resolver = resolver
        self._logger = logger

    def load_module(self, path: Path) -> ModuleHandle:
        location = self._locate(path)
        name, package_root = self._qualified_name(location)
        is_package = location.name.startswith("__init__.")

        spec = importlib.util.spec_from_file_location(
            name,
            location,
            submodule_search_locations=[str(location.parent)] if is_package else None,
        )
        if spec is None or spec.loader is None:
            raise ModuleLoadError(
                f"Could not load '{path}': the file is not a loadable Python module."
            )

        finder = SearchRootFinder(self._resolver, [package_root])
        previous = sys.modules.get(name)

        self._logger.info(f"Loading module '{name}' from {location}")
        with finder:
            # Extension modules are opened by module_from_spec, so a
            # malformed binary fails here rather than in exec_module.
            try:
                module = importlib.util.module_from_spec(spec)
                sys.modules[name] = module
                spec.loader.exec_module(module)
            except (Exception, SystemExit) as e:
                if previous is not None:
                    sys.modules[name] = previous
                else:
                    sys.modules.pop(name, None)
                raise ModuleLoadError(
                    f"Could not load module '{name}' from '{path}'.",
                    [_as_loader_exception(e, finder)],
                ) from e

        return PythonModuleHandle(module, finder, self._logger)

    # --- Private Helpers ---

    def _locate(self, path: Path) -> Path:
        if not path.exists():
            raise ModuleLoadError(
                f"Could not load file or module '{path}'. "
                f"The system cannot find the file specified."
            )

        if path.is_dir():
            init = path / "__init__.py"
            if not init.is_file():
                raise ModuleLoadError(
                    f"Could not load '{path}': the directory is not a Python package."
                )
            return init
        return path

    def _qualified_name(self, location: Path) -> tuple[str, Path]:
        """
        Dotted name from the enclosing package chain, plus the directory
        that chain starts in.
        """
        if location.name.startswith("__init__."):
            parts: list[str] = []
        else:
            parts = [module_identity(location.parent, location) or location.stem]

        directory = location.parent
        while (directory / "__init__.py").is_file():
            parts.insert(0, directory.name)
            directory = directory.parent
        return ".".join(parts), directory
