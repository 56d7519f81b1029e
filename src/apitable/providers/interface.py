from __future__ import annotations

import abc
from dataclasses import dataclass
from pathlib import Path

# --- Member Descriptions ---


@dataclass(frozen=True, slots=True)
class MemberInfo:
    """A field or property: its name and the type name of its value."""

    name: str
    type_name: str


@dataclass(frozen=True, slots=True)
class ParameterInfo:
    name: str
    type_name: str


@dataclass(frozen=True, slots=True)
class MethodInfo:
    name: str
    return_type_name: str
    parameters: tuple[ParameterInfo, ...] = ()
    is_special_name: bool = False


# --- Handles ---


class TypeHandle(abc.ABC):
    """
    Introspection view of one declared type.

    Member queries return public, own-declared members in declaration
    order and raise TypeIntrospectionError when they cannot be enumerated.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str: ...

    @property
    @abc.abstractmethod
    def is_compiler_generated(self) -> bool: ...

    @property
    @abc.abstractmethod
    def is_enum(self) -> bool: ...

    @property
    @abc.abstractmethod
    def is_interface(self) -> bool: ...

    @property
    @abc.abstractmethod
    def is_delegate(self) -> bool: ...

    @abc.abstractmethod
    def static_fields(self) -> list[MemberInfo]: ...

    @abc.abstractmethod
    def properties(self) -> list[MemberInfo]:
        """Instance properties only."""

    @abc.abstractmethod
    def methods(self) -> list[MethodInfo]:
        """Instance methods, special names included and flagged."""

    @abc.abstractmethod
    def fields(self) -> list[MemberInfo]:
        """Static and instance fields."""


class ModuleHandle(abc.ABC):
    @property
    @abc.abstractmethod
    def identity(self) -> str: ...

    @abc.abstractmethod
    def declared_types(self) -> list[TypeHandle]:
        """
        Returns every declared type in discovery order.

        Raises TypeLoadError when some types fail to load; the error
        carries the ones that did.
        """


class TypeSurfaceProvider(abc.ABC):
    @abc.abstractmethod
    def load_module(self, path: Path) -> ModuleHandle:
        """Loads the module at `path` or raises ModuleLoadError."""


# --- Errors ---


class ApiTableError(Exception):
    """Base class for apitable failures."""


class ModuleLoadError(ApiTableError):
    """The module could not be loaded at all."""

    def __init__(self, message: str, causes: list[BaseException] | None = None):
        super().__init__(message)
        self.causes: list[BaseException] = list(causes or [])


class TypeLoadError(ApiTableError):
    """Some declared types failed to load; `types` holds the rest."""

    def __init__(
        self, types: list[TypeHandle], loader_exceptions: list[BaseException]
    ):
        super().__init__(
            f"Unable to load one or more of the requested types "
            f"({len(loader_exceptions)} failure(s))."
        )
        self.types = types
        self.loader_exceptions = loader_exceptions


class DependencyNotFoundError(ImportError):
    """A referenced module could not be resolved in the search root."""

    def __init__(self, message: str, *, name: str | None, resolution_log: str = ""):
        super().__init__(message, name=name)
        self.resolution_log = resolution_log


class TypeIntrospectionError(ApiTableError):
    """The members of a single type could not be enumerated."""


class TypeUnavailableError(ApiTableError):
    """A declared type exists but could not be materialized."""
