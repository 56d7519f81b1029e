from __future__ import annotations

from collections.abc import Iterable

from apitable.console import ConsoleManager

from .models import ApiModelBuilder, Category, Entry
from .providers.interface import MethodInfo, TypeHandle, TypeIntrospectionError


def method_display_name(method: MethodInfo) -> str:
    """`Add( int x int y )` style signature; `Name( )` without parameters."""
    params = "".join(f"{p.type_name} {p.name} " for p in method.parameters)
    return f"{method.name}( {params})"


class MemberClassifier:
    """
    Turns type handles into classified entries on an ApiModelBuilder.
    """

    def __init__(self, *, logger: ConsoleManager) -> None:
        self._logger = logger

    def discover(self, types: Iterable[TypeHandle]) -> list[TypeHandle]:
        """
        Keeps only ordinary class-like types: compiler-generated types,
        enums, interfaces and delegates are dropped.
        """
        kept: list[TypeHandle] = []
        for handle in types:
            if handle.is_compiler_generated:
                reason = "compiler-generated"
            elif handle.is_enum:
                reason = "enum"
            elif handle.is_interface:
                reason = "interface"
            elif handle.is_delegate:
                reason = "delegate"
            else:
                kept.append(handle)
                continue
            self._logger.debug(f"Skipping {reason} type '{handle.name}'")
        return kept

    def classify_all(self, types: Iterable[TypeHandle], builder: ApiModelBuilder) -> int:
        """Classifies every discovered type; returns how many were catalogued."""
        count = 0
        for handle in self.discover(types):
            if self.classify(handle, builder) is not None:
                count += 1
        return count

    def classify(self, handle: TypeHandle, builder: ApiModelBuilder) -> Entry | None:
        """
        Adds the type entry and its members, or nothing at all when the
        type's members cannot be enumerated.
        """
        try:
            members = self._collect(handle)
        except TypeIntrospectionError as e:
            self._logger.warning(f"Skipping type '{handle.name}': {e}")
            return None

        type_entry = builder.add_type(handle.name)
        for category, name, member_type in members:
            builder.add_member(type_entry, category, name, member_type)
        self._logger.debug(f"Classified '{handle.name}' ({len(members)} member(s))")
        return type_entry

    def _collect(self, handle: TypeHandle) -> list[tuple[Category, str, str]]:
        members: list[tuple[Category, str, str]] = []

        for f in handle.static_fields():
            members.append((Category.STATIC_FIELD, f.name, f.type_name))

        for p in handle.properties():
            members.append((Category.PROPERTY, p.name, p.type_name))

        for m in handle.methods():
            if m.is_special_name:
                continue
            members.append(
                (Category.METHOD, method_display_name(m), m.return_type_name)
            )

        for f in handle.fields():
            members.append((Category.FIELD, f.name, f.type_name))

        return members
