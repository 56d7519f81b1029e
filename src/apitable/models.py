from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass


class Category(enum.Enum):
    TYPE = "Type"
    PROPERTY = "Property"
    STATIC_FIELD = "StaticField"
    METHOD = "Method"
    FIELD = "Field"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True, eq=False)
class Entry:
    """
    One catalogued item: a type, or a member owned by a type.

    Equality is identity, so members are grouped under the exact type
    entry that created them even when two types share a simple name.
    """

    category: Category
    name: str
    declared_type_name: str | None = None
    member_type_name: str | None = None
    tested_marker: str = ""
    parent: Entry | None = None


class ApiModel:
    """Frozen, ordered collection of entries produced by one scan."""

    def __init__(self, entries: tuple[Entry, ...]) -> None:
        self._entries = entries

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def types(self) -> list[Entry]:
        return [e for e in self._entries if e.category is Category.TYPE]

    def members_of(self, type_entry: Entry) -> list[Entry]:
        return [e for e in self._entries if e.parent is type_entry]


class ApiModelBuilder:
    """
    Append-only collector handed through classification.

    Once build() has been called the builder refuses further writes.
    """

    def __init__(self) -> None:
        self._entries: list[Entry] = []
        self._frozen = False

    def add_type(self, name: str) -> Entry:
        entry = Entry(category=Category.TYPE, name=name)
        self._append(entry)
        return entry

    def add_member(
        self, parent: Entry, category: Category, name: str, member_type_name: str
    ) -> Entry:
        if parent.category is not Category.TYPE:
            raise ValueError(f"Parent of '{name}' must be a type entry")
        if category is Category.TYPE:
            raise ValueError("Use add_type() for type entries")
        entry = Entry(
            category=category,
            name=name,
            declared_type_name=parent.name,
            member_type_name=member_type_name,
            parent=parent,
        )
        self._append(entry)
        return entry

    def build(self) -> ApiModel:
        self._frozen = True
        return ApiModel(tuple(self._entries))

    def _append(self, entry: Entry) -> None:
        if self._frozen:
            raise RuntimeError("ApiModelBuilder is frozen; build() was already called")
        self._entries.append(entry)
