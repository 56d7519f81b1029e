from __future__ import annotations

from collections.abc import Callable, Iterable

from .models import ApiModel, Entry
from .providers.interface import DependencyNotFoundError

TITLE = "# API table"
NO_MEMBERS = "There are no newly defined members in this type."
FOOTER = "This document is created with apitable"

# Printable columns, left to right. DeclaredType is tracked on the
# entry but never printed.
COLUMNS: list[tuple[Callable[[Entry], object], str]] = [
    (lambda e: e.category, "Category"),
    (lambda e: e.name, "Name"),
    (lambda e: e.member_type_name, "Type"),
    (lambda e: e.tested_marker, "Tested"),
]


def cell_text(value: object) -> str:
    return "" if value is None else str(value)


class ReportRenderer:
    """
    Renders an ApiModel as a pipe-delimited Markdown document.
    """

    def __init__(self, columns=None) -> None:
        self._columns = columns or COLUMNS

    def column_widths(self, model: ApiModel) -> list[int]:
        """Widths are computed once over every entry, type entries included."""
        widths = [len(header) for _, header in self._columns]
        for entry in model:
            for i, (accessor, _) in enumerate(self._columns):
                widths[i] = max(widths[i], len(cell_text(accessor(entry))))
        return widths

    def render(self, model: ApiModel) -> list[str]:
        widths = self.column_widths(model)
        lines = [TITLE]

        for type_entry in model.types():
            lines.extend(["", f"## {type_entry.name}", ""])

            members = model.members_of(type_entry)
            if not members:
                lines.append(NO_MEMBERS)
                continue

            lines.append(self._row([h for _, h in self._columns], widths))
            lines.append(self._row(["-" * w for w in widths], widths))
            for m in members:
                lines.append(
                    self._row([cell_text(a(m)) for a, _ in self._columns], widths)
                )

        lines.extend(["", "----", "", FOOTER])
        return lines

    @staticmethod
    def _row(cells: list[str], widths: list[int]) -> str:
        return "|" + "".join(f" {c:<{w}} |" for c, w in zip(cells, widths))


def render_diagnostics(failures: Iterable[BaseException]) -> list[str]:
    """
    One block per load failure: its message, the resolution log for
    missing dependencies, then a blank line. The block is closed by one
    more blank line.
    """
    lines: list[str] = []
    for failure in failures:
        lines.extend(str(failure).splitlines() or [type(failure).__name__])
        if isinstance(failure, DependencyNotFoundError) and failure.resolution_log:
            lines.append("Resolution Log:")
            lines.extend(failure.resolution_log.splitlines())
        lines.append("")

    if lines:
        lines.append("")
    return lines
