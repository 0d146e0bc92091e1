"""Rendered document tree.

The tree is the laid-out document before it becomes HTML: sections hold field
lists and tables, tables hold plain string cells. It is built purely from a
normalized view and owned by a single export call.
"""

from typing import Iterator, Optional

from pydantic import Field

from .base import BaseViewModel, ReportKind


class FieldItem(BaseViewModel):
    """A label/value pair."""

    label: str
    value: str


class Table(BaseViewModel):
    """
    A table with a header row and string cells.

    When ``group_column`` is True the first column carries a group label that
    is printed only on the first row of each group; following rows of the
    same group hold an empty string in that column.
    """

    title: Optional[str] = None
    columns: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)
    group_column: bool = False
    css_class: str = "data-table"

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column(self, index: int) -> list[str]:
        return [row[index] if index < len(row) else "" for row in self.rows]


class Section(BaseViewModel):
    """A titled block of the document."""

    title: str
    fields: list[FieldItem] = Field(default_factory=list)
    field_columns: int = Field(default=1, ge=1, le=3)
    tables: list[Table] = Field(default_factory=list)
    side_by_side: bool = Field(default=False, description="Lay tables out in a row")
    paragraphs: list[str] = Field(default_factory=list)
    css_class: str = ""


class Letterhead(BaseViewModel):
    """Company block printed at the top of every document."""

    company_name: str
    address: str
    contacts: list[FieldItem] = Field(default_factory=list)


class RenderedDocument(BaseViewModel):
    """
    Complete visual document, top to bottom.

    ``identifier`` is the report number (service reports) or site code (site
    reports) and feeds the output filename.
    """

    kind: ReportKind
    title: str
    subtitle: str = ""
    identifier: str
    letterhead: Letterhead
    header_fields: list[FieldItem] = Field(default_factory=list)
    sections: list[Section] = Field(default_factory=list)
    footer_notes: list[str] = Field(default_factory=list)

    def section(self, title: str) -> Section:
        """Return the first section with the given title."""
        for section in self.sections:
            if section.title == title:
                return section
        raise KeyError(title)

    def iter_tables(self) -> Iterator[Table]:
        for section in self.sections:
            yield from section.tables

    def table(self, title: str) -> Table:
        """Return the first table with the given title."""
        for table in self.iter_tables():
            if table.title == title:
                return table
        raise KeyError(title)

    def text_content(self) -> str:
        """All visible text, newline separated. Used for search and checks."""
        parts = [self.title, self.subtitle, self.identifier]
        parts.extend(f"{f.label} {f.value}" for f in self.header_fields)
        for section in self.sections:
            parts.append(section.title)
            parts.extend(f"{f.label} {f.value}" for f in section.fields)
            parts.extend(section.paragraphs)
            for table in section.tables:
                parts.extend(table.columns)
                parts.extend(" ".join(row) for row in table.rows)
        parts.extend(self.footer_notes)
        return "\n".join(p for p in parts if p)
