"""
Generic column-driven list renderer.

The renderer knows nothing about owners, properties or any other entity kind.
Each portfolio list page supplies its own column descriptors and pre-projected
rows (nested lookups happen in field projection, never here).

Rules:
- row order comes from the input, column order from the descriptors
- a cell is read by the column key directly; a missing value renders as ""
- zero rows render the fixed empty state, never a header-only table
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, List, Mapping, Optional, Sequence

from .formatting import format_value

logger = logging.getLogger(__name__)

EMPTY_MESSAGE = 'No results'


@dataclass(frozen=True)
class ColumnDescriptor:
    key: str
    header: str
    hint: Optional[str] = None


@dataclass
class TableRow:
    cells: List[str]
    href: Optional[str] = None


@dataclass
class TableView:
    columns: List[ColumnDescriptor] = field(default_factory=list)
    rows: List[TableRow] = field(default_factory=list)
    empty: bool = False
    message: Optional[str] = None

    @property
    def state(self) -> str:
        return 'empty' if self.empty else 'rows'


def render_cell(row: Mapping[str, Any], column: ColumnDescriptor) -> str:
    value = row.get(column.key) if isinstance(row, Mapping) else None
    if value is None:
        return ''
    return format_value(value, column.hint)


def render_table(columns: Sequence[ColumnDescriptor], rows: Sequence[Mapping[str, Any]],
                 row_href: Optional[Callable[[Mapping[str, Any]], Optional[str]]] = None,
                 empty_message: str = EMPTY_MESSAGE) -> TableView:
    """
    Render ``rows`` through ``columns``.

    Args:
        columns: ordered column descriptors
        rows: ordered row records
        row_href: optional callable giving a navigation target per row
        empty_message: text of the empty state

    Returns:
        TableView; ``empty`` is set and no columns are carried when there are no rows
    """
    if not rows:
        return TableView(empty=True, message=empty_message)

    rendered = [
        TableRow(
            cells=[render_cell(row, column) for column in columns],
            href=row_href(row) if row_href else None,
        )
        for row in rows
    ]
    logger.debug(f"Rendered table with {len(rendered)} rows x {len(columns)} columns")
    return TableView(columns=list(columns), rows=rendered)


def _sort_value(value: Any):
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return (0, value, '')
    return (1, 0, str(value).casefold())


def sort_rows(rows: Sequence[Mapping[str, Any]], key: str, descending: bool = False) -> List[Mapping[str, Any]]:
    """
    Return a sorted copy of ``rows`` by ``key``.

    Numbers sort numerically, everything else as case-insensitive text.
    Rows missing the key always go last, whatever the direction.
    """
    present = [row for row in rows if row.get(key) is not None]
    missing = [row for row in rows if row.get(key) is None]
    present.sort(key=lambda row: _sort_value(row[key]), reverse=descending)
    return present + missing


def table_to_csv(table: TableView) -> str:
    """
    CSV text of a rendered table: one header line, then one line per row.

    Cells are written exactly as rendered. The empty state exports as an empty string.
    """
    if table.empty:
        return ''
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([column.header for column in table.columns])
    for row in table.rows:
        writer.writerow(row.cells)
    return buffer.getvalue()
