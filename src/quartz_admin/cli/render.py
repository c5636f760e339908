"""Plain-text table and JSON rendering for CLI output."""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Sequence
from io import StringIO
from typing import Any

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

DEFAULT_TERMINAL_WIDTH = 80
MIN_COLUMN_WIDTH = 6


def terminal_width() -> int:
    """Width from ``$COLUMNS``, falling back to 80 columns."""
    try:
        width = int(os.environ.get("COLUMNS", ""))
    except ValueError:
        return DEFAULT_TERMINAL_WIDTH
    return width if width > 0 else DEFAULT_TERMINAL_WIDTH


def cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_table(
    headers: Sequence[str],
    rows: Iterable[Sequence[Any]],
    *,
    width: int | None = None,
) -> str:
    """Render rows as a bordered ASCII grid no wider than the terminal.

    Columns are sized from their content. When the grid would overflow,
    rich shrinks the columns and wraps cell text onto extra lines.
    """
    table = Table(box=box.ASCII2, show_lines=True, header_style="none")
    for header in headers:
        table.add_column(Text(header), min_width=MIN_COLUMN_WIDTH, overflow="fold")
    for row in rows:
        table.add_row(*(Text(cell(value)) for value in row))

    buffer = StringIO()
    console = Console(
        file=buffer,
        width=width or terminal_width(),
        color_system=None,
        force_terminal=False,
        highlight=False,
        emoji=False,
    )
    console.print(table)
    return buffer.getvalue().rstrip("\n")


def render_json(data: Any) -> str:
    return json.dumps(data, indent=2, default=str, ensure_ascii=False)
