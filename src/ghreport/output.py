"""
Report output: console tables, progress spinner and CSV/JSON/Markdown files.
"""
from __future__ import annotations

import contextlib
import csv
import datetime
import json
import logging
import os
from typing import Any, Iterator, List, Optional, Sequence

from rich.console import Console
from rich.table import Table

from .exceptions import OutputError

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

Row = Sequence[str]


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)


def write_csv(path: str, header: Row, rows: Sequence[Row]) -> None:
    """Write a header and rows to a CSV file."""
    try:
        _ensure_parent(path)
        with open(path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
    except OSError as e:
        raise OutputError(path, e) from e
    logger.info(f"CSV saved to: {path}")


def write_json(path: str, payload: Any) -> None:
    """Serialize ``payload`` to an indented JSON file."""
    try:
        _ensure_parent(path)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2)
            f.write("\n")
    except OSError as e:
        raise OutputError(path, e) from e
    logger.info(f"JSON saved to: {path}")


def _md_cell(value: str) -> str:
    return str(value).replace('|', '\\|').replace('\n', ' ')


def markdown_table(header: Row, rows: Sequence[Row]) -> str:
    lines = [
        "| " + " | ".join(_md_cell(h) for h in header) + " |",
        "|" + "|".join("-" * (len(str(h)) + 2) for h in header) + "|",
    ]
    for row in rows:
        lines.append("| " + " | ".join(_md_cell(c) for c in row) + " |")
    return "\n".join(lines) + "\n"


def write_markdown(path: str, title: str, sections: Sequence[tuple]) -> None:
    """Write a Markdown report made of ``(heading, header, rows)`` table sections."""
    try:
        _ensure_parent(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(f"# {title}\n\n")
            f.write(f"- Generated: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n\n")
            for heading, header, rows in sections:
                if heading:
                    f.write(f"## {heading}\n\n")
                f.write(markdown_table(header, rows))
                f.write("\n")
    except OSError as e:
        raise OutputError(path, e) from e
    logger.info(f"Markdown saved to: {path}")


def render_table(
    header: Row,
    rows: Sequence[Row],
    *,
    title: Optional[str] = None,
    right_align: bool = False,
    footer: Optional[Row] = None,
) -> None:
    """Print rows as a table on the console."""
    table = Table(title=title, show_footer=footer is not None, header_style="bold")
    for index, name in enumerate(header):
        table.add_column(
            str(name),
            justify="right" if right_align and index > 0 else "left",
            footer=str(footer[index]) if footer is not None else "",
        )
    for row in rows:
        table.add_row(*[str(c) for c in row])
    console.print(table)


@contextlib.contextmanager
def status(message: str, enabled: bool = True) -> Iterator[Any]:
    """Show a spinner on stderr while the block runs; yields the status (or None)."""
    if not enabled:
        yield None
        return
    with err_console.status(message) as spinner:
        yield spinner


class ReportOutput:
    """Destinations selected on the command line for one report run."""

    def __init__(
        self,
        csv_path: Optional[str] = None,
        json_path: Optional[str] = None,
        md_path: Optional[str] = None,
        silent: bool = False,
    ):
        self.csv_path = csv_path
        self.json_path = json_path
        self.md_path = md_path
        self.silent = silent

    def table(self, header: Row, rows: Sequence[Row], **kwargs: Any) -> None:
        if not self.silent:
            render_table(header, rows, **kwargs)

    def save(
        self,
        title: str,
        header: Row,
        rows: List[Row],
        payload: Any,
        extra_sections: Sequence[tuple] = (),
    ) -> None:
        """Write whichever of CSV, JSON and Markdown were requested."""
        if self.csv_path:
            write_csv(self.csv_path, header, rows)
        if self.json_path:
            write_json(self.json_path, payload)
        if self.md_path:
            write_markdown(self.md_path, title, list(extra_sections) + [(None, header, rows)])
