"""
Tests for report file writers and the output destination wrapper.
"""

import csv
import json
from unittest.mock import patch

import pytest

from ghreport.exceptions import OutputError
from ghreport.output import ReportOutput, markdown_table, write_csv, write_json, write_markdown

HEADER = ["owner", "repo", "workflow_path", "uses", "permissions"]
ROWS = [["acme", "app", "ci.yml", "x/y (v1), a/b (v2)", "contents: read"]]


@pytest.mark.unit
def test_write_csv(tmp_path):
    path = tmp_path / "out" / "report.csv"

    write_csv(str(path), HEADER, ROWS)

    with open(path, newline="", encoding="utf-8") as f:
        assert list(csv.reader(f)) == [HEADER] + ROWS


@pytest.mark.unit
def test_write_json(tmp_path):
    path = tmp_path / "report.json"

    write_json(str(path), [{"owner": "acme", "workflows": []}])

    text = path.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert json.loads(text) == [{"owner": "acme", "workflows": []}]


@pytest.mark.unit
def test_markdown_table_escapes_pipes():
    table = markdown_table(["a", "b"], [["x|y", "z"]])

    assert table.splitlines() == ["| a | b |", "|---|---|", "| x\\|y | z |"]


@pytest.mark.unit
def test_write_markdown_sections(tmp_path):
    path = tmp_path / "report.md"

    write_markdown(str(path), "Title", [("Summary", ["n"], [["1"]]), (None, HEADER, ROWS)])

    text = path.read_text(encoding="utf-8")
    assert text.startswith("# Title\n")
    assert "## Summary" in text
    assert "| acme | app | ci.yml |" in text


@pytest.mark.unit
def test_write_failure_raises_output_error(tmp_path):
    path = tmp_path / "report.json"

    with patch("builtins.open", side_effect=PermissionError("denied")):
        with pytest.raises(OutputError) as exc_info:
            write_json(str(path), {})

    assert exc_info.value.path == str(path)
    assert isinstance(exc_info.value.original_exception, PermissionError)
    assert "denied" in str(exc_info.value)


@pytest.mark.unit
def test_report_output_writes_only_requested_files(tmp_path):
    output = ReportOutput(csv_path=str(tmp_path / "r.csv"), md_path=str(tmp_path / "r.md"), silent=True)

    output.save("Report", HEADER, ROWS, [])

    assert sorted(p.name for p in tmp_path.iterdir()) == ["r.csv", "r.md"]


@pytest.mark.unit
def test_silent_output_skips_console_table():
    with patch("ghreport.output.render_table") as render:
        ReportOutput(silent=True).table(HEADER, ROWS)
        ReportOutput(silent=False).table(HEADER, ROWS)

    render.assert_called_once_with(HEADER, ROWS)
