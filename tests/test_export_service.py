"""Tests for CSV export of series rows."""

import csv
import tempfile
from pathlib import Path

import pytest
from hypothesis import given, settings, strategies as st

from stealth_grid.models import SeriesRow
from stealth_grid.services.export import EXPORT_HEADER, ExportService, with_csv_suffix


cell_text = st.text(
    alphabet=st.characters(blacklist_categories=("Cs",), blacklist_characters="\x00\r"),
    max_size=30,
)

row_strategy = st.builds(
    SeriesRow,
    start_time=cell_text,
    series_id=cell_text,
    tournament_name=cell_text,
    team_one_name=cell_text,
    team_two_name=cell_text,
)


def read_records(path: Path) -> list[list[str]]:
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class TestExportService:
    """Tests for ExportService."""

    @given(st.lists(row_strategy, max_size=20))
    @settings(max_examples=50, deadline=None)
    def test_export_writes_header_and_rows_in_order(self, rows: list[SeriesRow]) -> None:
        """Exporting N rows produces N + 1 records with the header first and rows in order."""
        with tempfile.TemporaryDirectory() as temp_dir:
            written = ExportService().export(rows, Path(temp_dir) / "series.csv")

            records = read_records(written)

            assert len(records) == len(rows) + 1
            assert records[0] == EXPORT_HEADER
            assert records[1:] == [row.as_record() for row in rows]

    def test_suffix_is_appended(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            written = ExportService().export([], Path(temp_dir) / "report")

            assert written == Path(temp_dir) / "report.csv"
            assert written.exists()
            assert not (Path(temp_dir) / "report.csv.tmp").exists()

    def test_parent_directories_are_created(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            target = Path(temp_dir) / "nested" / "dir" / "out.csv"

            written = ExportService().export([], target)

            assert written == target
            assert read_records(target) == [EXPORT_HEADER]

    def test_existing_file_is_replaced(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            target = Path(temp_dir) / "out.csv"
            target.write_text("old contents\n", encoding="utf-8")
            row = SeriesRow("2024-01-01T00:00:00Z", "1", "Worlds", "T1", "GEN")

            _ = ExportService().export([row], target)

            assert read_records(target) == [EXPORT_HEADER, row.as_record()]

    def test_unwritable_destination_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            blocker = Path(temp_dir) / "file"
            blocker.write_text("x", encoding="utf-8")

            with pytest.raises(OSError):
                ExportService().export([], blocker / "out.csv")


@pytest.mark.parametrize(
    ("given_path", "expected"),
    [
        ("out", "out.csv"),
        ("out.csv", "out.csv"),
        ("out.CSV", "out.CSV"),
        ("out.txt", "out.txt.csv"),
    ],
)
def test_with_csv_suffix(given_path: str, expected: str) -> None:
    assert with_csv_suffix(Path(given_path)) == Path(expected)
