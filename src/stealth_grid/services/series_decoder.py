"""Decoding of GRID API payloads into typed rows.

Policy: the response envelope (``data`` / ``allSeries`` / ``edges`` for a
search, ``files`` for a file listing) must be present, otherwise the whole
response is rejected with a ``ResponseShapeError`` naming the missing key.
Anything wrong inside a single edge or file entry only drops that entry.
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from ..models import FileListing, SeriesRow
from .errors import ResponseShapeError

log = structlog.stdlib.get_logger()


ARCHIVE_FILE_ID = "events-grid"
REPLAY_SUFFIX = ".rofl"

# Sort key for start times that cannot be parsed; places them first
UNPARSABLE_START = datetime.min.replace(tzinfo=UTC)


class _RowSkipped(Exception):
    """Raised while decoding one edge whose fields are unusable."""


def parse_start_time(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Naive timestamps are taken as UTC. Anything unparsable maps to
    ``UNPARSABLE_START``.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return UNPARSABLE_START
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def decode_series_rows(payload: Any) -> list[SeriesRow]:
    """Convert a raw ``allSeries`` search response into sorted rows.

    Args:
        payload: Decoded JSON body of the GraphQL search

    Returns:
        Rows sorted ascending by start time (stable for equal times)

    Raises:
        ResponseShapeError: If ``data``, ``allSeries`` or ``edges`` is absent
    """
    if not isinstance(payload, Mapping):
        raise ResponseShapeError("No data found", field="data", detail="Response is not a JSON object")

    data = payload.get("data")
    if not isinstance(data, Mapping):
        raise ResponseShapeError("No data found", field="data", detail=_graphql_error_detail(payload))

    series = data.get("allSeries")
    if not isinstance(series, Mapping):
        raise ResponseShapeError("No series found", field="allSeries", detail=_graphql_error_detail(payload))

    edges = series.get("edges")
    if not isinstance(edges, list):
        raise ResponseShapeError("No edges found", field="edges")

    rows: list[SeriesRow] = []
    skipped = 0
    for index, edge in enumerate(edges):
        try:
            row = _decode_edge(edge)
        except _RowSkipped as e:
            skipped += 1
            log.warning("Skipping series edge", index=index, reason=str(e))
            continue
        rows.append(row)

    if skipped:
        log.info("Series edges skipped", skipped=skipped, kept=len(rows))

    rows.sort(key=lambda r: parse_start_time(r.start_time))
    return rows


def _decode_edge(edge: Any) -> SeriesRow:
    """Decode a single edge, raising ``_RowSkipped`` when it cannot be shown."""
    node = _mapping(edge, "node")

    teams = node.get("teams")
    if not isinstance(teams, list) or len(teams) < 2:
        raise _RowSkipped("fewer than two teams")

    team_one = _string(_mapping(teams[0], "baseInfo"), "name")
    team_two = _string(_mapping(teams[1], "baseInfo"), "name")
    tournament = _string(_mapping(node, "tournament"), "name")

    return SeriesRow(
        start_time=_string(node, "startTimeScheduled"),
        series_id=_string(node, "id"),
        tournament_name=tournament,
        team_one_name=team_one,
        team_two_name=team_two,
    )


def _mapping(container: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(container, Mapping):
        raise _RowSkipped(f"expected an object holding '{key}'")
    value = container.get(key)
    if not isinstance(value, Mapping):
        raise _RowSkipped(f"missing object '{key}'")
    return value


def _string(container: Mapping[str, Any], key: str) -> str:
    value = container.get(key)
    if not isinstance(value, str):
        raise _RowSkipped(f"missing string '{key}'")
    return value


def _graphql_error_detail(payload: Mapping[str, Any]) -> str | None:
    """Return the first GraphQL error message, if the response carries one."""
    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, Mapping) and isinstance(first.get("message"), str):
            return first["message"]
    return None


def decode_file_listing(payload: Any) -> FileListing:
    """Summarise a ``file-download/list`` response.

    Raises:
        ResponseShapeError: If the ``files`` list is absent
    """
    files = payload.get("files") if isinstance(payload, Mapping) else None
    if not isinstance(files, list):
        raise ResponseShapeError("No files found", field="files")

    replay_count = 0
    has_archive = False
    for entry in files:
        if not isinstance(entry, Mapping):
            continue
        if entry.get("id") == ARCHIVE_FILE_ID:
            has_archive = True
        file_name = entry.get("fileName")
        if isinstance(file_name, str) and file_name.lower().endswith(REPLAY_SUFFIX):
            replay_count += 1

    return FileListing(replay_count=replay_count, has_archive=has_archive)
