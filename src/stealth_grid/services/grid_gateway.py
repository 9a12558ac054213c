"""Gateway to the GRID central-data and file-download APIs."""

from datetime import datetime
from pathlib import Path
from typing import Any

import structlog

from ..models import FileListing
from .filesystem import FileSystemService
from .http_client import HttpClientService
from .series_decoder import decode_file_listing

log = structlog.stdlib.get_logger()


# Download option id that selects the compressed event archive instead of a replay
ARCHIVE_OPTION_ID = "events-grid-compressed"

GRAPHQL_PATH = "/central-data/graphql"

SERIES_QUERY = """query GetAllSeriesInWindow($startTime: String, $endTime: String, $afterCursor: Cursor, $titleIds: [ID!]) {
  allSeries(
    first: %(page_size)d,
    filter: {startTimeScheduled: {gte: $startTime, lte: $endTime}, titleIds: {in: $titleIds}},
    orderBy: StartTimeScheduled,
    after: $afterCursor
  ) {
    totalCount
    pageInfo {
      hasPreviousPage
      hasNextPage
      startCursor
      endCursor
    }
    edges {
      cursor
      node {
        id
        tournament {
          nameShortened
          name
          id
        }
        startTimeScheduled
        format {
          nameShortened
        }
        teams {
          baseInfo {
            name
            id
          }
        }
      }
    }
  }
}"""


def format_api_time(value: datetime) -> str:
    """Format a datetime as RFC 3339 with second precision."""
    return value.replace(microsecond=0).isoformat()


def archive_file_name(series_id: str) -> str:
    return f"{series_id}.zip"


def replay_file_name(series_id: str, game_index: int) -> str:
    return f"{series_id}-{game_index}.rofl"


class GridGatewayService:
    """Service issuing search, file-listing and download requests."""

    def __init__(
        self,
        http_client: HttpClientService,
        filesystem: FileSystemService | None = None,
        page_size: int = 50,
    ) -> None:
        """Initialize the gateway.

        Args:
            http_client: Authenticated client bound to the API base URL
            filesystem: File system service for destination checks
            page_size: Number of series requested in the single search page
        """
        self._http_client = http_client
        self._filesystem = filesystem or FileSystemService()
        self._page_size = page_size

    async def search(self, title_id: str, start_time: datetime, end_time: datetime) -> dict[str, Any]:
        """Query one page of series for a title scheduled inside the window.

        Returns:
            The raw decoded GraphQL response
        """
        payload = {
            "query": SERIES_QUERY % {"page_size": self._page_size},
            "variables": {
                "startTime": format_api_time(start_time),
                "endTime": format_api_time(end_time),
                "afterCursor": None,
                "titleIds": [title_id],
            },
        }
        log.info(
            "Searching series",
            title_id=title_id,
            start_time=payload["variables"]["startTime"],
            end_time=payload["variables"]["endTime"],
        )
        return await self._http_client.post_json(GRAPHQL_PATH, payload)

    async def list_files(self, series_id: str) -> FileListing:
        """Return how many replays and whether an event archive exist for a series."""
        payload = await self._http_client.get_json(f"/file-download/list/{series_id}")
        listing = decode_file_listing(payload)
        log.info(
            "Series files listed",
            series_id=series_id,
            replay_count=listing.replay_count,
            has_archive=listing.has_archive,
        )
        return listing

    async def download_archive(self, series_id: str, directory: Path) -> Path:
        """Download the compressed event archive as ``<series_id>.zip``."""
        target_dir = self._filesystem.require_directory(directory)
        destination = target_dir / archive_file_name(series_id)
        await self._http_client.download_file(
            f"/file-download/events/grid/series/{series_id}",
            destination,
        )
        return destination

    async def download_replay(self, series_id: str, game_index: int, directory: Path) -> Path:
        """Download one game's replay as ``<series_id>-<game_index>.rofl``."""
        target_dir = self._filesystem.require_directory(directory)
        destination = target_dir / replay_file_name(series_id, game_index)
        await self._http_client.download_file(
            f"/file-download/replay/riot/series/{series_id}/games/{game_index}",
            destination,
        )
        return destination

    async def download(self, series_id: str, option_id: str, directory: Path) -> Path:
        """Download the file a download option refers to.

        Raises:
            ValueError: If ``option_id`` is neither the archive id nor a game index
        """
        if option_id == ARCHIVE_OPTION_ID:
            return await self.download_archive(series_id, directory)
        if not option_id.isdigit():
            raise ValueError(f"Unknown download option: {option_id}")
        return await self.download_replay(series_id, int(option_id), directory)
