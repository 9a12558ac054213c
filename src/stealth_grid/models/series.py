"""Series-related data models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SeriesRow:
    """One scheduled or past series as displayed in the table."""
    start_time: str  # ISO-8601, as delivered by the API
    series_id: str
    tournament_name: str
    team_one_name: str
    team_two_name: str

    def as_record(self) -> list[str]:
        """Return the row cells in column order."""
        return [
            self.start_time,
            self.series_id,
            self.tournament_name,
            self.team_one_name,
            self.team_two_name,
        ]


@dataclass(frozen=True)
class FileListing:
    """Downloadable files available for a series."""
    replay_count: int
    has_archive: bool
