"""File system service for download destinations and exported files."""

import os
from pathlib import Path

import structlog

from .errors import FileSystemError

log = structlog.stdlib.get_logger()


class FileSystemService:
    """Service for file system operations with error handling and validation."""

    def ensure_directory(self, path: Path) -> None:
        """Ensure that a directory exists, creating it if necessary.

        Args:
            path: Directory path to ensure exists

        Raises:
            OSError: If directory cannot be created
            PermissionError: If insufficient permissions
        """
        try:
            if path.exists():
                if not path.is_dir():
                    log.error("Path exists but is not a directory", path=str(path))
                    raise NotADirectoryError(f"Path exists but is not a directory: {path}")
                return

            log.debug("Creating directory", path=str(path))
            path.mkdir(parents=True, exist_ok=True)
            log.info("Directory created successfully", path=str(path))

        except OSError as e:
            log.error("Failed to create directory", path=str(path), error=str(e))
            raise

    def require_directory(self, path: Path) -> Path:
        """Check that a download destination exists and is writable.

        Unlike ``ensure_directory`` this never creates anything: downloads go
        only into directories the user already has.

        Returns:
            The resolved directory path

        Raises:
            FileSystemError: If the path is missing, not a directory, or read-only
        """
        resolved = path.expanduser()
        if not resolved.exists():
            log.error("Download directory does not exist", path=str(resolved))
            raise FileSystemError(
                f"The directory does not exist: {resolved}",
                path=str(resolved),
                operation="download",
            )
        if not resolved.is_dir():
            log.error("Download destination is not a directory", path=str(resolved))
            raise FileSystemError(
                f"Not a directory: {resolved}",
                path=str(resolved),
                operation="download",
            )
        if not os.access(resolved, os.W_OK):
            log.error("Download directory is not writable", path=str(resolved))
            raise FileSystemError(
                f"The directory is not writable: {resolved}",
                original_error=PermissionError(f"Permission denied: {resolved}"),
                path=str(resolved),
                operation="download",
            )
        return resolved

    def remove_partial(self, path: Path) -> None:
        """Delete a partially written file, logging instead of raising on failure."""
        if not path.exists():
            return
        try:
            path.unlink()
            log.debug("Cleaned up partial file", path=str(path))
        except OSError as e:
            log.warning("Failed to clean up partial file", path=str(path), error=str(e))
