"""Service layer for business logic and external integrations."""

from .config import ConfigurationService, ValidationResult
from .errors import (
    AppError,
    ConfigurationError,
    DownloadError,
    ErrorCategory,
    ErrorHandlingService,
    ErrorSeverity,
    FileSystemError,
    NetworkError,
    ResponseShapeError,
    UserFriendlyError,
    ValidationError,
    get_error_service,
    handle_error,
)
from .export import EXPORT_HEADER, ExportService
from .filesystem import FileSystemService
from .grid_gateway import ARCHIVE_OPTION_ID, GridGatewayService
from .http_client import HttpClientService
from .series_decoder import decode_file_listing, decode_series_rows

__all__ = [
    "ARCHIVE_OPTION_ID",
    "AppError",
    "ConfigurationError",
    "ConfigurationService",
    "DownloadError",
    "EXPORT_HEADER",
    "ErrorCategory",
    "ErrorHandlingService",
    "ErrorSeverity",
    "ExportService",
    "FileSystemError",
    "FileSystemService",
    "GridGatewayService",
    "HttpClientService",
    "NetworkError",
    "ResponseShapeError",
    "UserFriendlyError",
    "ValidationError",
    "ValidationResult",
    "decode_file_listing",
    "decode_series_rows",
    "get_error_service",
    "handle_error",
]
