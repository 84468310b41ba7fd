"""Document Center sync and link export for GIS layer updates.

Public API -- all symbols that tests and external code import live here.
Internally the code is split across focused submodules; this file
re-exports the stable public surface so ``from linkbuilder import X`` works.
"""

from .client import DocumentCenterClient
from .config import CategoryMapping, CategoryRule, Settings, load_mapping
from .errors import (
    AuthorizationError,
    ConfigurationError,
    DocumentCenterError,
    LinkError,
    UploadError,
)
from .export import (
    GisFeature,
    document_links,
    export_category_links,
    join_gis_links,
    load_gis_features,
    write_gis_links,
)
from .models import (
    DocumentRecord,
    Folder,
    RemoteDocument,
    SupportedCategory,
    SyncReport,
    UploadFailure,
)
from .recorder import LinkRecorder
from .report import (
    FolderSize,
    ReportItem,
    build_report,
    collect_folder_sizes,
    write_report_csv,
)
from .scanner import scan_folder
from .sync import sync_folder
from .uploader import DocumentCenterUploader, Uploader
from .utils import CSV_COLUMNS, format_size_kb, write_csv

__all__ = [
    # Models
    "SupportedCategory",
    "DocumentRecord",
    "UploadFailure",
    "SyncReport",
    "Folder",
    "RemoteDocument",
    # Errors
    "LinkError",
    "ConfigurationError",
    "DocumentCenterError",
    "AuthorizationError",
    "UploadError",
    # Config
    "Settings",
    "CategoryMapping",
    "CategoryRule",
    "load_mapping",
    # Utils
    "CSV_COLUMNS",
    "format_size_kb",
    "write_csv",
    # Pipeline
    "scan_folder",
    "Uploader",
    "DocumentCenterUploader",
    "DocumentCenterClient",
    "LinkRecorder",
    "sync_folder",
    # Exports
    "document_links",
    "export_category_links",
    "GisFeature",
    "load_gis_features",
    "join_gis_links",
    "write_gis_links",
    # Report
    "FolderSize",
    "ReportItem",
    "collect_folder_sizes",
    "build_report",
    "write_report_csv",
]
