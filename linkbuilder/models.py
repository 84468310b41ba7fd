"""Shared data models for linkbuilder."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from .errors import ConfigurationError

_SEPARATORS_RE = re.compile(r"[\s_\-]+")


def normalize_name(value: str) -> str:
    """Lower-case *value* and drop spaces, underscores and hyphens."""
    return _SEPARATORS_RE.sub("", value).lower()


class SupportedCategory(Enum):
    """Document kinds kept in their own Document Center folder.

    The value is the display label, which is also the remote folder name.
    """

    ADVANCE_FINANCE = "Advance Finance Districts"
    DEFERRED_DEVELOPMENT = "Deferred Development Agreements"
    FEE_IN_LIEU = "Fee in Lieu"
    SERVICE_ANNEXATION = "Service and Annexation"
    UNRECORDED_PARCELS = "Unrecorded Parcels"

    @property
    def label(self) -> str:
        return self.value

    @property
    def slug(self) -> str:
        """Short name used for per-category export files."""
        return _SLUGS[self]

    @property
    def order(self) -> int:
        return list(SupportedCategory).index(self)

    @classmethod
    def from_label(cls, label: str) -> "SupportedCategory":
        key = normalize_name(label)
        for category in cls:
            if key in (normalize_name(category.value), normalize_name(category.name)):
                return category
        raise ConfigurationError(f"Unknown document category: {label!r}")


_SLUGS = {
    SupportedCategory.ADVANCE_FINANCE: "advance_finance",
    SupportedCategory.DEFERRED_DEVELOPMENT: "deferred_development",
    SupportedCategory.FEE_IN_LIEU: "fila",
    SupportedCategory.SERVICE_ANNEXATION: "service_annexation",
    SupportedCategory.UNRECORDED_PARCELS: "unrecorded_parcels",
}


@dataclass(frozen=True)
class DocumentRecord:
    """A local file matched to a category, and its link once uploaded."""

    category: SupportedCategory
    local_path: Path
    remote_id: str = ""
    remote_url: str = ""

    @property
    def filename(self) -> str:
        return self.local_path.name

    @property
    def uploaded(self) -> bool:
        return bool(self.remote_url)

    def with_upload(self, remote_id: str, remote_url: str) -> "DocumentRecord":
        """Return the uploaded counterpart of this record."""
        if not remote_id or not remote_url:
            raise ValueError(
                f"Upload of {self.filename} returned an empty id or url "
                f"(id={remote_id!r}, url={remote_url!r})"
            )
        return replace(self, remote_id=str(remote_id), remote_url=str(remote_url))


@dataclass(frozen=True)
class UploadFailure:
    """A document whose upload failed."""

    category: SupportedCategory
    local_path: Path
    reason: str
    message: str

    @property
    def filename(self) -> str:
        return self.local_path.name


@dataclass
class SyncReport:
    """Outcome of one sync run."""

    succeeded: list[DocumentRecord] = field(default_factory=list)
    failed: list[UploadFailure] = field(default_factory=list)
    unmatched: list[Path] = field(default_factory=list)
    output: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return not self.failed


# ---------------------------------------------------------------------------
# Document Center payloads
# ---------------------------------------------------------------------------


@dataclass
class Folder:
    """A folder in the Document Center."""

    id: Optional[int]
    name: str
    is_archived: bool = False
    parent_id: Optional[int] = None
    path: Optional[str] = None
    url: Optional[str] = None
    item_count: Optional[int] = None
    total_folder_size: Optional[int] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Folder":
        return cls(
            id=data.get("Id"),
            name=data.get("Name") or "",
            is_archived=bool(data.get("IsArchived")),
            parent_id=data.get("ParentID"),
            path=data.get("Path"),
            url=data.get("URL"),
            item_count=data.get("ItemCount"),
            total_folder_size=data.get("TotalFolderSize"),
            raw=dict(data),
        )


@dataclass
class RemoteDocument:
    """A document stored in the Document Center.

    ``file_size`` is in KB. ``status`` is integer coded: 10 is draft,
    30 is published.
    """

    id: int
    name: str
    folder_id: Optional[int] = None
    file_name: Optional[str] = None
    file_size: Optional[float] = None
    status: Optional[int] = None
    url: Optional[str] = None
    is_archived: Optional[bool] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RemoteDocument":
        return cls(
            id=data["Id"],
            name=data.get("Name") or "",
            folder_id=data.get("FolderId"),
            file_name=data.get("FileName"),
            file_size=data.get("FileSize"),
            status=data.get("Status"),
            url=data.get("URL"),
            is_archived=data.get("IsArchived"),
            raw=dict(data),
        )
