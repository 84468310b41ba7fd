"""Storage usage report for Document Center folders."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .client import DocumentCenterClient
from .models import RemoteDocument
from .utils import REPORT_COLUMNS, format_size_kb, write_csv

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FolderSize:
    folder: str
    size: float  # KB


@dataclass(frozen=True)
class ReportItem:
    folder: str
    size: str
    percent: float


def total_size(docs: Iterable[RemoteDocument]) -> float:
    """Sum of document sizes in KB; documents without a size count as zero."""
    return sum(doc.file_size or 0.0 for doc in docs)


def collect_folder_sizes(
    client: DocumentCenterClient,
    folder_names: Iterable[str],
) -> list[FolderSize]:
    """Size each named folder, then append ``Subtotal`` and site-wide ``Total`` rows."""
    folders = client.list_folders()
    sizes = []
    for name in folder_names:
        folder_id = client.find_folder_id(name, folders)
        if folder_id is None:
            log.info("Could not find folder: %s.", name)
            continue
        sizes.append(FolderSize(name, total_size(client.list_documents(folder_id))))

    subtotal = sum(item.size for item in sizes)
    sizes.append(FolderSize("Subtotal", subtotal))
    sizes.append(FolderSize("Total", total_size(client.list_documents())))
    return sizes


def build_report(sizes: list[FolderSize]) -> list[ReportItem]:
    """Format sizes and express each as a share of the largest one."""
    if not sizes:
        return []
    largest = max(item.size for item in sizes)
    return [
        ReportItem(
            folder=item.folder,
            size=format_size_kb(item.size),
            percent=item.size / largest if largest else 0.0,
        )
        for item in sizes
    ]


def write_report_csv(items: list[ReportItem], path: Path) -> Path:
    out = write_csv(
        path,
        REPORT_COLUMNS,
        ((item.folder, item.size, f"{item.percent:.4f}") for item in items),
    )
    log.info("Report output to path: %s", out)
    return out
