"""Collects uploaded document links and writes them to CSV."""

from __future__ import annotations

import logging
from pathlib import Path

from .models import DocumentRecord, UploadFailure
from .utils import CSV_COLUMNS, write_csv

log = logging.getLogger(__name__)


class LinkRecorder:
    """Accumulates upload results for one run.

    Only uploaded records become CSV rows; failures are kept apart so the
    caller can report them.
    """

    def __init__(self) -> None:
        self._records: dict[Path, DocumentRecord] = {}
        self._failures: list[UploadFailure] = []

    def add(self, record: DocumentRecord) -> None:
        if not record.uploaded:
            raise ValueError(f"{record.filename} has not been uploaded")
        key = record.local_path.resolve()
        if key in self._records:
            log.debug("Replacing earlier record for %s", record.filename)
        self._records[key] = record

    def add_failure(self, failure: UploadFailure) -> None:
        self._failures.append(failure)

    @property
    def records(self) -> list[DocumentRecord]:
        return sorted(
            self._records.values(),
            key=lambda r: (r.category.order, r.filename, str(r.local_path)),
        )

    @property
    def failures(self) -> list[UploadFailure]:
        return list(self._failures)

    def rows(self) -> list[tuple[str, str, str, str]]:
        return [
            (r.category.label, r.filename, r.remote_id, r.remote_url)
            for r in self.records
        ]

    def write_csv(self, path: Path) -> Path:
        """Write every uploaded record to *path* and return it."""
        rows = self.rows()
        out = write_csv(path, CSV_COLUMNS, rows)
        log.info("Links printed to %s (%s rows)", out, len(rows))
        return out
