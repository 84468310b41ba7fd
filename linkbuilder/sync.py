"""Scan -> upload -> record pipeline."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from .config import CategoryMapping
from .errors import UploadError
from .models import DocumentRecord, SyncReport, UploadFailure
from .recorder import LinkRecorder
from .scanner import scan_folder
from .uploader import Uploader

log = logging.getLogger(__name__)


def sync_folder(
    folder: Path,
    uploader: Uploader,
    output: Path,
    *,
    mapping: Optional[CategoryMapping] = None,
    unmatched_policy: str = "report",
    progress: bool = True,
) -> SyncReport:
    """Upload every categorized file in *folder* and write their links to *output*.

    Configuration problems abort before anything is uploaded. A failed
    upload is recorded and the run carries on with the next file. The CSV
    holds only the documents that were uploaded, and is written even if
    the run stops part-way.

    Raises:
        ConfigurationError: bad folder, bad policy, or an unmatched file
            under the ``error`` policy.
    """
    t0 = time.perf_counter()
    report = SyncReport()
    pending = [
        DocumentRecord(category, path)
        for category, path in scan_folder(
            folder,
            mapping,
            unmatched_policy=unmatched_policy,
            unmatched=report.unmatched,
        )
    ]
    log.info(
        "Found %s documents to sync in %s (%s unmatched)",
        len(pending),
        folder,
        len(report.unmatched),
    )

    recorder = LinkRecorder()
    try:
        if pending:
            uploader.prepare(dict.fromkeys(r.category for r in pending))
        for record in tqdm(pending, desc="Uploading", disable=not progress):
            try:
                remote_id, remote_url = uploader.upload(record.local_path, record.category)
                recorder.add(record.with_upload(remote_id, remote_url))
            except UploadError as exc:
                log.warning("Upload failed for %s (%s): %s", record.filename, exc.reason, exc)
                recorder.add_failure(
                    UploadFailure(record.category, record.local_path, exc.reason, str(exc))
                )
            except ValueError as exc:
                log.warning("Upload failed for %s: %s", record.filename, exc)
                recorder.add_failure(
                    UploadFailure(record.category, record.local_path, "rejected", str(exc))
                )
    finally:
        report.output = recorder.write_csv(output)
        report.succeeded = recorder.records
        report.failed = recorder.failures

    log_summary(report, time.perf_counter() - t0)
    return report


def log_summary(report: SyncReport, elapsed: float) -> None:
    log.info("=" * 60)
    log.info("SYNC COMPLETE")
    log.info("  Succeeded: %s", len(report.succeeded))
    log.info("  Failed:    %s", len(report.failed))
    log.info("  Unmatched: %s", len(report.unmatched))
    log.info("  Links CSV: %s", report.output)
    log.info("  Runtime:   %.1fs", elapsed)
    for record in report.succeeded:
        log.info("  + [%s] %s -> %s", record.category.label, record.filename, record.remote_url)
    if report.failed:
        log.warning("Failed documents:")
        for failure in report.failed:
            log.warning(
                "  - [%s] %s: %s (%s)",
                failure.category.label,
                failure.filename,
                failure.message[:200],
                failure.reason,
            )
    if report.unmatched:
        log.warning("Unmatched files:")
        for path in report.unmatched:
            log.warning("  ? %s", path.name)
