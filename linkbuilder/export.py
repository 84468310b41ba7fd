"""Link exports for GIS layer updates."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .client import DocumentCenterClient
from .errors import ConfigurationError
from .models import RemoteDocument, SupportedCategory
from .utils import CSV_COLUMNS, GIS_LINK_COLUMNS, write_csv

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Links already in the Document Center
# ---------------------------------------------------------------------------


def document_links(docs: list[RemoteDocument]) -> dict[str, str]:
    """Map document name -> url for every document that has a url."""
    return {doc.name: doc.url for doc in docs if doc.url}


def export_category_links(
    client: DocumentCenterClient,
    category: SupportedCategory,
    output_dir: Path,
    *,
    folder_id: Optional[int] = None,
) -> Optional[Path]:
    """Write ``<slug>_links.csv`` for every linked document in the category folder.

    Returns the CSV path, or ``None`` when the folder does not exist.
    """
    if folder_id is None:
        folder_id = client.find_folder_id(category.label)
    if folder_id is None:
        log.warning("%s folder not found.", category.label)
        return None

    docs = sorted(
        (doc for doc in client.list_documents(folder_id) if doc.url),
        key=lambda d: (d.file_name or d.name, d.id),
    )
    rows = [
        (category.label, doc.file_name or doc.name, str(doc.id), doc.url)
        for doc in docs
    ]
    path = write_csv(Path(output_dir) / f"{category.slug}_links.csv", CSV_COLUMNS, rows)
    log.info("Links printed to %s (%s rows)", path, len(rows))
    return path


# ---------------------------------------------------------------------------
# GIS feature join
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GisFeature:
    """One row of a GIS layer export."""

    object_id: int
    instrument: str
    global_id: str


def load_gis_features(path: Path) -> list[GisFeature]:
    """Read a layer export with ``OID_``, ``INSTRUMENT`` and ``GlobalID`` columns."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as fh:
            reader = csv.DictReader(fh)
            missing = {"OID_", "INSTRUMENT", "GlobalID"} - set(reader.fieldnames or [])
            if missing:
                raise ConfigurationError(
                    f"{path} is missing columns: {', '.join(sorted(missing))}"
                )
            features = []
            for line, row in enumerate(reader, start=2):
                try:
                    object_id = int(row["OID_"])
                except (TypeError, ValueError) as exc:
                    raise ConfigurationError(
                        f"{path}:{line}: OID_ is not an integer: {row['OID_']!r}"
                    ) from exc
                features.append(
                    GisFeature(object_id, (row["INSTRUMENT"] or "").strip(), row["GlobalID"] or "")
                )
    except OSError as exc:
        raise ConfigurationError(f"Could not read GIS export {path}: {exc}") from exc
    log.info("Loaded %s features from %s", len(features), path)
    return features


def join_gis_links(
    features: list[GisFeature],
    links: dict[str, str],
) -> tuple[list[tuple[int, str, str, str]], list[GisFeature]]:
    """Pair each feature with the link of the document named after its instrument.

    Returns ``(rows, missing)`` where *missing* holds features with no link.
    """
    rows = []
    missing = []
    for feature in features:
        link = links.get(feature.instrument)
        if link is None:
            log.warning("No link for %s.", feature.instrument)
            missing.append(feature)
            continue
        rows.append((feature.object_id, feature.instrument, feature.global_id, link))
    return rows, missing


def write_gis_links(rows: list[tuple[int, str, str, str]], path: Path) -> Path:
    out = write_csv(path, GIS_LINK_COLUMNS, rows)
    log.info("GIS links printed to %s (%s rows)", out, len(rows))
    return out
