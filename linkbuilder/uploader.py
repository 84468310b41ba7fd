"""Upload contract used by the sync pipeline, and its Document Center implementation."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from .client import DocumentCenterClient
from .config import CategoryMapping
from .errors import AuthorizationError, DocumentCenterError, UploadError
from .models import RemoteDocument, SupportedCategory

log = logging.getLogger(__name__)


class Uploader:
    """Pushes one local file to remote storage.

    Subclasses implement :meth:`upload`; :meth:`prepare` is an optional
    hook called once with every category about to be uploaded.
    """

    def prepare(self, categories: Iterable[SupportedCategory]) -> None:
        return None

    def upload(self, path: Path, category: SupportedCategory) -> tuple[str, str]:
        """Return ``(remote_id, remote_url)`` or raise :class:`UploadError`."""
        raise NotImplementedError


class DocumentCenterUploader(Uploader):
    """Uploads into the Document Center folder named after each category.

    Documents already present in the folder before the run (same name as
    the file stem) are not uploaded again: their existing link is returned
    when *reuse_existing* is set, otherwise the upload fails as a duplicate.
    Each remote name is claimed by the first local file that maps to it;
    any other local file with the same stem fails as a duplicate.

    A folder lookup that fails for one category is remembered and reported
    as an upload failure for that category's files only.
    """

    def __init__(
        self,
        client: DocumentCenterClient,
        mapping: Optional[CategoryMapping] = None,
        *,
        publish: bool = True,
        reuse_existing: bool = True,
    ) -> None:
        self.client = client
        self.mapping = mapping or CategoryMapping.default()
        self.publish = publish
        self.reuse_existing = reuse_existing
        self._folder_ids: dict[SupportedCategory, Optional[int]] = {}
        self._existing: dict[SupportedCategory, dict[str, RemoteDocument]] = {}
        self._lookup_errors: dict[SupportedCategory, DocumentCenterError] = {}
        # (category, remote name) -> (local path, document) for this run
        self._claimed: dict[tuple[SupportedCategory, str], tuple[Path, RemoteDocument]] = {}

    def prepare(self, categories: Iterable[SupportedCategory]) -> None:
        wanted = [
            c
            for c in dict.fromkeys(categories)
            if c not in self._folder_ids and c not in self._lookup_errors
        ]
        if not wanted:
            return
        folders = None
        for category in wanted:
            try:
                folder_id = self.mapping.folder_id(category)
                if folder_id is None:
                    if folders is None:
                        folders = self.client.list_folders()
                    folder_id = self.client.find_folder_id(category.label, folders)
                if folder_id is not None:
                    docs = self.client.list_documents(folder_id)
            except DocumentCenterError as exc:
                log.warning("Could not look up the %s folder: %s", category.label, exc)
                self._lookup_errors[category] = exc
                continue
            self._folder_ids[category] = folder_id
            if folder_id is None:
                log.warning("%s folder not found.", category.label)
                continue
            self._existing[category] = {doc.name: doc for doc in docs if doc.url}
            log.info(
                "%s: folder id %s holds %s linked documents",
                category.label,
                folder_id,
                len(self._existing[category]),
            )

    def upload(self, path: Path, category: SupportedCategory) -> tuple[str, str]:
        self.prepare([category])
        error = self._lookup_errors.get(category)
        if error is not None:
            raise UploadError(
                f"{category.label} folder lookup failed: {error}",
                reason="auth" if isinstance(error, AuthorizationError) else "network",
                status_code=error.status_code,
            )
        folder_id = self._folder_ids.get(category)
        if folder_id is None:
            raise UploadError(
                f"No Document Center folder for {category.label}",
                reason="missing_folder",
            )

        local = path.resolve()
        key = (category, path.stem)
        claimed = self._claimed.get(key)
        if claimed is not None:
            owner, doc = claimed
            if owner != local:
                raise UploadError(
                    f"{path.name} has the same document name as {owner}",
                    reason="duplicate",
                )
            return str(doc.id), doc.url or ""

        doc = self._existing.get(category, {}).get(path.stem)
        if doc is not None:
            if not self.reuse_existing:
                raise UploadError(
                    f"{path.stem} already exists in {category.label}",
                    reason="duplicate",
                )
            log.debug("Reusing existing document %s for %s", doc.id, path.name)
        else:
            doc = self.client.upload_document(path, folder_id, publish=self.publish)
            log.debug("Uploaded %s as document %s", path.name, doc.id)
        self._claimed[key] = (local, doc)
        return str(doc.id), doc.url or ""
