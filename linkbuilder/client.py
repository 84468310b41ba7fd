"""CivicEngage Document Center REST client."""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Any, Optional

import httpx

from .config import Settings
from .errors import AuthorizationError, DocumentCenterError, UploadError
from .models import Folder, RemoteDocument
from .utils import DEFAULT_PAGE_SIZE, STATUS_DRAFT

log = logging.getLogger(__name__)

_JSON = "application/json"

# Upload failure reasons by HTTP status.
_UPLOAD_REASONS = {
    401: "auth",
    403: "auth",
    409: "duplicate",
    413: "quota",
    429: "quota",
    507: "quota",
}

UPDATE_COMMANDS = ("draft", "archive")


class DocumentCenterClient:
    """Thin wrapper over the Document Center endpoints.

    Call :meth:`authorize` once before any other request; it stores the
    session key sent with every later call.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        http: Optional[httpx.Client] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.settings = settings
        self.page_size = max(1, page_size)
        self.http = http or httpx.Client(timeout=settings.timeout)
        self.user_api_key: Optional[str] = None
        self.user_id: Optional[int] = None

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "DocumentCenterClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    def _base_headers(self) -> dict[str, str]:
        return {
            "Accept": _JSON,
            "apikey": self.settings.api_key,
            "partition": self.settings.partition,
        }

    def _headers(self) -> dict[str, str]:
        if self.user_api_key is None:
            raise AuthorizationError("Not authorized; call authorize() first")
        headers = self._base_headers()
        headers["userapikey"] = self.user_api_key
        return headers

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    def authorize(self) -> int:
        """Sign in and return the user id."""
        body = {
            "Username": f"{self.settings.username}@{self.settings.host}",
            "Password": self.settings.password,
        }
        headers = self._base_headers()
        headers["Content-Type"] = _JSON
        try:
            res = self.http.post(self.settings.authenticate_url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise AuthorizationError(f"Authorization request failed: {exc}") from exc

        if res.status_code != 200:
            log.warning("Authorization status: %s", res.status_code)
            raise AuthorizationError(
                f"Authorization failed with status {res.status_code}",
                status_code=res.status_code,
            )
        try:
            data = res.json()
        except ValueError as exc:
            raise AuthorizationError(
                "Authorization returned a non-JSON response",
                status_code=res.status_code,
            ) from exc
        if not isinstance(data, dict):
            data = {}
        if not data.get("APIKey"):
            raise AuthorizationError(
                f"Authorization refused: {data.get('Message') or 'no session key returned'}",
                status_code=res.status_code,
            )
        self.user_api_key = data["APIKey"]
        self.user_id = data.get("UserID")
        log.info("Authorization successful for user %s.", self.user_id)
        return self.user_id

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _query(self, url: str, filter_: Optional[str] = None) -> list[dict[str, Any]]:
        """GET every page of a listing endpoint and return the ``Source`` items."""
        items: list[dict[str, Any]] = []
        skip = 0
        while True:
            params: dict[str, Any] = {
                "$inlinecount": "allpages",
                "$top": self.page_size,
                "$skip": skip,
            }
            if filter_:
                params["$filter"] = filter_
            try:
                res = self.http.get(url, params=params, headers=self._headers())
            except httpx.HTTPError as exc:
                raise DocumentCenterError(f"Query to {url} failed: {exc}") from exc
            _raise_for_query_status(res, url)

            try:
                data = res.json()
            except ValueError as exc:
                raise DocumentCenterError(
                    f"Query to {url} returned a non-JSON response",
                    status_code=res.status_code,
                ) from exc
            if not isinstance(data, dict):
                raise DocumentCenterError(
                    f"Query to {url} returned an unexpected payload",
                    status_code=res.status_code,
                )
            page = data.get("Source") or []
            items.extend(page)
            log.debug(
                "Fetched %s items (skip=%s total=%s) from %s",
                len(page),
                skip,
                data.get("TotalCount"),
                url,
            )
            if not data.get("HasNextPage") or not page:
                break
            skip += len(page)
        return items

    def list_folders(self) -> list[Folder]:
        return [Folder.from_api(item) for item in self._query(self.settings.folder_url)]

    def find_folder_id(self, name: str, folders: Optional[list[Folder]] = None) -> Optional[int]:
        """Id of the non-archived folder called *name*, or ``None``."""
        for folder in folders if folders is not None else self.list_folders():
            if folder.name == name and not folder.is_archived:
                return folder.id
        return None

    def list_documents(self, folder_id: Optional[int] = None) -> list[RemoteDocument]:
        """List documents in one folder, or on the whole site when *folder_id* is None."""
        filter_ = f"FolderId eq {folder_id}" if folder_id is not None else None
        items = self._query(self.settings.document_url, filter_)
        return [RemoteDocument.from_api(item) for item in items]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def upload_document(
        self,
        path: Path,
        folder_id: int,
        *,
        publish: bool = True,
    ) -> RemoteDocument:
        """Upload *path* into *folder_id* and return the created document.

        Raises:
            UploadError: for any failure, with ``reason`` set.
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise UploadError(f"Could not read {path}: {exc}", reason="io") from exc

        body = {
            "Name": path.stem,
            "FileName": path.name,
            "File": base64.b64encode(data).decode("ascii"),
            "FolderId": folder_id,
            "Status": "Published" if publish else "Draft",
            "ConvertToPdf": "false",
            "IsVisible": "false",
        }
        headers = self._headers()
        headers["Content-Type"] = _JSON
        try:
            res = self.http.post(self.settings.document_url, json=body, headers=headers)
        except httpx.TimeoutException as exc:
            raise UploadError(f"Upload of {path.name} timed out", reason="network") from exc
        except httpx.HTTPError as exc:
            raise UploadError(
                f"Upload of {path.name} failed: {exc}", reason="network"
            ) from exc

        if res.status_code not in (200, 201):
            log.info("Upload response for %s: %s", path.name, res.text[:500])
            raise UploadError(
                f"Upload of {path.name} rejected with status {res.status_code}",
                reason=_UPLOAD_REASONS.get(res.status_code, "rejected"),
                status_code=res.status_code,
            )

        try:
            payload = res.json()
        except ValueError as exc:
            raise UploadError(
                f"Upload of {path.name} returned a non-JSON response",
                status_code=res.status_code,
            ) from exc
        if not isinstance(payload, dict) or not payload.get("Id") or not payload.get("URL"):
            raise UploadError(
                f"Upload of {path.name} returned no document id or url",
                status_code=res.status_code,
            )
        return RemoteDocument.from_api(payload)

    def update_document(self, doc: RemoteDocument, command: str) -> RemoteDocument:
        """Set *doc* to draft (``"draft"``) or archive it (``"archive"``).

        Published documents must be set to draft before they can be deleted.
        """
        if command not in UPDATE_COMMANDS:
            raise ValueError(f"Unknown update command {command!r}")
        payload = dict(doc.raw) or {"Id": doc.id, "Name": doc.name}
        if command == "draft":
            payload["Status"] = STATUS_DRAFT
        else:
            payload["IsArchived"] = True

        headers = self._headers()
        headers["Content-Type"] = _JSON
        url = f"{self.settings.document_url.rstrip('/')}/{doc.id}"
        try:
            res = self.http.put(url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise DocumentCenterError(f"Update of document {doc.id} failed: {exc}") from exc
        if res.status_code != 200:
            raise DocumentCenterError(
                f"Update of document {doc.id} failed with status {res.status_code}",
                status_code=res.status_code,
            )
        try:
            return RemoteDocument.from_api(res.json())
        except (ValueError, KeyError, TypeError):
            return RemoteDocument.from_api(payload)

    def delete_document(self, doc: RemoteDocument) -> None:
        url = f"{self.settings.document_url.rstrip('/')}/{doc.id}"
        try:
            res = self.http.delete(url, headers=self._headers())
        except httpx.HTTPError as exc:
            raise DocumentCenterError(f"Delete of document {doc.id} failed: {exc}") from exc
        if res.status_code not in (200, 204):
            raise DocumentCenterError(
                f"Delete of document {doc.id} failed with status {res.status_code}",
                status_code=res.status_code,
            )


def _raise_for_query_status(res: httpx.Response, url: str) -> None:
    if res.status_code == 200:
        return
    if res.status_code in (401, 403):
        raise AuthorizationError(
            f"Query to {url} was not authorized ({res.status_code})",
            status_code=res.status_code,
        )
    raise DocumentCenterError(
        f"Query to {url} failed with status {res.status_code}",
        status_code=res.status_code,
    )
