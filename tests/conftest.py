"""Shared fixtures for the linkbuilder test suite.

The Document Center is never contacted: HTTP tests go through respx and
pipeline tests use the in-process fakes defined here.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

from linkbuilder import (
    Folder,
    RemoteDocument,
    Settings,
    SupportedCategory,
    UploadError,
    Uploader,
)

# ---------------------------------------------------------------------------
# Configure verbose logging for test debugging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)

BASE_URL = "https://cms.example/api"
ENV_VARS = (
    "API_KEY",
    "PARTITION",
    "USERNAME",
    "PASSWORD",
    "HOST",
    "AUTHENTICATE",
    "FOLDER",
    "DOCUMENT",
    "LINKBUILDER_TIMEOUT",
)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_key="key-123",
        partition="42",
        username="erose",
        password="secret",
        host="cityofexample.gov",
        authenticate_url=f"{BASE_URL}/Authenticate",
        folder_url=f"{BASE_URL}/DocumentCenter/Folders",
        document_url=f"{BASE_URL}/DocumentCenter/Documents",
        timeout=5.0,
    )


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every setting from the environment; restored after the test."""
    for var in ENV_VARS:
        monkeypatch.setenv(var, "placeholder")
        monkeypatch.delenv(var)
    return monkeypatch


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """A small source folder with one file per category plus an unmapped one."""
    folder = tmp_path / "docs"
    folder.mkdir()
    for name in (
        "FeeInLieu_123.pdf",
        "AdvanceFinance_2019-04.pdf",
        "Deferred Development 17.pdf",
        "random.txt",
    ):
        (folder / name).write_bytes(b"%PDF-" + name.encode())
    sub = folder / "Unrecorded Parcels"
    sub.mkdir()
    (sub / "parcel 88.pdf").write_bytes(b"%PDF-parcel")
    return folder


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeUploader(Uploader):
    """Deterministic uploader: id and url derive from the file stem."""

    def __init__(self, fail: dict[str, str] | None = None, explode_on: str | None = None):
        self.fail = fail or {}
        self.explode_on = explode_on
        self.calls: list[tuple[str, SupportedCategory]] = []
        self.prepared: list[SupportedCategory] = []

    def prepare(self, categories):
        self.prepared.extend(categories)

    def upload(self, path: Path, category: SupportedCategory) -> tuple[str, str]:
        self.calls.append((path.name, category))
        if path.name == self.explode_on:
            raise RuntimeError("uploader crashed")
        if path.name in self.fail:
            raise UploadError(f"could not upload {path.name}", reason=self.fail[path.name])
        return f"id-{path.stem}", f"https://cms.example/docs/{path.stem}"


class FakeDocumentCenter:
    """In-memory stand-in for DocumentCenterClient."""

    def __init__(self) -> None:
        self.folders = [
            Folder(id=11, name="Fee in Lieu"),
            Folder(id=12, name="Advance Finance Districts"),
            Folder(id=13, name="Unrecorded Parcels", is_archived=True),
            Folder(id=14, name="Unrecorded Parcels"),
            Folder(id=20, name="GIS"),
        ]
        self.documents: dict[int, list[RemoteDocument]] = {
            11: [
                RemoteDocument(
                    id=501,
                    name="FILA-0001",
                    folder_id=11,
                    file_name="FILA-0001.pdf",
                    file_size=1500.0,
                    url="https://cms.example/DocumentCenter/View/501",
                ),
                RemoteDocument(id=502, name="no-link", folder_id=11, file_size=10.0),
            ],
            12: [],
            14: [],
            20: [RemoteDocument(id=601, name="map", folder_id=20, file_size=500.0)],
        }
        self.authorized = False
        self.uploaded: list[tuple[str, int, bool]] = []
        self.updated: list[tuple[int, str]] = []
        self.deleted: list[int] = []
        self.list_folder_calls = 0
        self._next_id = 900

    # DocumentCenterClient surface
    def authorize(self) -> int:
        self.authorized = True
        return 7

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def list_folders(self) -> list[Folder]:
        self.list_folder_calls += 1
        return list(self.folders)

    def find_folder_id(self, name, folders=None):
        for folder in folders if folders is not None else self.list_folders():
            if folder.name == name and not folder.is_archived:
                return folder.id
        return None

    def list_documents(self, folder_id=None):
        if folder_id is None:
            return [doc for docs in self.documents.values() for doc in docs]
        return list(self.documents.get(folder_id, []))

    def upload_document(self, path, folder_id, *, publish=True):
        self.uploaded.append((path.name, folder_id, publish))
        self._next_id += 1
        doc = RemoteDocument(
            id=self._next_id,
            name=path.stem,
            folder_id=folder_id,
            file_name=path.name,
            url=f"https://cms.example/DocumentCenter/View/{self._next_id}",
        )
        self.documents.setdefault(folder_id, []).append(doc)
        return doc

    def update_document(self, doc, command):
        self.updated.append((doc.id, command))
        return doc

    def delete_document(self, doc):
        self.deleted.append(doc.id)


@pytest.fixture
def make_uploader():
    return FakeUploader


@pytest.fixture
def document_center() -> FakeDocumentCenter:
    return FakeDocumentCenter()
