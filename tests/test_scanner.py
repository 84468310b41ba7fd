from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import pytest

from linkbuilder import CategoryMapping, ConfigurationError, SupportedCategory, load_mapping, scan_folder


class TestScanFolder:
    def test_matches_prefix_and_directory(self, docs_dir: Path):
        found = {path.name: category for category, path in scan_folder(docs_dir)}
        assert found == {
            "AdvanceFinance_2019-04.pdf": SupportedCategory.ADVANCE_FINANCE,
            "Deferred Development 17.pdf": SupportedCategory.DEFERRED_DEVELOPMENT,
            "FeeInLieu_123.pdf": SupportedCategory.FEE_IN_LIEU,
            "parcel 88.pdf": SupportedCategory.UNRECORDED_PARCELS,
        }

    def test_yields_in_sorted_path_order(self, docs_dir: Path):
        paths = [path for _, path in scan_folder(docs_dir)]
        assert paths == sorted(paths)

    def test_unmatched_reported_by_default(self, docs_dir: Path):
        unmatched: list[Path] = []
        list(scan_folder(docs_dir, unmatched=unmatched))
        assert [p.name for p in unmatched] == ["random.txt"]

    def test_unmatched_skipped_silently(self, docs_dir: Path):
        unmatched: list[Path] = []
        found = list(scan_folder(docs_dir, unmatched_policy="skip", unmatched=unmatched))
        assert unmatched == []
        assert all(path.name != "random.txt" for _, path in found)

    def test_unmatched_error_policy_raises(self, docs_dir: Path):
        with pytest.raises(ConfigurationError, match="random.txt"):
            list(scan_folder(docs_dir, unmatched_policy="error"))

    def test_unknown_policy_rejected(self, docs_dir: Path):
        with pytest.raises(ConfigurationError):
            scan_folder(docs_dir, unmatched_policy="ignore")

    def test_missing_folder_fails_before_iteration(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="does not exist"):
            scan_folder(tmp_path / "nope")

    def test_file_instead_of_folder(self, tmp_path: Path):
        f = tmp_path / "FeeInLieu_1.pdf"
        f.write_text("x")
        with pytest.raises(ConfigurationError, match="not a folder"):
            scan_folder(f)

    @pytest.mark.skipif(
        sys.platform == "win32" or (hasattr(os, "geteuid") and os.geteuid() == 0),
        reason="permission bits are not enforced",
    )
    def test_unreadable_folder(self, tmp_path: Path):
        folder = tmp_path / "locked"
        folder.mkdir()
        folder.chmod(0)
        try:
            with pytest.raises(ConfigurationError, match="not readable"):
                scan_folder(folder)
        finally:
            folder.chmod(0o755)

    def test_hidden_files_ignored(self, tmp_path: Path):
        (tmp_path / ".FeeInLieu_1.pdf").write_text("x")
        hidden_dir = tmp_path / ".cache"
        hidden_dir.mkdir()
        (hidden_dir / "FeeInLieu_2.pdf").write_text("x")
        assert list(scan_folder(tmp_path)) == []

    def test_empty_folder(self, tmp_path: Path):
        assert list(scan_folder(tmp_path)) == []


class TestCategoryMapping:
    def test_longest_prefix_wins(self, tmp_path: Path):
        mapping = CategoryMapping.default()
        mapping.rules[SupportedCategory.ADVANCE_FINANCE].prefixes = ("Fee",)
        path = tmp_path / "FeeInLieu_9.pdf"
        assert mapping.match(path, tmp_path) is SupportedCategory.FEE_IN_LIEU

    def test_prefix_match_ignores_case_and_separators(self, tmp_path: Path):
        mapping = CategoryMapping.default()
        assert mapping.match(tmp_path / "fee-in-lieu 12.pdf", tmp_path) is SupportedCategory.FEE_IN_LIEU
        assert (
            mapping.match(tmp_path / "Service_Annexation_3.pdf", tmp_path)
            is SupportedCategory.SERVICE_ANNEXATION
        )

    def test_directory_above_root_is_not_used(self, tmp_path: Path):
        root = tmp_path / "Fee in Lieu"
        root.mkdir()
        mapping = CategoryMapping.default()
        assert mapping.match(root / "scan 1.pdf", root) is None

    def test_no_match_returns_none(self, tmp_path: Path):
        assert CategoryMapping.default().match(tmp_path / "random.txt", tmp_path) is None


class TestLoadMapping:
    def test_object_and_list_shapes(self, tmp_path: Path):
        path = tmp_path / "mapping.json"
        path.write_text(
            json.dumps(
                {
                    "Fee in Lieu": {"prefixes": ["FILA"], "folder_id": 1884},
                    "unrecorded parcels": ["UP"],
                }
            ),
            encoding="utf-8",
        )
        mapping = load_mapping(path)
        assert mapping.categories == [
            SupportedCategory.FEE_IN_LIEU,
            SupportedCategory.UNRECORDED_PARCELS,
        ]
        assert mapping.folder_id(SupportedCategory.FEE_IN_LIEU) == 1884
        assert mapping.folder_id(SupportedCategory.UNRECORDED_PARCELS) is None
        assert mapping.match(tmp_path / "FILA-0001.pdf", tmp_path) is SupportedCategory.FEE_IN_LIEU
        # Default prefixes are replaced, not merged.
        assert mapping.match(tmp_path / "FeeInLieu_1.pdf", tmp_path) is None

    def test_mapping_drives_scan(self, tmp_path: Path):
        (tmp_path / "UP-17.pdf").write_text("x")
        (tmp_path / "FeeInLieu_1.pdf").write_text("x")
        path = tmp_path.parent / f"{tmp_path.name}-mapping.json"
        path.write_text(json.dumps({"Unrecorded Parcels": ["UP"]}), encoding="utf-8")
        found = list(scan_folder(tmp_path, load_mapping(path), unmatched_policy="skip"))
        assert [(c, p.name) for c, p in found] == [
            (SupportedCategory.UNRECORDED_PARCELS, "UP-17.pdf")
        ]

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            "[]",
            "{}",
            json.dumps({"Parking Tickets": ["PT"]}),
            json.dumps({"Fee in Lieu": "FILA"}),
            json.dumps({"Fee in Lieu": {"prefixes": [1, 2]}}),
            json.dumps({"Fee in Lieu": {"prefixes": ["F"], "folder_id": "x"}}),
        ],
    )
    def test_invalid_files_rejected(self, tmp_path: Path, content: str):
        path = tmp_path / "mapping.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_mapping(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_mapping(tmp_path / "absent.json")
