"""Settings from the environment and the file-name -> category mapping."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .models import SupportedCategory, normalize_name
from .utils import DEFAULT_TIMEOUT_S

log = logging.getLogger(__name__)

_REQUIRED_ENV = {
    "api_key": "API_KEY",
    "partition": "PARTITION",
    "username": "USERNAME",
    "password": "PASSWORD",
    "host": "HOST",
    "authenticate_url": "AUTHENTICATE",
    "folder_url": "FOLDER",
    "document_url": "DOCUMENT",
}


# ---------------------------------------------------------------------------
# Connection settings
# ---------------------------------------------------------------------------


@dataclass
class Settings:
    """Credentials and endpoints for the Document Center API."""

    api_key: str
    partition: str
    username: str
    password: str = field(repr=False)
    host: str
    authenticate_url: str
    folder_url: str
    document_url: str
    timeout: float = DEFAULT_TIMEOUT_S

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """Load ``.env`` (or *env_file*) and read settings from the environment.

        Raises:
            ConfigurationError: a required variable is unset, or the timeout
                is not a number.
        """
        if env_file is not None:
            if not Path(env_file).is_file():
                raise ConfigurationError(f"Environment file not found: {env_file}")
            load_dotenv(env_file)
        else:
            load_dotenv()

        values: dict[str, Any] = {}
        missing = []
        for attr, var in _REQUIRED_ENV.items():
            value = os.environ.get(var, "").strip()
            if not value:
                missing.append(var)
            values[attr] = value
        if missing:
            raise ConfigurationError(
                "Missing required environment variables: " + ", ".join(missing)
            )

        raw_timeout = os.environ.get("LINKBUILDER_TIMEOUT")
        if raw_timeout:
            try:
                values["timeout"] = float(raw_timeout)
            except ValueError as exc:
                raise ConfigurationError(
                    f"LINKBUILDER_TIMEOUT must be a number, got {raw_timeout!r}"
                ) from exc
        return cls(**values)


# ---------------------------------------------------------------------------
# Category mapping
# ---------------------------------------------------------------------------

DEFAULT_PREFIXES: dict[SupportedCategory, tuple[str, ...]] = {
    SupportedCategory.ADVANCE_FINANCE: ("AdvanceFinance",),
    SupportedCategory.DEFERRED_DEVELOPMENT: ("DeferredDevelopment",),
    SupportedCategory.FEE_IN_LIEU: ("FeeInLieu",),
    SupportedCategory.SERVICE_ANNEXATION: ("ServiceAndAnnexation", "ServiceAnnexation"),
    SupportedCategory.UNRECORDED_PARCELS: ("UnrecordedParcel",),
}


@dataclass
class CategoryRule:
    category: SupportedCategory
    prefixes: tuple[str, ...] = ()
    folder_id: Optional[int] = None


@dataclass
class CategoryMapping:
    """Operator-defined rules that assign local files to categories.

    A file matches the category whose normalized prefix is the longest
    prefix of the file's normalized stem. Files that match no prefix fall
    back to the nearest parent directory named after a category label.
    """

    rules: dict[SupportedCategory, CategoryRule]

    @classmethod
    def default(cls) -> "CategoryMapping":
        return cls(
            {
                category: CategoryRule(category, prefixes)
                for category, prefixes in DEFAULT_PREFIXES.items()
            }
        )

    @property
    def categories(self) -> list[SupportedCategory]:
        return [c for c in SupportedCategory if c in self.rules]

    def folder_id(self, category: SupportedCategory) -> Optional[int]:
        rule = self.rules.get(category)
        return rule.folder_id if rule else None

    def match(self, path: Path, root: Optional[Path] = None) -> Optional[SupportedCategory]:
        """Return the category for *path*, or ``None`` when nothing matches."""
        stem = normalize_name(path.stem)
        best: Optional[SupportedCategory] = None
        best_len = 0
        for rule in self.rules.values():
            for prefix in rule.prefixes:
                key = normalize_name(prefix)
                if key and stem.startswith(key) and len(key) > best_len:
                    best, best_len = rule.category, len(key)
        if best is not None:
            return best

        parents = path.parent.relative_to(root).parts if root else path.parent.parts
        for part in reversed(parents):
            key = normalize_name(part)
            for category in self.rules:
                if key == normalize_name(category.label):
                    return category
        return None


def load_mapping(path: Path) -> CategoryMapping:
    """Read a JSON mapping file.

    Accepted shapes per category label::

        {"Fee in Lieu": {"prefixes": ["FeeInLieu", "FILA"], "folder_id": 1884}}
        {"Fee in Lieu": ["FeeInLieu", "FILA"]}
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Mapping file not found: {path}") from exc
    except (json.JSONDecodeError, OSError, ValueError) as exc:
        raise ConfigurationError(f"Could not read mapping file {path}: {exc}") from exc

    if not isinstance(data, dict) or not data:
        raise ConfigurationError(f"Mapping file {path} must be a non-empty JSON object")

    rules: dict[SupportedCategory, CategoryRule] = {}
    for label, entry in data.items():
        category = SupportedCategory.from_label(label)
        folder_id = None
        if isinstance(entry, list):
            prefixes = entry
        elif isinstance(entry, dict):
            prefixes = entry.get("prefixes", [])
            folder_id = entry.get("folder_id")
            if folder_id is not None and not isinstance(folder_id, int):
                raise ConfigurationError(
                    f"folder_id for {label!r} must be an integer, got {folder_id!r}"
                )
        else:
            raise ConfigurationError(
                f"Mapping for {label!r} must be a list of prefixes or an object"
            )
        if not isinstance(prefixes, list) or not all(isinstance(p, str) for p in prefixes):
            raise ConfigurationError(f"Prefixes for {label!r} must be a list of strings")
        rules[category] = CategoryRule(category, tuple(prefixes), folder_id)

    log.debug("Loaded mapping for %s categories from %s", len(rules), path)
    return CategoryMapping(rules)
