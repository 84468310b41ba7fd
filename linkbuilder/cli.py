"""CLI entrypoint for syncing documents and exporting their links.

Usage:
    linkbuilder sync --source ./docs --output ./out/links.csv
    linkbuilder sync --source ./docs --output ./out/links.csv --mapping mapping.json
    linkbuilder get-links --output-dir ./out
    linkbuilder get-links --output-dir ./out --category "Fee in Lieu"
    linkbuilder report --output ./out/report.csv
    linkbuilder folder-count "Fee in Lieu"
    linkbuilder inspect-folder "Fee in Lieu"
    linkbuilder delete-folder-content "test" --yes
    linkbuilder join-gis --features fila.csv --category "Fee in Lieu" --output ./out/fila_gis.csv
"""

from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Callable

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def _setup_logging(
    *,
    verbose: bool,
    detailed_logging: bool,
    log_file: Path | None,
) -> None:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    root_level = logging.DEBUG if verbose else logging.INFO
    root_logger.setLevel(root_level)

    console_fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    detailed_fmt = (
        "%(asctime)s | %(levelname)-8s | %(name)s | "
        "%(threadName)s | %(filename)s:%(lineno)d | %(message)s"
    )
    formatter = logging.Formatter(
        detailed_fmt if detailed_logging else console_fmt,
        "%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(root_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=20 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(detailed_fmt, "%Y-%m-%d %H:%M:%S"))
        root_logger.addHandler(file_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="linkbuilder",
        description="Sync local documents with the Document Center and export their links",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Read credentials from this file instead of ./.env",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--detailed-logging",
        action="store_true",
        help="Enable detailed logging (thread, file/line)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write a rotating debug log to this path",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sync = sub.add_parser("sync", help="Upload a local folder and write a links CSV")
    sync.add_argument("--source", type=Path, required=True, help="Local document folder")
    sync.add_argument("--output", type=Path, required=True, help="Links CSV to write")
    sync.add_argument(
        "--mapping",
        type=Path,
        default=None,
        help="JSON file mapping category labels to filename prefixes",
    )
    sync.add_argument(
        "--unmatched",
        choices=["skip", "report", "error"],
        default="report",
        help="What to do with files that match no category (default: report)",
    )
    sync.add_argument(
        "--draft",
        action="store_true",
        help="Upload documents as drafts instead of publishing them",
    )
    sync.add_argument(
        "--no-reuse",
        action="store_true",
        help="Treat documents already in the remote folder as duplicates",
    )
    sync.add_argument(
        "--no-progress",
        action="store_true",
        help="Hide the progress bar",
    )

    links = sub.add_parser("get-links", help="Export links already in the Document Center")
    links.add_argument("--output-dir", type=Path, required=True)
    links.add_argument(
        "--category",
        action="append",
        default=None,
        help="Category label to export (repeatable; default: all)",
    )
    links.add_argument("--mapping", type=Path, default=None)

    report = sub.add_parser("report", help="Write a storage usage report")
    report.add_argument("--output", type=Path, required=True)
    report.add_argument(
        "--folder",
        action="append",
        default=None,
        help="Extra folder name to size (repeatable)",
    )

    count = sub.add_parser("folder-count", help="Log count, size and links of a folder")
    count.add_argument("folder")

    inspect = sub.add_parser("inspect-folder", help="Log the metadata of a folder")
    inspect.add_argument("folder")

    delete = sub.add_parser(
        "delete-folder-content",
        help="Set every document in a folder to draft, then delete it",
    )
    delete.add_argument("folder")
    delete.add_argument("--yes", action="store_true", help="Confirm deletion")

    gis = sub.add_parser("join-gis", help="Join GIS features to document links")
    gis.add_argument("--features", type=Path, required=True, help="GIS layer export CSV")
    gis.add_argument("--category", required=True, help="Category label of the documents")
    gis.add_argument("--output", type=Path, required=True)
    gis.add_argument("--mapping", type=Path, default=None)

    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _load_mapping(args: argparse.Namespace):
    from .config import CategoryMapping, load_mapping

    if getattr(args, "mapping", None) is not None:
        return load_mapping(args.mapping)
    return CategoryMapping.default()


def _cmd_sync(args: argparse.Namespace, client) -> int:
    from .sync import sync_folder
    from .uploader import DocumentCenterUploader

    mapping = _load_mapping(args)
    uploader = DocumentCenterUploader(
        client,
        mapping,
        publish=not args.draft,
        reuse_existing=not args.no_reuse,
    )
    report = sync_folder(
        args.source,
        uploader,
        args.output,
        mapping=mapping,
        unmatched_policy=args.unmatched,
        progress=not args.no_progress,
    )
    return EXIT_OK if report.ok else EXIT_FAILED


def _cmd_get_links(args: argparse.Namespace, client) -> int:
    from .export import export_category_links
    from .models import SupportedCategory

    mapping = _load_mapping(args)
    if args.category:
        categories = [SupportedCategory.from_label(label) for label in args.category]
    else:
        categories = list(SupportedCategory)
    for category in categories:
        export_category_links(
            client,
            category,
            args.output_dir,
            folder_id=mapping.folder_id(category),
        )
    return EXIT_OK


def _cmd_report(args: argparse.Namespace, client) -> int:
    from .models import SupportedCategory
    from .report import build_report, collect_folder_sizes, write_report_csv
    from .utils import DEFAULT_REPORT_FOLDERS

    names = list(DEFAULT_REPORT_FOLDERS) + [c.label for c in SupportedCategory]
    for name in args.folder or []:
        if name not in names:
            names.append(name)
    log.info("Preparing report.")
    sizes = collect_folder_sizes(client, names)
    write_report_csv(build_report(sizes), args.output)
    return EXIT_OK


def _cmd_folder_count(args: argparse.Namespace, client) -> int:
    from .report import total_size

    folder_id = client.find_folder_id(args.folder)
    if folder_id is None:
        log.info("Folder not present.")
        return EXIT_FAILED
    log.info("Folder id: %s", folder_id)
    docs = client.list_documents(folder_id)
    log.info("Total count of documents in folder: %s", len(docs))
    log.info("Total size of documents in folder: %s", total_size(docs))
    for doc in docs:
        log.info("Name: %s", doc.name)
        if doc.file_size is not None:
            log.info("Size: %s", doc.file_size)
        if doc.url:
            log.info("Url: %s", doc.url)
    return EXIT_OK


def _cmd_inspect_folder(args: argparse.Namespace, client) -> int:
    folders = client.list_folders()
    folder_id = client.find_folder_id(args.folder, folders)
    if folder_id is None:
        log.info("Folder not present.")
        return EXIT_FAILED
    for folder in folders:
        if folder.id == folder_id:
            log.info("%s", folder)
    return EXIT_OK


def _cmd_delete_folder_content(args: argparse.Namespace, client) -> int:
    from tqdm import tqdm

    if not args.yes:
        log.error("Refusing to delete documents in %s without --yes", args.folder)
        return EXIT_CONFIG
    folder_id = client.find_folder_id(args.folder)
    if folder_id is None:
        log.info("Folder not present.")
        return EXIT_FAILED
    docs = client.list_documents(folder_id)
    for doc in tqdm(docs, desc="Updating files"):
        client.update_document(doc, "draft")
    for doc in tqdm(docs, desc="Deleting files"):
        client.delete_document(doc)
    log.info("Deleted %s documents from %s", len(docs), args.folder)
    return EXIT_OK


def _cmd_join_gis(args: argparse.Namespace, client) -> int:
    from .export import document_links, join_gis_links, load_gis_features, write_gis_links
    from .models import SupportedCategory

    category = SupportedCategory.from_label(args.category)
    features = load_gis_features(args.features)
    mapping = _load_mapping(args)
    folder_id = mapping.folder_id(category)
    if folder_id is None:
        folder_id = client.find_folder_id(category.label)
    if folder_id is None:
        log.warning("%s folder not found.", category.label)
        return EXIT_FAILED
    links = document_links(client.list_documents(folder_id))
    rows, missing = join_gis_links(features, links)
    write_gis_links(rows, args.output)
    if missing:
        log.warning("%s features have no document link", len(missing))
    return EXIT_OK


COMMANDS: dict[str, Callable[[argparse.Namespace, object], int]] = {
    "sync": _cmd_sync,
    "get-links": _cmd_get_links,
    "report": _cmd_report,
    "folder-count": _cmd_folder_count,
    "inspect-folder": _cmd_inspect_folder,
    "delete-folder-content": _cmd_delete_folder_content,
    "join-gis": _cmd_join_gis,
}


def main(argv: list[str] | None = None) -> int:
    """Run one command and return the process exit code."""
    from .client import DocumentCenterClient
    from .config import Settings
    from .errors import ConfigurationError, LinkError

    args = parse_args(argv)
    _setup_logging(
        verbose=args.verbose,
        detailed_logging=args.detailed_logging,
        log_file=args.log_file,
    )

    try:
        settings = Settings.from_env(args.env_file)
        with DocumentCenterClient(settings) as client:
            log.info("Authorizing user...")
            client.authorize()
            return COMMANDS[args.command](args, client)
    except ConfigurationError as exc:
        log.error("Configuration error: %s", exc)
        return EXIT_CONFIG
    except LinkError as exc:
        log.error("%s failed: %s", args.command, exc)
        return EXIT_FAILED
