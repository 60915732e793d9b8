"""
Reading and writing destination translation files.

A destination file is a JSON object with an ``entries`` mapping from the
English entity name to its translated entry.  Files are rewritten with two
space indentation, non-ASCII text kept as is, and a trailing newline only
if the original had one.
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from .exceptions import DestinationFileError
from .report import FileStats
from .text.normalize import normalize_key

logger = logging.getLogger("daggerheart-sync")

# (normalized key, entry, raw key) -> whether the entry was resolved
EntryUpdater = Callable[[str | None, dict[str, Any], str], bool]


@dataclass
class TranslationDocument:
    path: Path
    data: dict[str, Any] = field(default_factory=dict)
    trailing_newline: bool = True

    @property
    def entries(self) -> dict[str, Any]:
        entries = self.data.get("entries")
        return entries if isinstance(entries, dict) else {}


def read_document(path: Path) -> TranslationDocument:
    """Parse a destination file.

    Raises:
        DestinationFileError: If the file is missing or not a JSON object
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise DestinationFileError(f"Translation file not found: {path}", str(path)) from None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DestinationFileError(f"Translation file is not valid JSON: {path}", str(path), {"error": str(e)}) from e
    if not isinstance(data, dict):
        raise DestinationFileError(f"Translation file must hold a JSON object: {path}", str(path))
    return TranslationDocument(path=path, data=data, trailing_newline=raw.endswith("\n"))


def dump_document(document: TranslationDocument) -> str:
    output = json.dumps(document.data, indent=2, ensure_ascii=False)
    return output + ("\n" if document.trailing_newline else "")


def write_document(document: TranslationDocument) -> None:
    document.path.write_text(dump_document(document), encoding="utf-8")


def update_entries(path: Path, updater: EntryUpdater, stats: FileStats | None = None) -> list[str]:
    """Run ``updater`` over every entry of a destination file and save it.

    Args:
        path: Destination translation file
        updater: Callback applied to each entry
        stats: Filled with totals and per-entry outcomes when given

    Returns:
        Raw keys the updater could not resolve

    Raises:
        DestinationFileError: If the file is missing or not a translation document
    """
    document = read_document(path)
    missing: list[str] = []

    for key, entry in document.entries.items():
        if not isinstance(entry, dict):
            logger.warning(f"Skipping non-object entry {key!r} in {path.name}")
            continue
        if stats is not None:
            stats.total += 1
        before = copy.deepcopy(entry) if stats is not None else None
        if not updater(normalize_key(key), entry, key):
            missing.append(key)
            if stats is not None:
                stats.missing.append(key)
            continue
        if stats is not None:
            stats.processed += 1
            if entry == before:
                stats.unchanged.append(key)
            else:
                stats.updated += 1

    write_document(document)
    return missing


def apply_label(path: Path, label: str) -> bool:
    """Set the file's top-level ``label``; returns whether the file changed."""
    if not label:
        return False
    document = read_document(path)
    if document.data.get("label") == label:
        return False
    document.data["label"] = label
    write_document(document)
    return True


def load_snapshot_entries(path: Path) -> dict[str, Any]:
    """Entries of a snapshot file, or an empty mapping if there is none."""
    if not path.exists():
        logger.debug(f"No snapshot at {path}")
        return {}
    return read_document(path).entries
