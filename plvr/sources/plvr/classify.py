# plvr/sources/plvr/classify.py
#
# Route the entries of a season bundle to record kinds.
#
# Design decisions:
#   - Entry names are matched against three anchored patterns; anything else
#     (building/land/parking side tables, manifests, other regions' extras)
#     is skipped with a debug line.
#   - All matching entries are read before any of them is returned. An entry
#     that cannot be opened or read fails the whole bundle, so a season is
#     never partially routed.
#
# Invariants:
#   - Each returned ArchiveEntry has exactly one kind and a one-letter region.
#   - Entry order follows the archive's central directory.
from __future__ import annotations

import io
import re
import zipfile
from dataclasses import dataclass

from plvr.errors import ErrorCode, PipelineError
from plvr.log import PipelineLog
from plvr.sources.plvr.records import RecordKind

_TARGET = f"{__name__}.classify"

ENTRY_PATTERNS: dict[RecordKind, re.Pattern[str]] = {
    RecordKind.SALE: re.compile(r"^([a-z])_lvr_land_a\.csv$"),
    RecordKind.NEW_HOUSE: re.compile(r"^([a-z])_lvr_land_b\.csv$"),
    RecordKind.RENTAL: re.compile(r"^([a-z])_lvr_land_c\.csv$"),
}


@dataclass(frozen=True)
class ArchiveEntry:
    name: str
    kind: RecordKind
    region: str
    content: bytes


def match_entry(name: str) -> tuple[RecordKind, str] | None:
    """Return (kind, region code) for a recognised entry name, else None."""
    for kind, pattern in ENTRY_PATTERNS.items():
        match = pattern.match(name)
        if match:
            return kind, match.group(1)
    return None


def classify(bundle: bytes, logger: PipelineLog) -> list[ArchiveEntry]:
    """Open a bundle and return its sale/new-house/rental entries.

    Raises:
        PipelineError: CreateZipReaderError if the bytes are not a ZIP archive,
            OpenZippedFileError / ReadZippedFileError if an entry fails.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(bundle))
    except (zipfile.BadZipFile, OSError) as exc:
        raise PipelineError(ErrorCode.CREATE_ZIP_READER, str(exc), _TARGET) from exc

    entries: list[ArchiveEntry] = []
    with archive:
        for info in archive.infolist():
            matched = match_entry(info.filename)
            if matched is None:
                logger.debug(f"file {info.filename} is omitted")
                continue
            kind, region = matched
            try:
                handle = archive.open(info)
            except (zipfile.BadZipFile, NotImplementedError, RuntimeError, OSError) as exc:
                raise PipelineError(
                    ErrorCode.OPEN_ZIPPED_FILE, f"{info.filename}: {exc}", _TARGET
                ) from exc
            with handle:
                try:
                    content = handle.read()
                except (zipfile.BadZipFile, EOFError, OSError) as exc:
                    raise PipelineError(
                        ErrorCode.READ_ZIPPED_FILE, f"{info.filename}: {exc}", _TARGET
                    ) from exc
            logger.debug(f"opened file {info.filename}")
            entries.append(ArchiveEntry(name=info.filename, kind=kind, region=region, content=content))
    return entries
