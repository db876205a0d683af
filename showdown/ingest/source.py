"""
CSV input discovery and streaming.

Files are found by substring match on their names (any `*.csv` containing
"users" is the users file, and so on). Rows are streamed lazily with
`csv.DictReader`; nothing is read ahead of what the consumer pulls.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional, Sequence

from pydantic import ValidationError

from showdown.domain.models import _Record
from showdown.domain.schema import EntitySpec
from showdown.errors import MissingInputError, RowSkipped
from showdown.ingest.transform import Row, Transformer
from showdown.utils.logging import get_logger

log = get_logger(__name__)


def discover_inputs(data_path: Path | str, entities: Sequence[EntitySpec]) -> Dict[str, Path]:
    """
    Map each entity name to its CSV file under `data_path`.

    Raises
    ------
    MissingInputError
        If the directory does not exist or any entity has no matching file.
    """
    root = Path(data_path)
    if not root.is_dir():
        raise MissingInputError(f"Data path not found: {root}", missing=[str(root)])

    candidates = sorted(p for p in root.iterdir() if p.is_file() and p.suffix.lower() == ".csv")
    found: Dict[str, Path] = {}
    missing = []
    for spec in entities:
        match = next((p for p in candidates if spec.file_token in p.name), None)
        if match is None:
            missing.append(spec.name)
        else:
            found[spec.name] = match

    if missing:
        raise MissingInputError(
            f"No CSV file for {', '.join(missing)} in {root}", missing=missing
        )
    log.info(
        f"Found {len(found)} input files in {root}",
        extra={"files": {name: path.name for name, path in found.items()}},
    )
    return found


def read_rows(path: Path) -> Iterator[Row]:
    """
    Yield header-keyed rows, skipping rows whose named columns are all blank.

    Undecodable bytes become U+FFFD so one bad byte only affects its own row.
    Fields beyond the header (kept by `DictReader` as a list under `None`) are
    ignored.
    """
    with path.open("r", newline="", encoding="utf-8", errors="replace") as handle:
        for row in csv.DictReader(handle):
            if not any(
                isinstance(value, str) and value.strip()
                for key, value in row.items()
                if key is not None
            ):
                continue
            yield row


def iter_records(
    rows: Iterator[Row],
    transform: Transformer,
    on_read: Optional[Callable[[], None]] = None,
    on_skip: Optional[Callable[[], None]] = None,
) -> Iterator[_Record]:
    """Transform rows one at a time; rows that cannot be transformed are dropped."""
    for row in rows:
        if on_read is not None:
            on_read()
        try:
            yield transform(row)
        except (RowSkipped, ValidationError) as exc:
            if on_skip is not None:
                on_skip()
            log.debug(f"Row skipped: {exc}")


__all__ = ["discover_inputs", "read_rows", "iter_records"]
