"""Append-only JSON Lines ledger of job completion reports.

Each line is one self-contained JSON object. Records are never rewritten; the only
destructive operation is clearing the whole ledger. A torn final line (crash mid-write)
only affects that record: the next append starts on a fresh line and readers skip
lines that fail to decode.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import msgspec

from x2a.jobs.errors import StorageError
from x2a.jobs.models import CompletionReport, LedgerEntry

logger = logging.getLogger(__name__)

LEDGER_FILENAME = "x2a-artifacts.jsonl"

_ENCODER = msgspec.json.Encoder()
_DECODER = msgspec.json.Decoder(LedgerEntry)


def isoformat_utc(moment: datetime) -> str:
  """Format an instant as ISO 8601 UTC with millisecond precision and a Z suffix."""
  return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def enrich_report(report: CompletionReport, *, now: datetime) -> LedgerEntry:
  """Stamp a report with its collection time and fill a missing report timestamp."""
  stamp = isoformat_utc(now)
  fields = msgspec.structs.asdict(report)
  fields["timestamp"] = report.timestamp or stamp
  return LedgerEntry(**fields, collected_at=stamp)


@dataclass(frozen=True)
class MalformedRecord:
  """A ledger line that could not be decoded."""

  line_number: int
  raw: str
  error: str


@dataclass(frozen=True)
class LedgerScan:
  """Decoded entries in insertion order plus any lines that failed to decode."""

  entries: list[LedgerEntry] = field(default_factory=list)
  malformed: list[MalformedRecord] = field(default_factory=list)


class ArtifactLedger:
  """File-backed ledger; all operations are serialized through one lock."""

  def __init__(self, path: Path) -> None:
    self._path = path
    self._lock = threading.Lock()

  @classmethod
  def in_directory(cls, directory: str | Path) -> ArtifactLedger:
    return cls(Path(directory) / LEDGER_FILENAME)

  @property
  def path(self) -> Path:
    return self._path

  def append(self, report: CompletionReport, *, now: datetime | None = None) -> LedgerEntry:
    """Enrich a report and append it as one line; returns the stored entry."""
    entry = enrich_report(report, now=now or datetime.now(UTC))
    line = _ENCODER.encode(entry) + b"\n"

    with self._lock:
      try:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a+b") as handle:
          size = handle.seek(0, os.SEEK_END)
          # Start on a fresh line if a previous write was cut short.
          if size:
            handle.seek(size - 1)
            if handle.read(1) != b"\n":
              line = b"\n" + line
          handle.write(line)
          handle.flush()
          os.fsync(handle.fileno())
      except OSError as exc:
        raise StorageError(f"Failed to append to artifact ledger {self._path}: {exc}") from exc

    return entry

  def scan(self) -> LedgerScan:
    """Decode every line, collecting undecodable ones instead of failing."""
    with self._lock:
      try:
        raw = self._path.read_bytes()
      except FileNotFoundError:
        return LedgerScan()
      except OSError as exc:
        raise StorageError(f"Failed to read artifact ledger {self._path}: {exc}") from exc

    scan = LedgerScan()
    for line_number, line in enumerate(raw.split(b"\n"), start=1):
      if not line.strip():
        continue
      try:
        scan.entries.append(_DECODER.decode(line))
      except msgspec.DecodeError as exc:
        scan.malformed.append(MalformedRecord(line_number=line_number, raw=line.decode("utf-8", errors="replace"), error=str(exc)))
    return scan

  def read_all(self) -> list[LedgerEntry]:
    """Return all valid entries in insertion order; an absent ledger is empty."""
    scan = self.scan()
    for record in scan.malformed:
      logger.warning("Skipping malformed artifact ledger line %d in %s: %s", record.line_number, self._path, record.error)
    return scan.entries

  def find_by_job_name(self, job_name: str) -> LedgerEntry | None:
    """Return the first entry recorded for a job; later duplicates are ignored."""
    for entry in self.read_all():
      if entry.job_name == job_name:
        return entry
    return None

  def clear(self) -> None:
    """Remove every entry. Clearing an absent ledger is a no-op."""
    with self._lock:
      try:
        self._path.unlink(missing_ok=True)
      except OSError as exc:
        raise StorageError(f"Failed to clear artifact ledger {self._path}: {exc}") from exc
