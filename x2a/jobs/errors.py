"""Error taxonomy for job construction, submission, and artifact collection."""

from __future__ import annotations


class X2AError(Exception):
  """Base class for orchestration errors surfaced to API callers."""


class JobValidationError(X2AError):
  """Raised when a job request is missing fields its phase requires."""

  def __init__(self, message: str, *, missing: tuple[str, ...] = ()) -> None:
    super().__init__(message)
    self.missing = missing


class UnsupportedPhaseError(X2AError):
  """Raised when a request names a phase outside the supported set."""

  def __init__(self, phase: object) -> None:
    super().__init__(f"Unknown phase: {phase}")
    self.phase = phase


class SubmissionError(X2AError):
  """Raised when the batch-execution substrate rejects a workload."""

  def __init__(self, message: str, *, status_code: int | None = None, reason: str | None = None) -> None:
    super().__init__(message)
    self.status_code = status_code
    self.reason = reason


class CallbackTransportError(X2AError):
  """Raised when a completion report could not be delivered to the callback endpoint."""


class StorageError(X2AError):
  """Raised when the artifact ledger cannot be read or written."""
