"""Collect and query job completion reports."""

from __future__ import annotations

import logging
from functools import lru_cache

from starlette.concurrency import run_in_threadpool

from x2a.config import Settings
from x2a.jobs.errors import StorageError
from x2a.jobs.models import CompletionReport, LedgerEntry, MigrationPhase
from x2a.storage.artifacts_ledger import ArtifactLedger

logger = logging.getLogger(__name__)

# Artifact reference each phase is expected to produce.
_PHASE_ARTIFACT_FIELDS: dict[MigrationPhase, tuple[str, str]] = {
  MigrationPhase.INIT: ("migration_plan", "Migration plan"),
  MigrationPhase.ANALYZE: ("module_migration_plan", "Module migration plan"),
  MigrationPhase.MIGRATE: ("ansible_sources", "Ansible sources"),
  MigrationPhase.PUBLISH: ("gitops_repo", "GitOps repository"),
}


def _log_artifact_details(entry: LedgerEntry) -> None:
  if entry.substatus is not None:
    suffix = f" - {entry.substatus.message}" if entry.substatus.message else ""
    logger.info("Job substatus: %s%s", entry.substatus.key, suffix)

  if entry.artifact_references is None:
    return
  attribute, label = _PHASE_ARTIFACT_FIELDS[entry.phase]
  value = getattr(entry.artifact_references, attribute)
  if value:
    logger.info("%s: %s", label, value)


class ArtifactCollectorService:
  """Persists completion reports and serves them back by job name."""

  def __init__(self, ledger: ArtifactLedger) -> None:
    self._ledger = ledger

  @property
  def ledger(self) -> ArtifactLedger:
    return self._ledger

  async def collect_artifacts(self, report: CompletionReport) -> LedgerEntry:
    """Durably append a report; raises StorageError when the append fails."""
    logger.info("Collecting artifacts for job: %s, phase: %s, status: %s", report.job_name, report.phase.value, report.status)
    try:
      entry = await run_in_threadpool(self._ledger.append, report)
    except StorageError:
      logger.error("Failed to collect artifacts for job %s", report.job_name, exc_info=True)
      raise

    logger.info("Successfully collected artifacts for job %s", report.job_name)
    _log_artifact_details(entry)
    return entry

  async def get_artifacts(self) -> list[LedgerEntry]:
    return await run_in_threadpool(self._ledger.read_all)

  async def get_artifacts_by_job_name(self, job_name: str) -> LedgerEntry | None:
    return await run_in_threadpool(self._ledger.find_by_job_name, job_name)

  async def clear_artifacts(self) -> None:
    await run_in_threadpool(self._ledger.clear)
    logger.info("Cleared all artifacts")


@lru_cache(maxsize=4)
def get_artifact_service(settings: Settings) -> ArtifactCollectorService:
  """Return the process-wide collector for the configured ledger location."""
  ledger = ArtifactLedger.in_directory(settings.artifacts_path)
  logger.info("ArtifactCollectorService initialized: file=%s", ledger.path)
  return ArtifactCollectorService(ledger)
