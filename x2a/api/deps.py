"""Shared FastAPI dependencies for the job substrate and artifact ledger."""

from __future__ import annotations

from fastapi import Depends

from x2a.config import Settings, get_settings
from x2a.services.artifacts import ArtifactCollectorService, get_artifact_service
from x2a.services.substrate.factory import get_job_submitter
from x2a.services.substrate.interface import JobSubmitter


def job_submitter(settings: Settings = Depends(get_settings)) -> JobSubmitter:  # noqa: B008
  """Dependency returning the configured batch-execution substrate."""
  return get_job_submitter(settings)


def artifact_service(settings: Settings = Depends(get_settings)) -> ArtifactCollectorService:  # noqa: B008
  """Dependency returning the collector bound to the configured ledger."""
  return get_artifact_service(settings)
