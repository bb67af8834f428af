"""Job creation service: validates API requests and hands them to the launcher."""

from __future__ import annotations

import logging

from x2a.api.models import JobCreateRequest, JobCreateResponse
from x2a.config import Settings
from x2a.jobs.errors import JobValidationError
from x2a.jobs.launcher import JobLauncher
from x2a.jobs.models import JobRequest, MigrationPhase
from x2a.services.substrate.interface import JobSubmitter

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("phase", "name", "description")


def _clean(value: str | None) -> str | None:
  if value is None:
    return None
  stripped = value.strip()
  return stripped or None


def build_job_request(payload: JobCreateRequest) -> JobRequest:
  """Convert an API payload into a domain request, enforcing structural presence checks."""
  missing = [field for field in _REQUIRED_FIELDS if _clean(getattr(payload, field)) is None]
  if missing:
    raise JobValidationError(f"Missing required fields: {', '.join(missing)}", missing=tuple(missing))

  phase = MigrationPhase.parse(payload.phase)
  source_paths = tuple(path for path in (_clean(item) for item in payload.source_paths or ()) if path)

  return JobRequest(
    phase=phase,
    name=_clean(payload.name) or "",
    description=_clean(payload.description) or "",
    module_name=_clean(payload.module_name),
    source_technology=_clean(payload.source_technology),
    github_owner=_clean(payload.github_owner),
    github_branch=_clean(payload.github_branch),
    skip_git=payload.skip_git,
    base_path=_clean(payload.base_path),
    collections_file=_clean(payload.collections_file),
    inventory_file=_clean(payload.inventory_file),
    source_paths=source_paths,
  )


async def create_job(payload: JobCreateRequest, settings: Settings, submitter: JobSubmitter) -> JobCreateResponse:
  """Validate, build and submit a migration job."""
  request = build_job_request(payload)
  launched = await JobLauncher(settings, submitter).create_job(request)
  return JobCreateResponse(job_name=launched.job_name, namespace=launched.namespace, phase=launched.phase, created=True)
