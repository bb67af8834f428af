from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

import msgspec
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator

from x2a.jobs.models import CompletionReport, MigrationPhase


def _to_camel(string: str) -> str:
  """Convert snake_case to camelCase so the API accepts frontend-style payloads."""
  parts = string.split("_")
  if not parts:
    return string
  return parts[0] + "".join(part[:1].upper() + part[1:] for part in parts[1:])


class CamelModel(BaseModel):
  model_config = ConfigDict(populate_by_name=True, extra="ignore", alias_generator=_to_camel)


class JobCreateRequest(CamelModel):
  """Request to create a migration job.

  Required-field checks happen in the job service so missing values surface as 400s with
  the same error shape as other job construction failures.
  """

  phase: StrictStr | None = Field(default=None, description="Migration phase to execute (init, analyze, migrate, publish).")
  name: StrictStr | None = Field(default=None, description="Name for the migration job.")
  description: StrictStr | None = Field(default=None, description="Description of what this job will do.")
  module_name: StrictStr | None = Field(default=None, description="Module/cookbook name (analyze, migrate, publish).")
  source_technology: StrictStr | None = Field(default=None, description="Source technology being migrated from (migrate).")
  github_owner: StrictStr | None = Field(default=None, description="GitHub owner for publishing (publish).")
  github_branch: StrictStr | None = Field(default=None, description="GitHub branch for publishing (publish).")
  skip_git: StrictBool = Field(default=False, description="Skip git operations when publishing (publish).")
  base_path: StrictStr | None = Field(default=None, description="Base path inside the GitOps repository (publish).")
  collections_file: StrictStr | None = Field(default=None, description="Collections requirements file (publish).")
  inventory_file: StrictStr | None = Field(default=None, description="Inventory file (publish).")
  source_paths: list[StrictStr] | None = Field(default=None, description="Role source paths to publish (publish).")


class JobCreateResponse(CamelModel):
  job_name: str
  namespace: str
  phase: MigrationPhase
  created: bool


class SubstatusModel(CamelModel):
  key: StrictStr = Field(min_length=1)
  message: StrictStr | None = None


class ArtifactReferencesModel(CamelModel):
  migration_plan: StrictStr | None = None
  module_migration_plan: StrictStr | None = None
  ansible_sources: StrictStr | None = None
  gitops_repo: StrictStr | None = None


class CollectArtifactsRequest(CamelModel):
  """Completion report posted by a workload's callback wrapper."""

  job_name: StrictStr = Field(min_length=1)
  phase: MigrationPhase
  status: Literal["success", "failure"]
  substatus: SubstatusModel | None = None
  migration_id: StrictStr | None = None
  module_id: StrictStr | None = None
  artifact_references: ArtifactReferencesModel | None = None
  timestamp: StrictStr | None = None
  metadata: dict[str, Any] | None = None

  @field_validator("timestamp")
  @classmethod
  def validate_timestamp(cls, value: str | None) -> str | None:
    # Blank timestamps are treated as absent so the server assigns one.
    if value is None or not value.strip():
      return None
    try:
      parsed = datetime.fromisoformat(value)
    except ValueError as exc:
      raise ValueError("timestamp must be an ISO 8601 instant") from exc
    # Date-only and naive values are not instants.
    if "T" not in value.upper() or parsed.tzinfo is None:
      raise ValueError("timestamp must be an ISO 8601 instant with a time and UTC offset")
    return value

  def to_report(self) -> CompletionReport:
    return msgspec.convert(self.model_dump(mode="json", by_alias=True, exclude_none=True), CompletionReport)


class CollectArtifactsResponse(CamelModel):
  status: str = "collected"
  job_name: str
