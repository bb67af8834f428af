"""Domain models for migration jobs and their completion reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

import msgspec

from x2a.jobs.errors import UnsupportedPhaseError

CompletionStatus = Literal["success", "failure"]


class MigrationPhase(str, Enum):
  """Stages of the x2a-convertor migration workflow."""

  INIT = "init"
  ANALYZE = "analyze"
  MIGRATE = "migrate"
  PUBLISH = "publish"

  @classmethod
  def parse(cls, value: object) -> MigrationPhase:
    """Resolve a raw phase value, rejecting anything outside the closed set."""
    if isinstance(value, cls):
      return value
    if isinstance(value, str):
      try:
        return cls(value.strip().lower())
      except ValueError:
        pass
    raise UnsupportedPhaseError(value)


@dataclass(frozen=True)
class JobRequest:
  """Validated input for creating a migration job."""

  phase: MigrationPhase
  name: str
  description: str
  module_name: str | None = None
  source_technology: str | None = None
  github_owner: str | None = None
  github_branch: str | None = None
  skip_git: bool = False
  base_path: str | None = None
  collections_file: str | None = None
  inventory_file: str | None = None
  source_paths: tuple[str, ...] = field(default_factory=tuple)


class Substatus(msgspec.Struct, rename="camel", omit_defaults=True):
  """Finer-grained outcome reported alongside the job status."""

  key: str
  message: str | None = None


class ArtifactReferences(msgspec.Struct, rename="camel", omit_defaults=True):
  """Phase-shaped pointers to the artifacts a job produced."""

  migration_plan: str | None = None
  module_migration_plan: str | None = None
  ansible_sources: str | None = None
  gitops_repo: str | None = None


class CompletionReport(msgspec.Struct, rename="camel", omit_defaults=True, kw_only=True):
  """Outcome a workload reports about itself through the completion callback."""

  job_name: str
  phase: MigrationPhase
  status: CompletionStatus
  substatus: Substatus | None = None
  migration_id: str | None = None
  module_id: str | None = None
  artifact_references: ArtifactReferences | None = None
  timestamp: str | None = None
  metadata: dict[str, Any] | None = None


class LedgerEntry(msgspec.Struct, rename="camel", omit_defaults=True, kw_only=True):
  """One enriched completion report as persisted in the artifact ledger."""

  job_name: str
  phase: MigrationPhase
  status: CompletionStatus
  timestamp: str
  collected_at: str
  substatus: Substatus | None = None
  migration_id: str | None = None
  module_id: str | None = None
  artifact_references: ArtifactReferences | None = None
  metadata: dict[str, Any] | None = None

  def to_dict(self) -> dict[str, Any]:
    """Return the camelCase JSON-compatible representation."""
    return msgspec.to_builtins(self)
