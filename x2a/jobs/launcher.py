"""Assemble and submit migration workloads."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from x2a.config import Settings
from x2a.jobs.callback import wrap_with_callback
from x2a.jobs.commands import CommandTemplate, build_phase_command
from x2a.jobs.manifest import WorkloadSpec, build_job_manifest
from x2a.jobs.models import JobRequest, MigrationPhase
from x2a.services.substrate.interface import JobSubmitter
from x2a.utils.ids import generate_job_name

logger = logging.getLogger(__name__)


def _now_ms() -> int:
  return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class LaunchedJob:
  """Identity of a workload accepted by the substrate."""

  job_name: str
  namespace: str
  phase: MigrationPhase


class JobLauncher:
  """Turns job requests into submitted workloads.

  Submission is fire-and-forget: once the substrate accepts the workload the only further
  signal is the workload's own completion callback.
  """

  def __init__(self, settings: Settings, submitter: JobSubmitter, *, clock: Callable[[], int] = _now_ms) -> None:
    self._settings = settings
    self._submitter = submitter
    self._clock = clock
    self._template = CommandTemplate.from_settings(settings)

  def job_name_for(self, request: JobRequest) -> str:
    return generate_job_name(self._settings.job_name_prefix, request.phase.value, request.name, timestamp_ms=self._clock())

  def build_command(self, request: JobRequest) -> str:
    """Return the container command for the configured deployment profile."""
    command = build_phase_command(request, self._template).render()
    if self._settings.job_profile == "minimal":
      return command
    return wrap_with_callback(command, timeout_seconds=self._settings.callback_timeout_seconds)

  def prepare(self, request: JobRequest) -> dict[str, Any]:
    """Build the full workload manifest without submitting it."""
    # Command construction fails fast before a name is spent or anything is submitted.
    command = self.build_command(request)
    spec = WorkloadSpec(job_name=self.job_name_for(request), phase=request.phase, description=request.description, command=command, profile=self._settings.job_profile)
    return build_job_manifest(spec, self._settings)

  async def create_job(self, request: JobRequest) -> LaunchedJob:
    """Submit a workload for the request and return its identity."""
    manifest = self.prepare(request)
    job_name = manifest["metadata"]["name"]
    namespace = manifest["metadata"]["namespace"]

    logger.info("Creating job: %s for phase: %s (profile=%s)", job_name, request.phase.value, self._settings.job_profile)
    accepted_name = await self._submitter.submit(manifest)
    logger.info("Successfully created job: %s", accepted_name)
    return LaunchedJob(job_name=accepted_name, namespace=namespace, phase=request.phase)
