"""Unit tests for workload assembly and submission."""

from __future__ import annotations

from dataclasses import replace

import pytest

from x2a.jobs.errors import JobValidationError, SubmissionError
from x2a.jobs.launcher import JobLauncher
from x2a.jobs.models import JobRequest, MigrationPhase

TICK = 1_700_000_000_000


def _launcher(settings, submitter) -> JobLauncher:
  return JobLauncher(settings, submitter, clock=lambda: TICK)


def test_callback_profile_wraps_command(settings, submitter) -> None:
  manifest = _launcher(settings, submitter).prepare(JobRequest(phase=MigrationPhase.INIT, name="Demo", description="desc"))
  command = manifest["spec"]["template"]["spec"]["containers"][0]["args"][0]
  assert command.startswith("X2A_CALLBACK_MAX_TIME=10\n")
  assert "uv run python app.py init --source-dir /app/source desc" in command
  assert command.rstrip().endswith('exit "$EXIT_CODE"')


def test_minimal_profile_leaves_command_unwrapped(settings, submitter) -> None:
  launcher = _launcher(replace(settings, job_profile="minimal"), submitter)
  manifest = launcher.prepare(JobRequest(phase=MigrationPhase.INIT, name="Demo", description="desc"))
  assert manifest["spec"]["template"]["spec"]["containers"][0]["args"] == ["uv run python app.py init --source-dir /app/source desc"]


@pytest.mark.anyio
async def test_create_job_submits_manifest(settings, submitter) -> None:
  request = JobRequest(phase=MigrationPhase.MIGRATE, name="demo", description="desc", module_name="webserver")
  launched = await _launcher(settings, submitter).create_job(request)

  assert launched.job_name == "x2a-migrate-demo-loyw3v28"
  assert launched.namespace == "x2a-test"
  assert launched.phase is MigrationPhase.MIGRATE
  assert len(submitter.manifests) == 1
  assert submitter.manifests[0]["metadata"]["name"] == launched.job_name


@pytest.mark.anyio
async def test_invalid_request_is_never_submitted(settings, submitter) -> None:
  request = JobRequest(phase=MigrationPhase.PUBLISH, name="demo", description="desc")
  with pytest.raises(JobValidationError):
    await _launcher(settings, submitter).create_job(request)
  assert submitter.manifests == []


@pytest.mark.anyio
async def test_submission_errors_propagate(settings) -> None:
  class RejectingSubmitter:
    def describe(self) -> str:
      return "rejecting"

    async def submit(self, manifest):
      raise SubmissionError("Job already exists", status_code=409, reason="AlreadyExists")

  request = JobRequest(phase=MigrationPhase.INIT, name="demo", description="desc")
  with pytest.raises(SubmissionError) as excinfo:
    await _launcher(settings, RejectingSubmitter()).create_job(request)
  assert excinfo.value.status_code == 409
