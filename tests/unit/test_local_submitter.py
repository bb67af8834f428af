"""Unit tests for the local process substrate."""

from __future__ import annotations

import asyncio
import logging
import shutil

import pytest

from x2a.jobs.errors import SubmissionError
from x2a.services.substrate.local import LocalProcessSubmitter


def _manifest(job_name: str, script: str, env: list[dict] | None = None) -> dict:
  container = {"name": "x2a-convertor", "command": ["/bin/sh", "-c"], "args": [script], "env": env or []}
  return {"metadata": {"name": job_name, "namespace": "local"}, "spec": {"template": {"spec": {"containers": [container]}}}}


def _secret(name: str, *, optional: bool = False) -> dict:
  ref = {"name": "x2a-secrets", "key": name.lower().replace("_", "-")}
  if optional:
    ref["optional"] = True
  return {"name": name, "valueFrom": {"secretKeyRef": ref}}


def test_env_resolves_literals_and_secret_references() -> None:
  submitter = LocalProcessSubmitter(environ={"PATH": "/bin", "LLM_MODEL": "granite"})
  env = submitter._resolve_env([{"name": "HOME", "value": "/tmp"}, _secret("LLM_MODEL"), _secret("GITHUB_TOKEN", optional=True)], "job")
  assert env == {"PATH": "/bin", "HOME": "/tmp", "LLM_MODEL": "granite"}


def test_missing_required_secret_is_rejected() -> None:
  submitter = LocalProcessSubmitter(environ={"PATH": "/bin"})
  with pytest.raises(SubmissionError) as excinfo:
    submitter._resolve_env([_secret("OPENAI_API_KEY")], "job")
  assert excinfo.value.status_code == 422
  assert "OPENAI_API_KEY" in str(excinfo.value)


@pytest.mark.anyio
@pytest.mark.skipif(shutil.which("sh") is None, reason="requires a POSIX shell")
async def test_submit_runs_detached_and_reaps_exit(caplog) -> None:
  submitter = LocalProcessSubmitter(environ={"PATH": "/usr/bin:/bin"})

  with caplog.at_level(logging.INFO, logger="x2a.services.substrate.local"):
    job_name = await submitter.submit(_manifest("local-job", "exit 5"))
    await asyncio.wait_for(asyncio.gather(*submitter._reapers), timeout=10)

  assert job_name == "local-job"
  assert "Local workload local-job exited with code 5 (failure)" in caplog.text


@pytest.mark.anyio
@pytest.mark.skipif(shutil.which("sh") is None, reason="requires a POSIX shell")
async def test_duplicate_job_names_are_rejected() -> None:
  submitter = LocalProcessSubmitter(environ={"PATH": "/usr/bin:/bin"})
  await submitter.submit(_manifest("dup", "true"))

  with pytest.raises(SubmissionError) as excinfo:
    await submitter.submit(_manifest("dup", "true"))

  assert excinfo.value.status_code == 409
  await asyncio.wait_for(asyncio.gather(*submitter._reapers), timeout=10)


@pytest.mark.anyio
async def test_missing_executable_is_a_submission_error() -> None:
  submitter = LocalProcessSubmitter(environ={"PATH": "/nonexistent"})
  manifest = _manifest("broken", "true")
  manifest["spec"]["template"]["spec"]["containers"][0]["command"] = ["/nonexistent/x2a-shell"]

  with pytest.raises(SubmissionError, match="Failed to start local workload 'broken'"):
    await submitter.submit(manifest)


@pytest.mark.anyio
@pytest.mark.skipif(shutil.which("sh") is None, reason="requires a POSIX shell")
async def test_finished_job_names_stay_reserved() -> None:
  submitter = LocalProcessSubmitter(environ={"PATH": "/usr/bin:/bin"})
  await submitter.submit(_manifest("done", "true"))
  await asyncio.wait_for(asyncio.gather(*submitter._reapers), timeout=10)

  with pytest.raises(SubmissionError) as excinfo:
    await submitter.submit(_manifest("done", "true"))

  assert excinfo.value.reason == "AlreadyExists"
  assert "done" in submitter._submitted
