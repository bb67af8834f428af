from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Mapping
from typing import Any

from x2a.jobs.callback import completion_status_for
from x2a.jobs.errors import SubmissionError
from x2a.services.substrate.interface import JobSubmitter

logger = logging.getLogger(__name__)


class LocalProcessSubmitter(JobSubmitter):
  """Runs workload containers as detached local processes to simulate a cluster."""

  def __init__(self, environ: Mapping[str, str] | None = None) -> None:
    self._environ = os.environ if environ is None else environ
    # Unbounded: every submitted name stays reserved for the life of the process.
    self._submitted: set[str] = set()
    self._reapers: set[asyncio.Task[None]] = set()

  def describe(self) -> str:
    return "local processes"

  def _resolve_env(self, entries: list[dict[str, Any]], job_name: str) -> dict[str, str]:
    """Resolve literal values and secret references the way the cluster would at start time."""
    env = {"PATH": self._environ.get("PATH", os.defpath)}
    missing: list[str] = []
    for entry in entries:
      name = entry["name"]
      if "value" in entry:
        env[name] = str(entry["value"])
        continue

      # Secret references resolve from this process's environment, keyed by variable name.
      secret_ref = entry.get("valueFrom", {}).get("secretKeyRef", {})
      value = self._environ.get(name)
      if value is not None:
        env[name] = value
      elif not secret_ref.get("optional", False):
        missing.append(name)

    if missing:
      raise SubmissionError(f"Cannot start job '{job_name}': required secret values are not set: {', '.join(missing)}", status_code=422, reason="Invalid")
    return env

  async def _reap(self, job_name: str, process: asyncio.subprocess.Process) -> None:
    exit_code = await process.wait()
    logger.info("Local workload %s exited with code %s (%s)", job_name, exit_code, completion_status_for(exit_code))

  async def submit(self, manifest: dict[str, Any]) -> str:
    """Start the manifest's container command without waiting for it to finish."""
    job_name = manifest["metadata"]["name"]
    if job_name in self._submitted:
      raise SubmissionError(f"Job '{job_name}' already exists", status_code=409, reason="AlreadyExists")

    container = manifest["spec"]["template"]["spec"]["containers"][0]
    argv = [*container.get("command", []), *container.get("args", [])]
    if not argv:
      raise SubmissionError(f"Job '{job_name}' has no command to run", status_code=422, reason="Invalid")
    env = self._resolve_env(container.get("env", []), job_name)

    try:
      process = await asyncio.create_subprocess_exec(*argv, env=env, stdin=asyncio.subprocess.DEVNULL, start_new_session=True)
    except OSError as exc:
      raise SubmissionError(f"Failed to start local workload '{job_name}': {exc}") from exc

    self._submitted.add(job_name)
    reaper = asyncio.create_task(self._reap(job_name, process))
    self._reapers.add(reaper)
    reaper.add_done_callback(self._reapers.discard)
    logger.info("Started local workload %s (pid=%s)", job_name, process.pid)
    return job_name
