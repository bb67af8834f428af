"""Unit tests for the callback replay script's payload construction."""

from __future__ import annotations

import argparse
from datetime import UTC, datetime

from scripts.replay_callback import build_replay_payload

NOW = datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)


def _args(**overrides) -> argparse.Namespace:
  values = {
    "job_name": "x2a-init-demo-abc",
    "phase": "init",
    "exit_code": 0,
    "status": None,
    "substatus": None,
    "substatus_message": None,
    "migration_plan": None,
    "module_migration_plan": None,
    "ansible_sources": None,
    "gitops_repo": None,
  }
  values.update(overrides)
  return argparse.Namespace(**values)


def test_status_follows_exit_code() -> None:
  payload = build_replay_payload(_args(exit_code=2), now=NOW)
  assert payload == {
    "jobName": "x2a-init-demo-abc",
    "phase": "init",
    "status": "failure",
    "timestamp": "2025-01-02T03:04:05Z",
    "metadata": {"exitCode": 2, "replayed": True},
  }


def test_explicit_status_and_artifacts() -> None:
  payload = build_replay_payload(_args(phase="publish", status="success", exit_code=1, gitops_repo="https://github.com/acme/gitops", substatus="pushed", substatus_message="3 roles"), now=NOW)
  assert payload["status"] == "success"
  assert payload["artifactReferences"] == {"gitopsRepo": "https://github.com/acme/gitops"}
  assert payload["substatus"] == {"key": "pushed", "message": "3 roles"}
