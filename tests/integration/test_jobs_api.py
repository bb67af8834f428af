"""End-to-end tests for job creation through the HTTP API."""

from __future__ import annotations

import re
from unittest.mock import patch

import pytest

from x2a.jobs.errors import SubmissionError


@pytest.mark.anyio
async def test_migrate_job_is_created(async_client, submitter) -> None:
  payload = {"phase": "migrate", "name": "demo", "description": "Convert the web tier", "moduleName": "webserver"}
  response = await async_client.post("/x2a/jobs", json=payload)

  assert response.status_code == 201
  body = response.json()
  assert re.fullmatch(r"x2a-migrate-demo-[0-9a-z]+", body["jobName"])
  assert body["namespace"] == "x2a-test"
  assert body["phase"] == "migrate"
  assert body["created"] is True

  manifest = submitter.manifests[0]
  assert manifest["metadata"]["name"] == body["jobName"]
  command = manifest["spec"]["template"]["spec"]["containers"][0]["args"][0]
  assert "--source-technology Chef" in command
  assert "migration-plan-webserver.md" in command
  assert "'Convert webserver'" in command


@pytest.mark.anyio
async def test_snake_case_fields_are_accepted(async_client, submitter) -> None:
  payload = {"phase": "publish", "name": "demo", "description": "Publish", "module_name": "webserver", "github_owner": "acme", "skip_git": True}
  response = await async_client.post("/x2a/jobs", json=payload)

  assert response.status_code == 201
  command = submitter.manifests[0]["spec"]["template"]["spec"]["containers"][0]["args"][0]
  assert "--github-owner acme" in command
  assert "--skip-git" in command


@pytest.mark.anyio
async def test_missing_base_fields_return_400(async_client, submitter) -> None:
  response = await async_client.post("/x2a/jobs", json={"moduleName": "webserver"})

  assert response.status_code == 400
  assert response.json()["error"] == "Missing required fields: phase, name, description"
  assert submitter.manifests == []


@pytest.mark.anyio
async def test_blank_fields_count_as_missing(async_client) -> None:
  response = await async_client.post("/x2a/jobs", json={"phase": "init", "name": "  ", "description": "desc"})
  assert response.status_code == 400
  assert response.json()["error"] == "Missing required fields: name"


@pytest.mark.anyio
async def test_unknown_phase_returns_400(async_client, submitter) -> None:
  response = await async_client.post("/x2a/jobs", json={"phase": "rollback", "name": "demo", "description": "desc"})

  assert response.status_code == 400
  assert response.json()["error"] == "Unknown phase: rollback"
  assert submitter.manifests == []


@pytest.mark.anyio
async def test_phase_conditional_fields_return_400(async_client, submitter) -> None:
  response = await async_client.post("/x2a/jobs", json={"phase": "publish", "name": "demo", "description": "desc", "moduleName": "webserver"})

  assert response.status_code == 400
  assert response.json()["error"] == "Missing required fields for publish phase: githubOwner"
  assert submitter.manifests == []


@pytest.mark.anyio
async def test_analyze_without_module_returns_400(async_client, submitter) -> None:
  response = await async_client.post("/x2a/jobs", json={"phase": "analyze", "name": "demo", "description": "d"})

  assert response.status_code == 400
  assert response.json()["error"] == "Missing required fields for analyze phase: moduleName"
  assert submitter.manifests == []


@pytest.mark.anyio
async def test_analyze_with_module_is_created(async_client, submitter) -> None:
  response = await async_client.post("/x2a/jobs", json={"phase": "analyze", "name": "demo", "description": "d", "moduleName": "webserver"})

  assert response.status_code == 201
  assert response.json()["jobName"].startswith("x2a-analyze-demo-")
  assert len(submitter.manifests) == 1


@pytest.mark.anyio
async def test_submission_failure_returns_500_with_details(async_client, submitter) -> None:
  error = SubmissionError("Job 'x2a-init-demo-1' already exists in namespace 'x2a-test'", status_code=409, reason="Conflict")
  with patch.object(submitter, "submit", side_effect=error):
    response = await async_client.post("/x2a/jobs", json={"phase": "init", "name": "demo", "description": "desc"})

  assert response.status_code == 500
  body = response.json()
  assert body["error"] == "Failed to create job"
  assert "already exists" in body["details"]


@pytest.mark.anyio
async def test_wrong_field_types_return_422(async_client) -> None:
  response = await async_client.post("/x2a/jobs", json={"phase": "init", "name": 42, "description": "desc"})
  assert response.status_code == 422
  assert "input" not in response.json()["detail"][0]


@pytest.mark.anyio
async def test_health(async_client) -> None:
  response = await async_client.get("/health")
  assert response.status_code == 200
  assert response.json() == {"status": "ok"}
  assert response.headers["x-request-id"]
