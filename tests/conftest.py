"""Shared fixtures: deterministic settings, a recording substrate, and an app client."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from x2a.api.deps import artifact_service, job_submitter
from x2a.config import Settings, get_settings
from x2a.main import app
from x2a.services.artifacts import ArtifactCollectorService
from x2a.storage.artifacts_ledger import ArtifactLedger


class RecordingSubmitter:
  """Substrate double that accepts every manifest and remembers it."""

  def __init__(self) -> None:
    self.manifests: list[dict[str, Any]] = []

  def describe(self) -> str:
    return "recording"

  async def submit(self, manifest: dict[str, Any]) -> str:
    self.manifests.append(manifest)
    return manifest["metadata"]["name"]


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
def settings(tmp_path) -> Settings:
  get_settings.cache_clear()
  base = get_settings()
  get_settings.cache_clear()
  return replace(
    base,
    debug=False,
    log_http_bodies=False,
    namespace="x2a-test",
    image="quay.io/x2ansible/x2a-convertor:test",
    convertor_command=("uv", "run", "python", "app.py"),
    source_dir="/app/source",
    source_pvc="x2a-source-pvc",
    secrets_name="x2a-secrets",
    job_name_prefix="x2a",
    job_profile="callback",
    job_ttl_seconds=None,
    default_source_technology="Chef",
    default_github_branch="x2a-migration",
    base_url="http://x2a.test:7007",
    callback_secret=None,
    callback_timeout_seconds=10,
    artifacts_path=str(tmp_path),
    substrate_provider="local",
    inline_env={},
  )


@pytest.fixture
def submitter() -> RecordingSubmitter:
  return RecordingSubmitter()


@pytest.fixture
def ledger(settings) -> ArtifactLedger:
  return ArtifactLedger.in_directory(settings.artifacts_path)


@pytest.fixture
async def async_client(settings, submitter, ledger):
  service = ArtifactCollectorService(ledger)
  app.dependency_overrides[get_settings] = lambda: settings
  app.dependency_overrides[job_submitter] = lambda: submitter
  app.dependency_overrides[artifact_service] = lambda: service
  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
    yield client
  app.dependency_overrides.clear()
