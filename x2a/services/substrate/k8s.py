from __future__ import annotations

import json
import logging
import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config import ConfigException
from starlette.concurrency import run_in_threadpool

from x2a.config import Settings
from x2a.jobs.errors import SubmissionError
from x2a.services.substrate.interface import JobSubmitter

logger = logging.getLogger(__name__)

_FALLBACK_KUBECONFIG_PATHS = ("~/.kube/config", "~/.kube/kubeconfig")


@dataclass(frozen=True)
class ClusterConfig:
  """Explicit cluster access configuration; never read from or written to os.environ implicitly."""

  kubeconfig_path: str | None = None
  context: str | None = None
  in_cluster: bool = False

  @classmethod
  def from_settings(cls, settings: Settings) -> ClusterConfig:
    return cls(kubeconfig_path=settings.kubeconfig_path, context=settings.kube_context, in_cluster=settings.kube_in_cluster)


def _resolve_kubeconfig_path(explicit: str | None, environ: Mapping[str, str]) -> str | None:
  """Pick the kubeconfig file to load, or None when none is available."""
  if explicit:
    return str(Path(explicit).expanduser())

  # KUBECONFIG may list several files; the first existing one wins.
  for candidate in (environ.get("KUBECONFIG") or "").split(os.pathsep):
    if candidate and Path(candidate).expanduser().is_file():
      return str(Path(candidate).expanduser())

  for candidate in _FALLBACK_KUBECONFIG_PATHS:
    path = Path(candidate).expanduser()
    if path.is_file():
      return str(path)

  return None


def _in_cluster_client() -> client.ApiClient:
  configuration = client.Configuration()
  config.load_incluster_config(client_configuration=configuration)
  return client.ApiClient(configuration)


def build_api_client(cluster: ClusterConfig) -> client.ApiClient:
  """Create an API client from a kubeconfig file, falling back to the in-cluster service account."""
  if cluster.in_cluster:
    logger.info("Loading in-cluster Kubernetes configuration")
    return _in_cluster_client()

  kubeconfig_path = _resolve_kubeconfig_path(cluster.kubeconfig_path, os.environ)
  if kubeconfig_path:
    try:
      api_client = config.new_client_from_config(config_file=kubeconfig_path, context=cluster.context, persist_config=False)
      logger.info("Loaded Kubernetes configuration from %s (context=%s)", kubeconfig_path, cluster.context or "<current>")
      return api_client
    except ConfigException as exc:
      logger.warning("Failed to load kubeconfig %s: %s. Will attempt in-cluster configuration.", kubeconfig_path, exc)

  logger.info("Loading in-cluster Kubernetes configuration")
  return _in_cluster_client()


def _api_error_detail(exc: ApiException) -> str:
  """Extract the server-provided message from an API error body when present."""
  body = exc.body
  if isinstance(body, bytes):
    body = body.decode("utf-8", errors="replace")
  if body:
    try:
      parsed = json.loads(body)
    except (TypeError, ValueError):
      return str(body)
    if isinstance(parsed, dict) and parsed.get("message"):
      return str(parsed["message"])
  return exc.reason or "unknown error"


def submission_error_from_api(exc: ApiException, *, job_name: str, namespace: str) -> SubmissionError:
  """Translate a Kubernetes API rejection into a SubmissionError."""
  detail = _api_error_detail(exc)
  if exc.status == 403:
    message = f"Permission denied to create job '{job_name}' in namespace '{namespace}': {detail}"
  elif exc.status == 409:
    message = f"Job '{job_name}' already exists in namespace '{namespace}'"
  elif exc.status == 422:
    message = f"Job '{job_name}' was rejected as invalid: {detail}"
  else:
    message = f"Failed to create job '{job_name}' in namespace '{namespace}': {detail}"
  return SubmissionError(message, status_code=exc.status, reason=exc.reason)


class KubernetesJobSubmitter(JobSubmitter):
  """Submits workloads as Kubernetes batch/v1 Jobs."""

  def __init__(self, cluster: ClusterConfig, *, batch_api: client.BatchV1Api | None = None) -> None:
    self._cluster = cluster
    self._batch_api = batch_api
    self._lock = threading.Lock()

  def describe(self) -> str:
    source = "in-cluster" if self._cluster.in_cluster else (self._cluster.kubeconfig_path or "default kubeconfig")
    return f"kubernetes ({source})"

  def _get_batch_api(self) -> client.BatchV1Api:
    # Cluster credentials are loaded on first use so the service can start without them.
    with self._lock:
      if self._batch_api is None:
        try:
          self._batch_api = client.BatchV1Api(build_api_client(self._cluster))
        except ConfigException as exc:
          logger.error("Failed to load Kubernetes configuration: %s", exc)
          raise SubmissionError("Unable to load Kubernetes configuration. Please ensure a kubeconfig is available or the service runs in a cluster.") from exc
      return self._batch_api

  def _create(self, namespace: str, manifest: dict[str, Any]) -> None:
    self._get_batch_api().create_namespaced_job(namespace=namespace, body=manifest)

  async def submit(self, manifest: dict[str, Any]) -> str:
    """Create the Job in the manifest's namespace."""
    metadata = manifest["metadata"]
    job_name = metadata["name"]
    namespace = metadata["namespace"]

    try:
      await run_in_threadpool(self._create, namespace, manifest)
    except ApiException as exc:
      logger.error("Kubernetes rejected job %s in namespace %s: status=%s reason=%s", job_name, namespace, exc.status, exc.reason)
      raise submission_error_from_api(exc, job_name=job_name, namespace=namespace) from exc

    logger.info("Created Kubernetes job %s in namespace %s", job_name, namespace)
    return job_name
