"""Kubernetes Job manifests for x2a-convertor workloads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from x2a.config import JobProfile, Settings
from x2a.jobs.models import MigrationPhase

CONTAINER_NAME = "x2a-convertor"
APP_LABEL = "x2a-convertor"
SOURCE_VOLUME_NAME = "source"


@dataclass(frozen=True)
class SecretBinding:
  """An environment variable resolved from a key of the shared secret at start time."""

  env_name: str
  secret_key: str
  optional: bool = False


# Optional keys resolve to unset variables instead of blocking the pod from starting.
SECRET_ENV_BINDINGS: tuple[SecretBinding, ...] = (
  # LLM configuration
  SecretBinding("LLM_MODEL", "llm-model"),
  SecretBinding("OPENAI_API_BASE", "openai-api-base"),
  SecretBinding("VERTEXAI_PROJECT", "vertexai-project"),
  SecretBinding("OPENAI_API_KEY", "openai-api-key"),
  SecretBinding("LOG_LEVEL", "log-level"),
  SecretBinding("LANGCHAIN_DEBUG", "langchain-debug"),
  SecretBinding("RECURSION_LIMIT", "recursion-limit"),
  SecretBinding("MAX_EXPORT_ATTEMPTS", "max-export-attempts"),
  # GitHub
  SecretBinding("GITHUB_TOKEN", "github-token", optional=True),
  # Ansible Automation Platform
  SecretBinding("AAP_CONTROLLER_URL", "aap-controller-url"),
  SecretBinding("AAP_ORG_NAME", "aap-org-name"),
  SecretBinding("AAP_USERNAME", "aap-username"),
  SecretBinding("AAP_PASSWORD", "aap-password"),
  SecretBinding("AAP_OAUTH_TOKEN", "aap-oauth-token", optional=True),
  SecretBinding("AAP_CA_BUNDLE", "aap-ca-bundle", optional=True),
  SecretBinding("AAP_VERIFY_SSL", "aap-verify-ssl"),
  # Git identity for the publish phase; committer reuses the author keys.
  SecretBinding("GIT_AUTHOR_NAME", "git-author-name"),
  SecretBinding("GIT_AUTHOR_EMAIL", "git-author-email"),
  SecretBinding("GIT_COMMITTER_NAME", "git-author-name"),
  SecretBinding("GIT_COMMITTER_EMAIL", "git-author-email"),
)


@dataclass(frozen=True)
class WorkloadSpec:
  """Everything needed to render one workload manifest."""

  job_name: str
  phase: MigrationPhase
  description: str
  command: str
  profile: JobProfile


def _value_env(name: str, value: str) -> dict[str, Any]:
  return {"name": name, "value": value}


def _secret_env(binding: SecretBinding, secret_name: str) -> dict[str, Any]:
  secret_ref: dict[str, Any] = {"name": secret_name, "key": binding.secret_key}
  if binding.optional:
    secret_ref["optional"] = True
  return {"name": binding.env_name, "valueFrom": {"secretKeyRef": secret_ref}}


def build_environment(spec: WorkloadSpec, settings: Settings) -> list[dict[str, Any]]:
  """Return the container environment block for a workload's deployment profile."""
  env = [
    _value_env("HOME", "/tmp"),
    _value_env("UV_CACHE_DIR", "/tmp/.uv-cache"),
    _value_env("JOB_NAME", spec.job_name),
    _value_env("MIGRATION_PHASE", spec.phase.value),
  ]

  if spec.profile == "minimal":
    # Minimal deployments carry literal credentials and never report back.
    env.extend(_value_env(name, value) for name, value in settings.inline_env.items())
    return env

  env.append(_value_env("CALLBACK_URL", settings.callback_url))
  env.append(_value_env("CALLBACK_SECRET", settings.callback_secret or ""))
  env.extend(_secret_env(binding, settings.secrets_name) for binding in SECRET_ENV_BINDINGS)
  return env


def build_job_manifest(spec: WorkloadSpec, settings: Settings) -> dict[str, Any]:
  """Render a single-attempt batch/v1 Job running the command in a shell."""
  job_spec: dict[str, Any] = {
    # Failed attempts are terminal; callers resubmit instead of relying on retries.
    "backoffLimit": 0,
    "template": {
      "metadata": {"labels": {"app": APP_LABEL, "phase": spec.phase.value}},
      "spec": {
        "restartPolicy": "Never",
        "containers": [
          {
            "name": CONTAINER_NAME,
            "image": settings.image,
            "command": ["/bin/sh", "-c"],
            "args": [spec.command],
            "env": build_environment(spec, settings),
            "volumeMounts": [{"name": SOURCE_VOLUME_NAME, "mountPath": settings.source_dir}],
          }
        ],
        "volumes": [{"name": SOURCE_VOLUME_NAME, "persistentVolumeClaim": {"claimName": settings.source_pvc}}],
      },
    },
  }
  if settings.job_ttl_seconds is not None:
    job_spec["ttlSecondsAfterFinished"] = settings.job_ttl_seconds

  return {
    "apiVersion": "batch/v1",
    "kind": "Job",
    "metadata": {
      "name": spec.job_name,
      "namespace": settings.namespace,
      "labels": {"app": APP_LABEL, "phase": spec.phase.value},
      "annotations": {"description": spec.description},
    },
    "spec": job_spec,
  }
