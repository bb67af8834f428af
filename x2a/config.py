"""Application configuration loaded from environment variables."""

from __future__ import annotations

import json
import os
import shlex
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Literal

from x2a.utils.env import apply_env_file, env_file_path

JobProfile = Literal["callback", "minimal"]
SubstrateProvider = Literal["kubernetes", "local"]

_JOB_PROFILES = ("callback", "minimal")
_SUBSTRATE_PROVIDERS = ("kubernetes", "local")
CALLBACK_PATH = "/x2a/collectArtifacts"


@dataclass(frozen=True)
class Settings:
  """Typed settings for the X2A orchestration service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  log_http_bodies: bool
  log_http_body_bytes: int
  namespace: str
  image: str
  convertor_command: tuple[str, ...]
  source_dir: str
  source_pvc: str
  secrets_name: str
  job_name_prefix: str
  job_profile: JobProfile
  job_ttl_seconds: int | None
  default_source_technology: str
  default_github_branch: str
  base_url: str
  callback_secret: str | None
  callback_timeout_seconds: int
  artifacts_path: str
  substrate_provider: SubstrateProvider
  kubeconfig_path: str | None
  kube_context: str | None
  kube_in_cluster: bool
  inline_env: dict[str, str] = field(default_factory=dict, hash=False)

  @property
  def callback_url(self) -> str:
    """Return the absolute URL workloads report their completion to."""
    return f"{self.base_url.rstrip('/')}{CALLBACK_PATH}"


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ("http://localhost:3000",)

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("X2A_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("X2A_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  return value or None


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _parse_optional_int(name: str) -> int | None:
  raw = _optional_str(os.getenv(name))
  if raw is None:
    return None
  value = int(raw)
  if value < 0:
    raise ValueError(f"{name} must be zero or a positive integer.")
  return value


def _parse_inline_env(raw: str | None) -> dict[str, str]:
  """Parse a JSON object of literal workload environment values."""
  if not raw:
    return {}
  try:
    parsed = json.loads(raw)
  except json.JSONDecodeError as exc:
    raise ValueError(f"X2A_INLINE_ENV must be a JSON object: {exc}") from exc

  if not isinstance(parsed, dict):
    raise ValueError("X2A_INLINE_ENV must be a JSON object.")

  return {str(key): "" if value is None else str(value) for key, value in parsed.items()}


def _parse_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
  value = (os.getenv(name) or default).strip().lower()
  if value not in choices:
    raise ValueError(f"{name} must be one of: {', '.join(choices)}.")
  return value


def _parse_command(raw: str | None) -> tuple[str, ...]:
  command = tuple(shlex.split(raw or "uv run python app.py"))
  if not command:
    raise ValueError("X2A_CONVERTOR_COMMAND must not be empty.")
  return command


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process, filling unset variables from the dotenv file first."""

  apply_env_file(env_file_path())

  environment = os.getenv("X2A_ENV", "development").lower()
  # Toggle verbose error output and diagnostics in non-production environments.
  debug = _parse_bool(os.getenv("X2A_DEBUG"))

  log_max_bytes = _positive_int("X2A_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("X2A_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("X2A_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Allow opt-in logging of HTTP request/response bodies with a size cap.
  log_http_body_bytes = _positive_int("X2A_LOG_HTTP_BODY_BYTES", "2048")

  job_name_prefix = (os.getenv("X2A_JOB_NAME_PREFIX") or "x2a").strip().lower()
  if not job_name_prefix.isalnum():
    raise ValueError("X2A_JOB_NAME_PREFIX must be lowercase alphanumeric.")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("X2A_ALLOWED_ORIGINS")),
    log_dir=(os.getenv("X2A_LOG_DIR") or "./logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("X2A_LOG_HTTP_4XX")),
    log_http_bodies=_parse_bool(os.getenv("X2A_LOG_HTTP_BODIES")),
    log_http_body_bytes=log_http_body_bytes,
    namespace=(os.getenv("X2A_NAMESPACE") or "rhdh").strip(),
    image=(os.getenv("X2A_IMAGE") or "quay.io/x2ansible/x2a-convertor:latest").strip(),
    convertor_command=_parse_command(os.getenv("X2A_CONVERTOR_COMMAND")),
    source_dir=(os.getenv("X2A_SOURCE_DIR") or "/app/source").rstrip("/"),
    source_pvc=(os.getenv("X2A_SOURCE_PVC") or "x2a-source-pvc").strip(),
    secrets_name=(os.getenv("X2A_SECRETS_NAME") or "x2a-secrets").strip(),
    job_name_prefix=job_name_prefix,
    job_profile=_parse_choice("X2A_JOB_PROFILE", "callback", _JOB_PROFILES),  # type: ignore[arg-type]
    job_ttl_seconds=_parse_optional_int("X2A_JOB_TTL_SECONDS"),
    default_source_technology=(os.getenv("X2A_DEFAULT_SOURCE_TECHNOLOGY") or "Chef").strip(),
    default_github_branch=(os.getenv("X2A_DEFAULT_GITHUB_BRANCH") or "x2a-migration").strip(),
    base_url=(os.getenv("X2A_BASE_URL") or "http://localhost:7007").strip(),
    callback_secret=_optional_str(os.getenv("X2A_CALLBACK_SECRET")),
    callback_timeout_seconds=_positive_int("X2A_CALLBACK_TIMEOUT_SECONDS", "10"),
    artifacts_path=(os.getenv("X2A_ARTIFACTS_PATH") or "/tmp").strip(),
    substrate_provider=_parse_choice("X2A_SUBSTRATE_PROVIDER", "kubernetes", _SUBSTRATE_PROVIDERS),  # type: ignore[arg-type]
    kubeconfig_path=_optional_str(os.getenv("X2A_KUBECONFIG")),
    kube_context=_optional_str(os.getenv("X2A_KUBE_CONTEXT")),
    kube_in_cluster=_parse_bool(os.getenv("X2A_KUBE_IN_CLUSTER")),
    inline_env=_parse_inline_env(os.getenv("X2A_INLINE_ENV")),
  )
