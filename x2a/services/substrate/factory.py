from __future__ import annotations

from functools import lru_cache

from x2a.config import Settings
from x2a.services.substrate.interface import JobSubmitter
from x2a.services.substrate.k8s import ClusterConfig, KubernetesJobSubmitter
from x2a.services.substrate.local import LocalProcessSubmitter


@lru_cache(maxsize=4)
def get_job_submitter(settings: Settings) -> JobSubmitter:
  """Factory to get the configured job submitter."""
  if settings.substrate_provider == "local":
    return LocalProcessSubmitter()
  return KubernetesJobSubmitter(ClusterConfig.from_settings(settings))
