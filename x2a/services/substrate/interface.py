from __future__ import annotations

from typing import Any, Protocol


class JobSubmitter(Protocol):
  """Interface for handing workloads to a batch-execution substrate."""

  async def submit(self, manifest: dict[str, Any]) -> str:
    """Submit a workload manifest and return the accepted workload name."""
    ...

  def describe(self) -> str:
    """Return a short human-readable description for startup logs."""
    ...
