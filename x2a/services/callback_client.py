"""Python-side delivery of completion reports to the callback endpoint.

Workloads report through the shell wrapper; this client posts the same payload from
operator tooling, e.g. to replay a report a workload failed to deliver.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from x2a.jobs.callback import CALLBACK_SECRET_HEADER, DEFAULT_CALLBACK_TIMEOUT_SECONDS
from x2a.jobs.errors import CallbackTransportError

logger = logging.getLogger(__name__)


def _report_headers(secret: str | None) -> dict[str, str]:
  headers = {"content-type": "application/json"}
  if secret:
    headers[CALLBACK_SECRET_HEADER] = secret
  return headers


async def send_completion_report(
  url: str, payload: dict[str, Any], *, secret: str | None = None, timeout: float = DEFAULT_CALLBACK_TIMEOUT_SECONDS, transport: httpx.AsyncBaseTransport | None = None
) -> dict[str, Any]:
  """POST a completion report and return the decoded acknowledgement.

  Raises CallbackTransportError on connection failures, timeouts and non-2xx responses.
  """
  job_name = payload.get("jobName")
  # Never trust environment proxy variables for the callback hop.
  try:
    async with httpx.AsyncClient(transport=transport, trust_env=False) as client:
      logger.info("Sending completion report for job %s to %s", job_name, url)
      response = await client.post(url, json=payload, headers=_report_headers(secret), timeout=timeout)
      response.raise_for_status()
  except httpx.HTTPStatusError as exc:
    logger.error("Callback endpoint returned %s for job %s: %s", exc.response.status_code, job_name, exc.response.text)
    raise CallbackTransportError(f"Callback endpoint returned {exc.response.status_code} for job {job_name}") from exc
  except httpx.RequestError as exc:
    logger.error("Failed to deliver completion report for job %s: %s", job_name, exc)
    raise CallbackTransportError(f"Failed to deliver completion report for job {job_name}: {exc}") from exc

  if not response.content:
    return {}
  return response.json()


async def try_send_completion_report(url: str, payload: dict[str, Any], **kwargs: Any) -> bool:
  """Deliver a report, logging and swallowing transport failures. Returns whether it was delivered."""
  try:
    await send_completion_report(url, payload, **kwargs)
  except CallbackTransportError:
    logger.warning("Completion report for job %s was not delivered", payload.get("jobName"))
    return False
  return True
