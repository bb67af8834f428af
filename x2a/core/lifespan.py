import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from x2a.core.logging import _initialize_logging
from x2a.services.artifacts import get_artifact_service
from x2a.services.substrate.factory import get_job_submitter


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging and report the configured substrate and ledger."""
  from x2a.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("x2a.core.lifespan")

  try:
    _initialize_logging(settings)
    logger.info("Startup complete - logging verified.")
  except RuntimeError:
    # Keep serving with uvicorn's default handlers when the log directory is unusable.
    logger.warning("Initial logging setup failed; continuing with default handlers.", exc_info=True)

  submitter = get_job_submitter(settings)
  ledger = get_artifact_service(settings).ledger
  logger.info("Job substrate: %s (namespace=%s, profile=%s)", submitter.describe(), settings.namespace, settings.job_profile)
  logger.info("Artifact ledger: %s", ledger.path)
  if settings.job_profile == "callback":
    logger.info("Workloads report completion to %s", settings.callback_url)
    if not settings.callback_secret:
      logger.warning("X2A_CALLBACK_SECRET is not set; the completion callback endpoint accepts unauthenticated reports.")

  yield
