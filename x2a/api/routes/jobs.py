from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from x2a.api.deps import job_submitter
from x2a.api.models import JobCreateRequest, JobCreateResponse
from x2a.config import Settings, get_settings
from x2a.services.jobs import create_job
from x2a.services.substrate.interface import JobSubmitter

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/jobs", response_model=JobCreateResponse, response_model_by_alias=True, status_code=status.HTTP_201_CREATED)
async def create_job_route(payload: JobCreateRequest, settings: Annotated[Settings, Depends(get_settings)], submitter: Annotated[JobSubmitter, Depends(job_submitter)]) -> JobCreateResponse:
  """Create a migration job for one phase and submit it to the batch substrate.

  Returns as soon as the substrate accepts the workload. The outcome arrives later
  through the completion callback.
  """
  return await create_job(payload, settings, submitter)
