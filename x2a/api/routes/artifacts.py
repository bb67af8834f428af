from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from x2a.api.deps import artifact_service
from x2a.api.models import CollectArtifactsRequest, CollectArtifactsResponse
from x2a.api.msgspec_utils import encode_msgspec_response
from x2a.core.security import verify_callback_secret
from x2a.services.artifacts import ArtifactCollectorService

router = APIRouter()
logger = logging.getLogger(__name__)

ServiceDep = Annotated[ArtifactCollectorService, Depends(artifact_service)]


@router.post("/collectArtifacts", response_model=CollectArtifactsResponse, response_model_by_alias=True, dependencies=[Depends(verify_callback_secret)])
async def collect_artifacts_route(payload: CollectArtifactsRequest, service: ServiceDep) -> CollectArtifactsResponse:
  """Receive a workload's completion report and append it to the ledger."""
  entry = await service.collect_artifacts(payload.to_report())
  return CollectArtifactsResponse(job_name=entry.job_name)


@router.get("/artifacts")
async def list_artifacts_route(service: ServiceDep) -> Response:
  """Return every recorded completion report in arrival order."""
  entries = await service.get_artifacts()
  return encode_msgspec_response(entries)


@router.get("/artifacts/{job_name}")
async def get_artifact_route(job_name: str, service: ServiceDep) -> Response:
  """Return the first completion report recorded for a job."""
  entry = await service.get_artifacts_by_job_name(job_name)
  if entry is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No artifacts recorded for job '{job_name}'")
  return encode_msgspec_response(entry)


@router.delete("/artifacts", status_code=status.HTTP_204_NO_CONTENT)
async def clear_artifacts_route(service: ServiceDep) -> Response:
  """Reset the ledger."""
  await service.clear_artifacts()
  return Response(status_code=status.HTTP_204_NO_CONTENT)
