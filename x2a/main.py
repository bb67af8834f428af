from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from x2a.api.routes import artifacts, jobs
from x2a.config import get_settings
from x2a.core.exceptions import global_exception_handler, http_exception_handler, request_validation_exception_handler, x2a_exception_handler
from x2a.core.lifespan import lifespan
from x2a.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from x2a.jobs.errors import X2AError

settings = get_settings()

app = FastAPI(title="X2A Orchestrator", lifespan=lifespan, docs_url="/docs" if settings.debug else None, redoc_url=None)

app.add_middleware(
  CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials=True, allow_methods=["GET", "POST", "DELETE", "OPTIONS"], allow_headers=["content-type", "authorization", "x-callback-secret"], expose_headers=["content-length", "x-request-id"]
)


# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(X2AError, x2a_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok"}


app.include_router(jobs.router, prefix="/x2a", tags=["jobs"])
app.include_router(artifacts.router, prefix="/x2a", tags=["artifacts"])
