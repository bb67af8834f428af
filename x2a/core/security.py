"""Shared-secret authentication for the completion callback endpoint."""

from __future__ import annotations

import logging
import secrets

from fastapi import Depends, Header, HTTPException, status

from x2a.config import Settings, get_settings

logger = logging.getLogger(__name__)


async def verify_callback_secret(settings: Settings = Depends(get_settings), x_callback_secret: str | None = Header(default=None)) -> None:  # noqa: B008
  """Reject callbacks without the configured secret; open when no secret is configured."""
  if not settings.callback_secret:
    return
  if not secrets.compare_digest((x_callback_secret or "").encode(), settings.callback_secret.encode()):
    logger.warning("Unauthorized completion callback attempt")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid callback secret.")
