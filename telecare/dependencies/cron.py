"""Shared-secret guard for the scheduler-facing cron endpoints."""
import secrets
from typing import Optional

from fastapi import Header, HTTPException, status
from telecare.core.config import settings


async def verify_cron_secret(x_cron_secret: Optional[str] = Header(None)):
    if not settings.CRON_SECRET:
        return True
    if not x_cron_secret or not secrets.compare_digest(
        x_cron_secret.encode("utf-8"), settings.CRON_SECRET.encode("utf-8")
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron secret",
        )
    return True
