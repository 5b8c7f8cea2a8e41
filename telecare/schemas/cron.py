from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CronRunResponse(BaseModel):
    success: bool
    message: str
    processed_count: Optional[int] = None
    timestamp: datetime


class CronHealthResponse(BaseModel):
    success: bool
    message: str
    timestamp: datetime
    uptime: float
