from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class HealthCheckResponse(BaseModel):
    """Liveness plus a database round-trip"""

    status: str = Field("healthy", description="healthy | degraded")
    database: str = Field("ok", description="ok | error")
    environment: str = Field(..., description="Deployment environment")
    checked_at: datetime = Field(..., description="UTC time of the check")
    error: Optional[str] = None
