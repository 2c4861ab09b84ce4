from __future__ import annotations

from datetime import datetime
from typing import Literal

from maguru.api.schemas.common import APIModel


class DatastoreStatus(APIModel):
    status: Literal["ok", "error"]
    latency_ms: float | None = None
    message: str | None = None


class HealthReport(APIModel):
    service: str
    version: str
    environment: str
    status: Literal["ok", "degraded"]
    timestamp: datetime
    datastores: dict[str, DatastoreStatus]
