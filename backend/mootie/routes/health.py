"""
Mootie Backend - Health Check Route
=====================================

What:  Liveness and configuration report for monitoring probes.
How:   Reports whether the provider key and vector store are configured.
       Does not call the provider: probes run every few seconds and a
       provider call per probe would spend quota.

Status levels:
    ok        all provider-backed endpoints can serve requests
    degraded  configuration is missing; scoring still works
"""

import time
from datetime import datetime, timezone

from fastapi import APIRouter

from mootie import __version__
from mootie.config import settings
from mootie.schemas.common import Envelope, HealthData

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=Envelope[HealthData],
    summary="Service health check",
)
async def health_check() -> Envelope[HealthData]:
    return Envelope(
        data=HealthData(
            status="ok" if not settings.configuration_problems() else "degraded",
            version=__version__,
            time=datetime.now(timezone.utc).isoformat(),
            commit=settings.vercel_git_commit_sha,
            provider_configured=settings.provider_configured,
            vector_store_configured=settings.vector_store_configured,
            uptime_seconds=round(time.time() - _start_time, 2),
        )
    )
