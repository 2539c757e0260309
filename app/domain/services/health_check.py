# app/domain/services/health_check.py
"""
Component health probes for the USSD service.

Probes the record store (PostgreSQL) and the session store (Redis)
concurrently and returns a unified report. Used by ``GET /health``.
"""

from __future__ import annotations

import asyncio
import logging
import platform
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text

from app.core.config import settings

logger = logging.getLogger("health_check")

# App start time, set once on import
_APP_START_TIME = datetime.now(timezone.utc)


@dataclass
class ComponentHealth:
    """Health status for a single system component."""
    name: str
    status: str  # "healthy", "down"
    latency_ms: float = 0.0
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class SystemHealth:
    """Overall system health report."""
    status: str  # "healthy", "degraded", "down"
    timestamp: str = ""
    uptime_seconds: float = 0.0
    environment: str = ""
    app_name: str = ""
    python_version: str = ""
    components: list[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "timestamp": self.timestamp,
            "uptime_seconds": round(self.uptime_seconds, 1),
            "environment": self.environment,
            "app_name": self.app_name,
            "python_version": self.python_version,
            "components": [
                {
                    "name": c.name,
                    "status": c.status,
                    "latency_ms": round(c.latency_ms, 1),
                    "message": c.message,
                    "details": c.details,
                }
                for c in self.components
            ],
        }


# ---------------------------------------------------------------------------
# Individual component probes
# ---------------------------------------------------------------------------

async def _check_database() -> ComponentHealth:
    """Probe PostgreSQL via the SQLAlchemy async engine."""
    from app.core.db import engine

    start = time.monotonic()
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            result.close()
        latency = (time.monotonic() - start) * 1000

        pool = engine.pool
        details = {}
        if hasattr(pool, "checkedout"):
            details = {"checked_in": pool.checkedin(), "checked_out": pool.checkedout()}

        return ComponentHealth(
            name="PostgreSQL",
            status="healthy",
            latency_ms=latency,
            message="Connected",
            details=details,
        )
    except Exception as e:
        latency = (time.monotonic() - start) * 1000
        logger.warning("Database health probe failed: %s", e)
        return ComponentHealth(
            name="PostgreSQL",
            status="down",
            latency_ms=latency,
            message=str(e)[:200],
        )


async def _check_redis() -> ComponentHealth:
    """Probe Redis with PING and count live USSD sessions."""
    from app.infrastructure.cache.redis_client import get_redis_client

    start = time.monotonic()
    try:
        client = get_redis_client()
        await client.ping()
        latency = (time.monotonic() - start) * 1000

        session_count = 0
        async for _ in client.scan_iter(match=f"{settings.USSD_SESSION_KEY_PREFIX}*", count=100):
            session_count += 1

        return ComponentHealth(
            name="Redis",
            status="healthy",
            latency_ms=latency,
            message="Connected",
            details={"active_sessions": session_count},
        )
    except Exception as e:
        latency = (time.monotonic() - start) * 1000
        logger.warning("Redis health probe failed: %s", e)
        return ComponentHealth(
            name="Redis",
            status="down",
            latency_ms=latency,
            message=str(e)[:200],
        )


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------

def overall_status(components: list[ComponentHealth]) -> str:
    statuses = [c.status for c in components]
    if statuses and all(s == "down" for s in statuses):
        return "down"
    if any(s == "down" for s in statuses):
        return "degraded"
    return "healthy"


async def run_health_check() -> SystemHealth:
    """
    Run all health probes concurrently and return a unified report.
    """
    now = datetime.now(timezone.utc)
    uptime = (now - _APP_START_TIME).total_seconds()

    results = await asyncio.gather(
        _check_database(),
        _check_redis(),
        return_exceptions=True,
    )

    components: list[ComponentHealth] = []
    for r in results:
        if isinstance(r, Exception):
            components.append(ComponentHealth(
                name="Unknown",
                status="down",
                message=str(r)[:200],
            ))
        else:
            components.append(r)

    return SystemHealth(
        status=overall_status(components),
        timestamp=now.isoformat(),
        uptime_seconds=uptime,
        environment=settings.ENVIRONMENT,
        app_name=settings.APP_NAME,
        python_version=platform.python_version(),
        components=components,
    )
