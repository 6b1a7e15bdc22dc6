"""
Health check endpoints

- /health       - liveness (app is running)
- /health/ready - readiness (database answers a ping)
"""

import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase

from storefront.core.config import settings
from storefront.core.database import get_db, ping

router = APIRouter(prefix="/health", tags=["Health Checks"])


@router.get("")
async def health():
    return {"status": "healthy", "service": settings.APP_NAME}


@router.get("/ready")
async def readiness(db: AsyncIOMotorDatabase = Depends(get_db)):
    """Readiness check: 503 until the database is reachable"""
    start = time.time()
    db_ok = await ping(db)
    latency = (time.time() - start) * 1000

    body = {
        "status": "ready" if db_ok else "not_ready",
        "database": {
            "status": "healthy" if db_ok else "unhealthy",
            "latency_ms": round(latency, 2),
        },
    }
    return JSONResponse(status_code=200 if db_ok else 503, content=body)
