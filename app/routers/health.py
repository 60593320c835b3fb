"""
Health Check Router - Procurement Rating Service
app/routers/health.py

Returns health status of the submission store, Redis and S3 with real
connection checks.
"""
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Dict
from datetime import datetime, timezone
import asyncio

import redis
import snowflake.connector
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from app.config import settings
from app.core.exceptions import DatabaseConnectionException
from app.services.s3_storage import get_document_storage
from app.services.snowflake import get_snowflake_connection

router = APIRouter(tags=["Health"])



#  Schemas


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    dependencies: Dict[str, str]



#  Dependency Health Checks


def _short(e: Exception) -> str:
    msg = str(e)
    return msg[:100] + "..." if len(msg) > 100 else msg


def _check_snowflake() -> str:
    try:
        conn = get_snowflake_connection()
    except DatabaseConnectionException as e:
        return f"unhealthy: {_short(e)}"
    except snowflake.connector.errors.Error as e:
        return f"unhealthy: {_short(e)}"
    try:
        cursor = conn.cursor()
        cursor.execute("SELECT CURRENT_USER(), CURRENT_ROLE()")
        result = cursor.fetchone()
        cursor.close()
        return f"healthy (User: {result[0]})"
    except snowflake.connector.errors.Error as e:
        return f"unhealthy: {_short(e)}"
    finally:
        conn.close()


def _check_redis() -> str:
    try:
        client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
        )
        client.ping()
        client.close()
        return "healthy"
    except redis.RedisError as e:
        return f"unhealthy: {_short(e)}"


def _check_s3() -> str:
    try:
        get_document_storage().s3_client.list_buckets()
        return f"healthy (Region: {settings.AWS_REGION})"
    except NoCredentialsError:
        return "unhealthy: AWS credentials not configured"
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "Unknown")
        return f"unhealthy: AWS error - {code}"
    except BotoCoreError as e:
        return f"unhealthy: {_short(e)}"


async def check_snowflake() -> str:
    """Check Snowflake connection health."""
    return await asyncio.to_thread(_check_snowflake)


async def check_redis() -> str:
    """Check Redis connection health."""
    return await asyncio.to_thread(_check_redis)


async def check_s3() -> str:
    """Check AWS S3 connection health."""
    return await asyncio.to_thread(_check_s3)



#  Main Health Check Route


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        200: {"description": "All dependencies healthy"},
        503: {"description": "One or more dependencies unhealthy"},
    },
    summary="Health check",
    description="Check health of all dependencies.",
)
async def health_check():
    """Check health of all dependencies."""
    snowflake_status, redis_status, s3_status = await asyncio.gather(
        check_snowflake(), check_redis(), check_s3()
    )
    dependencies = {
        "snowflake": snowflake_status,
        "redis": redis_status,
        "s3": s3_status,
    }

    all_healthy = all(v.startswith("healthy") for v in dependencies.values())

    response = HealthResponse(
        status="healthy" if all_healthy else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        dependencies=dependencies,
    )

    if all_healthy:
        return response
    else:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(mode="json"),
        )



#  Individual Service Health Checks


@router.get("/health/{service}", summary="Check one dependency")
async def health_service(service: str):
    checks = {"snowflake": check_snowflake, "redis": check_redis, "s3": check_s3}
    if service not in checks:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": f"Unknown service '{service}'"},
        )
    result = await checks[service]()
    return {
        "service": service,
        "status": result,
        "is_healthy": result.startswith("healthy"),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
