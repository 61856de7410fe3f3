"""Health check endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dealrank import __version__
from dealrank.db.utils import check_database_health
from dealrank.dependencies import get_db
from dealrank.schemas import HealthCheckResponse

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Return service health status.

    Reports "degraded" when the database does not answer a trivial query.
    """
    db_health = await check_database_health(db)
    db_status = "ok" if db_health["healthy"] else f"error: {db_health['error']}"

    return HealthCheckResponse(
        status="ok" if db_health["healthy"] else "degraded",
        database=db_status,
        version=__version__,
    )
