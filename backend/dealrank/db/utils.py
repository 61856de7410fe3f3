"""Database utility functions."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession


async def check_database_health(db: AsyncSession) -> dict[str, bool | str]:
    """Check if database is accessible and responsive.

    Returns:
        dict with 'healthy' boolean and optional 'error' message
    """
    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
