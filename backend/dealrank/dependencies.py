"""FastAPI dependency injection providers."""

import uuid
from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from dealrank.core.security import decode_access_token
from dealrank.db.session import async_session_factory
from dealrank.repositories.deal_store import SQLAlchemyDealStore
from dealrank.services.deal_service import DealService
from dealrank.services.vote_service import VoteService

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for request-scoped usage.

    The session is automatically committed on success or rolled back on error.
    Always closed after the request completes.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_deal_store(db: AsyncSession = Depends(get_db)) -> SQLAlchemyDealStore:
    return SQLAlchemyDealStore(db)


def get_deal_service(store: SQLAlchemyDealStore = Depends(get_deal_store)) -> DealService:
    return DealService(store)


def get_vote_service(store: SQLAlchemyDealStore = Depends(get_deal_store)) -> VoteService:
    return VoteService(store)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> uuid.UUID:
    """Extract and validate the bearer token, return the caller's user id.

    Raises 401 if the token is missing or invalid.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user_id


async def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[uuid.UUID]:
    """Like get_current_user_id but returns None instead of raising 401."""
    if not credentials:
        return None
    return decode_access_token(credentials.credentials)
