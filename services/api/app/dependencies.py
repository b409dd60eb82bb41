"""
Caller identity for the HTTP layer.

There is no session protocol: the client sends the identifier returned by
POST /session as a bearer token, and it is accepted if it names an
existing user.

Usage:
    @router.get("/stream")
    async def get_stream(me: UserOut = Depends(get_current_user)):
        ...
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import identity
from app.database import get_db
from app.errors import NotFoundError
from app.schemas import UserOut

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> UserOut:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer identifier",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return await identity.lookup_by_id(db, credentials.credentials)
    except NotFoundError:
        logger.info("Rejected unknown identifier %s", credentials.credentials)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown identifier",
            headers={"WWW-Authenticate": "Bearer"},
        )
