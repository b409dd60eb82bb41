"""
Login endpoint:
  POST /session — resolve a username to its identifier, creating the user
                  on first login (201) or returning the existing one (200)
"""
import logging

from fastapi import APIRouter, Depends, Response, status
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import identity
from app.database import get_db
from app.schemas import LoginRequest, LoginResponse

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post("", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def do_login(body: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    with tracer.start_as_current_span("do_login") as span:
        result = await identity.login_or_register(db, body.name)
        span.set_attribute("user.id", result.user.user_id)
        span.set_attribute("user.created", result.created)

        if result.created:
            response.status_code = status.HTTP_201_CREATED
        return LoginResponse(identifier=result.user.user_id)
