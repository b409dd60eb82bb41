"""
Stream endpoint — GET /stream

Photos from every user the caller follows, newest first, minus owners the
caller has banned. Recomputed from the database on every request.
"""
import logging
import time

from fastapi import APIRouter, Depends
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import feed
from app.database import get_db
from app.dependencies import get_current_user
from app.schemas import StreamResponse, UserOut
from app.telemetry import STREAM_LATENCY, STREAM_PHOTOS_RETURNED

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.get("", response_model=StreamResponse)
async def get_my_stream(
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    start_time = time.time()

    with tracer.start_as_current_span("get_my_stream") as span:
        span.set_attribute("user.id", me.user_id)

        photo_ids = await feed.stream_for(db, me.user_id)

        latency_ms = (time.time() - start_time) * 1000
        STREAM_LATENCY.observe(latency_ms / 1000)
        STREAM_PHOTOS_RETURNED.observe(len(photo_ids))
        span.set_attribute("stream.latency_ms", latency_ms)
        span.set_attribute("stream.photos_returned", len(photo_ids))

        return StreamResponse(
            user_id=me.user_id,
            photos=photo_ids,
            latency_ms=round(latency_ms, 2),
        )
