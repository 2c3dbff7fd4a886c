"""
POST /v1/uplinks webhook endpoint.

Accepts one uplink envelope per request, exactly as the network server's
webhook integration POSTs it, and runs it through the same normalize/ingest
path as the MQTT daemon.  Responds with the ingest summary.

CHANGELOG:
- 2026-10-16: Initial creation, adapted from the batch ingest endpoint
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request

from ingestor.src.handler import handle_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["uplinks"])


async def _verify_token(request: Request) -> None:
    """Run BearerAuth.verify stored on app.state as a dependency."""
    await request.app.state.auth.verify(request)


@router.post("/uplinks")
async def post_uplink(
    request: Request,
    _auth: Annotated[None, Depends(_verify_token)],
) -> dict[str, Any]:
    """Ingest one uplink envelope.

    Args:
        request: The incoming FastAPI request.

    Returns:
        dict: The ingest summary (station_eui, attempted, inserted,
        duplicates, failed, skipped_unknown_type, skipped_invalid,
        persisted).

    Raises:
        HTTPException: 413 if the body exceeds MAX_REQUEST_BYTES.
        HTTPException: 422 if the body is not a direct uplink envelope.
    """
    settings = request.app.state.settings

    content_length = request.headers.get("content-length")
    if content_length is not None:
        try:
            content_length_int = int(content_length)
        except ValueError:
            raise HTTPException(
                status_code=400,
                detail="Invalid Content-Length header.",
            ) from None
        if content_length_int > settings.max_request_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"Request body exceeds limit of {settings.max_request_bytes} bytes.",
            )

    body = await request.body()
    if len(body) > settings.max_request_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Request body exceeds limit of {settings.max_request_bytes} bytes.",
        )

    summary = await handle_message(
        request.app.state.session_factory,
        body,
        topic="webhook",
        record_uplinks=settings.record_uplinks,
        health=request.app.state.health,
    )
    if summary is None:
        raise HTTPException(
            status_code=422,
            detail="Unknown uplink envelope shape (expecting direct /up).",
        )
    return summary.as_dict()
