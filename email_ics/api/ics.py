from functools import lru_cache
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel

from email_ics.config import IcsConfig, settings
from email_ics.core.errors import IcsError, ParseError, SerializationError
from email_ics.domain.schemas.event import Method
from email_ics.services.delivery.attachment import (
    ICS_CONTENT_TYPE,
    attachment_filename,
    build_attachment,
)
from email_ics.services.ics.engine import IcsEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ics")


class IcsRequest(BaseModel):
    events: list[dict[str, Any]] | dict[str, Any]
    method: Method | None = None
    from_email: str | None = None
    filename: str | None = None


class IcsContent(BaseModel):
    ics_content: str


@lru_cache
def get_engine() -> IcsEngine:
    return IcsEngine(IcsConfig.from_settings(settings))


@router.post("")
def create_ics(request: IcsRequest, engine: IcsEngine = Depends(get_engine)) -> Response:
    try:
        document = engine.build_document(request.events, method=request.method)
        ics_content = engine.serialize(document, from_email=request.from_email)
    except SerializationError as exc:
        logger.error("Calendar serialization failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    except IcsError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    filename = request.filename or attachment_filename(
        document.events[0].summary if len(document.events) == 1 else None
    )
    attachment = build_attachment(ics_content, filename=filename)
    return Response(
        content=attachment.content,
        media_type=ICS_CONTENT_TYPE,
        headers={"Content-Disposition": attachment.content_disposition()},
    )


@router.post("/validate")
def validate_ics(body: IcsContent, engine: IcsEngine = Depends(get_engine)) -> dict[str, Any]:
    result = engine.validate(body.ics_content)
    return {"valid": result.valid, "errors": result.errors}


@router.post("/parse")
def parse_ics(body: IcsContent, engine: IcsEngine = Depends(get_engine)) -> dict[str, Any]:
    try:
        records = engine.parse(body.ics_content)
    except ParseError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"events": [record.model_dump(mode="json", by_alias=True) for record in records]}
