"""Event parsing API endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

from logbridge.config import get_settings
from logbridge.parsers.log4j_xml import fallback_record, parse_string

logger = logging.getLogger(__name__)
router = APIRouter()


class ParseEventRequest(BaseModel):
    """Request to parse one log4j XML event."""

    event: str = Field(..., description="A complete log4j XML event block")
    default_logger: str | None = Field(
        None,
        description="Logger name used when the event cannot be parsed",
    )


class ParseEventResponse(BaseModel):
    """Normalized log record."""

    parsed: bool = Field(..., description="False when the raw text was kept as a fallback record")
    logger_name: str
    level: str
    thread_name: str
    timestamp: datetime
    message: str
    exception_text: str | None = None
    properties: dict[str, str]


@router.post("/parse", response_model=ParseEventResponse)
async def parse_event(request: ParseEventRequest) -> ParseEventResponse:
    """Parse a log4j XML event.

    Malformed input is not rejected: it comes back as a fallback record
    with the raw text as its message and ``parsed`` set to false.
    """
    default_logger = request.default_logger or get_settings().default_logger_name
    outcome = parse_string(request.event, default_logger)

    if outcome.success:
        record = outcome.record
    else:
        logger.debug("Returning fallback record: %s", outcome.error)
        record = fallback_record(request.event, default_logger, outcome.error)

    return ParseEventResponse(parsed=outcome.success, **record.to_dict())
