"""Receiver API endpoints.

Lists the receiver kinds known to the registry, for presentation and
selection, and reports on the receivers the application has started.
"""

import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from logbridge.exceptions import NotFoundError
from logbridge.receivers.registry import ReceiverDescriptor, get_registry, list_receivers

logger = logging.getLogger(__name__)
router = APIRouter()


class ReceiverInfo(BaseModel):
    """A registered receiver kind."""

    identifier: str = Field(..., description="Stable identifier stored in configuration")
    display_name: str
    description: str = ""

    @classmethod
    def from_descriptor(cls, descriptor: ReceiverDescriptor) -> "ReceiverInfo":
        return cls(
            identifier=descriptor.identifier,
            display_name=descriptor.display_name,
            description=descriptor.description,
        )


class ReceiversListResponse(BaseModel):
    """List of receiver kinds."""

    receivers: list[ReceiverInfo]
    total: int


class ActiveReceiver(BaseModel):
    """Status of a receiver started by the application."""

    identifier: str
    display_name: str
    state: str
    metrics: dict


class ActiveReceiversResponse(BaseModel):
    """Receivers started by the application."""

    receivers: list[ActiveReceiver]
    total: int


@router.get("", response_model=ReceiversListResponse)
async def list_receiver_kinds() -> ReceiversListResponse:
    """List all available receiver kinds."""
    receivers = [ReceiverInfo(**info) for info in list_receivers()]
    return ReceiversListResponse(receivers=receivers, total=len(receivers))


@router.get("/active", response_model=ActiveReceiversResponse)
async def list_active_receivers(request: Request) -> ActiveReceiversResponse:
    """List receivers started with the application and their metrics."""
    active = getattr(request.app.state, "receivers", [])
    return ActiveReceiversResponse(
        receivers=[
            ActiveReceiver(
                identifier=receiver.identifier,
                display_name=receiver.display_name or receiver.identifier,
                state=receiver.state.value,
                metrics=receiver.metrics.to_dict(),
            )
            for receiver in active
        ],
        total=len(active),
    )


@router.get("/{identifier}", response_model=ReceiverInfo)
async def get_receiver(identifier: str) -> ReceiverInfo:
    """Get a receiver kind by identifier."""
    descriptor = get_registry().get(identifier)
    if descriptor is None:
        raise NotFoundError("Receiver", identifier)
    return ReceiverInfo.from_descriptor(descriptor)
