"""
onedosh_api.api.routers.support

Support endpoints: authenticated tickets and the public contact form.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from onedosh_api.api.deps import db_session, support_client
from onedosh_api.auth.deps import get_current_user
from onedosh_api.db.models import SupportTicket, SupportTicketChannel, User
from onedosh_api.providers.support import PRIORITIES, SupportProviderClient
from onedosh_api.services.support import SupportService

router = APIRouter(prefix="/v1/support", tags=["support"])


class CreateTicketDto(BaseModel):
    subject: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=5000)
    priority: str = Field(default="normal", pattern="^(" + "|".join(PRIORITIES) + ")$")


class ContactDto(BaseModel):
    subject: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=5000)
    name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = None


class TicketResponse(BaseModel):
    id: uuid.UUID
    ticket_number: int
    subject: str
    description: str
    channel: str
    status: str
    created_at: datetime


def _ticket_out(t: SupportTicket) -> TicketResponse:
    return TicketResponse(
        id=t.id,
        ticket_number=t.ticket_number,
        subject=t.subject,
        description=t.description,
        channel=t.channel.value,
        status=t.status.value,
        created_at=t.created_at,
    )


@router.post("/tickets", response_model=TicketResponse, status_code=HTTP_201_CREATED)
async def create_ticket(
    body: CreateTicketDto,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    client: SupportProviderClient = Depends(support_client),
) -> TicketResponse:
    row = await SupportService(session=session, client=client).create_ticket(
        subject=body.subject,
        description=body.description,
        channel=SupportTicketChannel.ticket,
        user=user,
        priority=body.priority,
    )
    return _ticket_out(row)


@router.get("/tickets", response_model=list[TicketResponse])
async def list_tickets(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    client: SupportProviderClient = Depends(support_client),
) -> list[TicketResponse]:
    rows = await SupportService(session=session, client=client).list_for_user(user=user)
    return [_ticket_out(r) for r in rows]


@router.post("/contact", response_model=TicketResponse, status_code=HTTP_201_CREATED)
async def contact(
    body: ContactDto,
    session: AsyncSession = Depends(db_session),
    client: SupportProviderClient = Depends(support_client),
) -> TicketResponse:
    row = await SupportService(session=session, client=client).create_ticket(
        subject=body.subject,
        description=body.description,
        channel=SupportTicketChannel.contact,
        name=body.name,
        email=body.email,
    )
    return _ticket_out(row)
