"""
Event API endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_event_service, get_pagination
from api.middleware.auth import get_current_user
from shared.models import Pagination
from modules.messages.models import CreateMessageRequest, MessageListResponse, MessageView
from modules.users.models import User, UserView

from .interfaces import IEventService
from .models import (
    CreateEventRequest,
    DeleteEventRequest,
    EventListResponse,
    EventView,
    InviteLinkRequest,
    MagicLinkResponse,
    RsvpLinkRequest,
    UpdateEventRequest,
)

router = APIRouter()


@router.post("", response_model=EventView, status_code=201)
async def create_event(
    request: CreateEventRequest,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> EventView:
    """
    Schedule an event and invite its guests.

    Guests and hosts may be referenced by ``id`` or by ``email``. The
    invitations are sent in the background.
    """
    event = await service.create_event(user, request)
    return await service.event_view(event)


@router.get("", response_model=EventListResponse)
async def get_events(
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> EventListResponse:
    events = await service.get_events(user, pagination)
    return EventListResponse(events=await service.event_views(events))


@router.post("/rsvps", response_model=UserView)
async def rsvp_by_link(
    request: RsvpLinkRequest,
    service: IEventService = Depends(get_event_service),
) -> UserView:
    """RSVP from the link in an invitation email. No login required."""
    return UserView.from_user(await service.rsvp_by_link(request))


@router.get("/{event_id}", response_model=EventView)
async def get_event(
    event_id: str,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> EventView:
    return await service.event_view(await service.get_event(event_id, user))


@router.patch("/{event_id}", response_model=EventView)
async def update_event(
    event_id: str,
    request: UpdateEventRequest,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> EventView:
    """Change event details. Set ``resend`` to email guests the updated invitation."""
    return await service.event_view(await service.update_event(event_id, user, request))


@router.delete("/{event_id}", response_model=EventView)
async def delete_event(
    event_id: str,
    request: Optional[DeleteEventRequest] = None,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> EventView:
    message = request.message if request is not None else ""
    return await service.event_view(await service.delete_event(event_id, user, message))


@router.get("/{event_id}/messages", response_model=MessageListResponse)
async def get_messages(
    event_id: str,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> MessageListResponse:
    messages = await service.get_messages(event_id, user)
    return MessageListResponse(messages=await service.message_views(messages))


@router.post("/{event_id}/messages", response_model=MessageView, status_code=201)
async def add_message(
    event_id: str,
    request: CreateMessageRequest,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> MessageView:
    message = await service.add_message(event_id, user, request.body, request.blob)
    return (await service.message_views([message]))[0]


@router.delete("/{event_id}/messages/{message_id}", response_model=MessageView)
async def delete_message(
    event_id: str,
    message_id: str,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> MessageView:
    message = await service.delete_message(event_id, user, message_id)
    return (await service.message_views([message]))[0]


@router.post("/{event_id}/users/{user_ref}", response_model=EventView)
async def add_user(
    event_id: str,
    user_ref: str,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> EventView:
    """Invite a guest by user id or email address."""
    return await service.event_view(await service.add_user(event_id, user, user_ref))


@router.delete("/{event_id}/users/{user_id}", response_model=EventView)
async def remove_user(
    event_id: str,
    user_id: str,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> EventView:
    return await service.event_view(await service.remove_user(event_id, user, user_id))


@router.post("/{event_id}/rsvps", response_model=EventView)
async def add_rsvp(
    event_id: str,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> EventView:
    return await service.event_view(await service.add_rsvp(event_id, user))


@router.delete("/{event_id}/rsvps", response_model=EventView)
async def remove_rsvp(
    event_id: str,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> EventView:
    return await service.event_view(await service.remove_rsvp(event_id, user))


@router.get("/{event_id}/magic", response_model=MagicLinkResponse)
async def get_invite_link(
    event_id: str,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> MagicLinkResponse:
    return MagicLinkResponse(url=await service.get_invite_link(event_id, user))


@router.post("/{event_id}/magic", response_model=EventView)
async def join_by_link(
    event_id: str,
    request: InviteLinkRequest,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> EventView:
    """Join an event and RSVP through its invite link."""
    return await service.event_view(await service.join_by_link(event_id, user, request))


@router.delete("/{event_id}/magic", response_model=MagicLinkResponse)
async def roll_invite_link(
    event_id: str,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> MagicLinkResponse:
    """Revoke the current invite link and return a new one."""
    return MagicLinkResponse(url=await service.roll_invite_link(event_id, user))


@router.post("/{event_id}/reads", response_model=EventView)
async def mark_read(
    event_id: str,
    user: User = Depends(get_current_user),
    service: IEventService = Depends(get_event_service),
) -> EventView:
    return await service.event_view(await service.mark_read(event_id, user))
