"""
Thread API endpoints.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_pagination, get_thread_service
from api.middleware.auth import get_current_user
from shared.models import Pagination
from modules.messages.models import CreateMessageRequest, MessageListResponse, MessageView
from modules.users.models import User

from .interfaces import IThreadService
from .models import CreateThreadRequest, ThreadListResponse, ThreadView, UpdateThreadRequest

router = APIRouter()


@router.post("", response_model=ThreadView, status_code=201)
async def create_thread(
    request: CreateThreadRequest,
    user: User = Depends(get_current_user),
    service: IThreadService = Depends(get_thread_service),
) -> ThreadView:
    """
    Start a Convo.

    Users may be referenced by ``id`` or by ``email``; unknown emails get
    an account created for them and are invited by email.
    """
    thread = await service.create_thread(user, request)
    return await service.thread_view(thread)


@router.get("", response_model=ThreadListResponse)
async def get_threads(
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    service: IThreadService = Depends(get_thread_service),
) -> ThreadListResponse:
    threads = await service.get_threads(user, pagination)
    return ThreadListResponse(threads=await service.thread_views(threads))


@router.get("/{thread_id}", response_model=ThreadView)
async def get_thread(
    thread_id: str,
    user: User = Depends(get_current_user),
    service: IThreadService = Depends(get_thread_service),
) -> ThreadView:
    return await service.thread_view(await service.get_thread(thread_id, user))


@router.patch("/{thread_id}", response_model=ThreadView)
async def update_thread(
    thread_id: str,
    request: UpdateThreadRequest,
    user: User = Depends(get_current_user),
    service: IThreadService = Depends(get_thread_service),
) -> ThreadView:
    return await service.thread_view(await service.update_thread(thread_id, user, request))


@router.delete("/{thread_id}", response_model=ThreadView)
async def delete_thread(
    thread_id: str,
    user: User = Depends(get_current_user),
    service: IThreadService = Depends(get_thread_service),
) -> ThreadView:
    return await service.thread_view(await service.delete_thread(thread_id, user))


@router.get("/{thread_id}/messages", response_model=MessageListResponse)
async def get_messages(
    thread_id: str,
    user: User = Depends(get_current_user),
    service: IThreadService = Depends(get_thread_service),
) -> MessageListResponse:
    messages = await service.get_messages(thread_id, user)
    return MessageListResponse(messages=await service.message_views(messages))


@router.post("/{thread_id}/messages", response_model=MessageView, status_code=201)
async def add_message(
    thread_id: str,
    request: CreateMessageRequest,
    user: User = Depends(get_current_user),
    service: IThreadService = Depends(get_thread_service),
) -> MessageView:
    message = await service.add_message(thread_id, user, request.body, request.blob)
    return (await service.message_views([message]))[0]


@router.delete("/{thread_id}/messages/{message_id}", response_model=MessageView)
async def delete_message(
    thread_id: str,
    message_id: str,
    user: User = Depends(get_current_user),
    service: IThreadService = Depends(get_thread_service),
) -> MessageView:
    message = await service.delete_message(thread_id, user, message_id)
    return (await service.message_views([message]))[0]


@router.post("/{thread_id}/users/{user_ref}", response_model=ThreadView)
async def add_user(
    thread_id: str,
    user_ref: str,
    user: User = Depends(get_current_user),
    service: IThreadService = Depends(get_thread_service),
) -> ThreadView:
    """Add a member by user id or email address."""
    return await service.thread_view(await service.add_user(thread_id, user, user_ref))


@router.delete("/{thread_id}/users/{user_id}", response_model=ThreadView)
async def remove_user(
    thread_id: str,
    user_id: str,
    user: User = Depends(get_current_user),
    service: IThreadService = Depends(get_thread_service),
) -> ThreadView:
    return await service.thread_view(await service.remove_user(thread_id, user, user_id))


@router.post("/{thread_id}/reads", response_model=ThreadView)
async def mark_read(
    thread_id: str,
    user: User = Depends(get_current_user),
    service: IThreadService = Depends(get_thread_service),
) -> ThreadView:
    return await service.thread_view(await service.mark_read(thread_id, user))
