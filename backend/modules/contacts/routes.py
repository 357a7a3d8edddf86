"""
Contact API endpoints.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_contact_service
from api.middleware.auth import get_current_user
from shared.models import UserInput
from modules.users.models import User, UserPartial

from .interfaces import IContactService
from .models import ContactListResponse

router = APIRouter()


@router.get("", response_model=ContactListResponse)
async def get_contacts(
    user: User = Depends(get_current_user),
    service: IContactService = Depends(get_contact_service),
) -> ContactListResponse:
    return ContactListResponse(contacts=await service.get_contacts(user))


@router.post("", response_model=UserPartial, status_code=201)
async def add_contact(
    request: UserInput,
    user: User = Depends(get_current_user),
    service: IContactService = Depends(get_contact_service),
) -> UserPartial:
    """Add a contact by ``id`` or ``email``."""
    return await service.add_contact(user, request)


@router.post("/{user_id}", response_model=UserPartial, status_code=201)
async def add_contact_by_id(
    user_id: str,
    user: User = Depends(get_current_user),
    service: IContactService = Depends(get_contact_service),
) -> UserPartial:
    return await service.add_contact(user, UserInput(id=user_id))


@router.delete("/{user_id}", response_model=UserPartial)
async def remove_contact(
    user_id: str,
    user: User = Depends(get_current_user),
    service: IContactService = Depends(get_contact_service),
) -> UserPartial:
    return await service.remove_contact(user, user_id)
