"""
User API endpoints.

Sign-up and login flows, magic link endpoints, profile management and
user lookup.
"""

from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, Response

from api.dependencies import get_user_service
from api.middleware.auth import get_current_user, get_optional_user
from shared.models import MessageResponse

from .interfaces import IUserService
from .models import (
    AuthenticateRequest,
    AvatarRequest,
    CreateUserRequest,
    EmailRequest,
    MagicRequest,
    OAuthRequest,
    UpdatePasswordRequest,
    UpdateUserRequest,
    User,
    UserPartial,
    UserSearchResponse,
    UserView,
    VerifyEmailRequest,
)

router = APIRouter()


@router.post("", response_model=Union[UserView, MessageResponse], status_code=201)
async def create_user(
    request: CreateUserRequest,
    response: Response,
    service: IUserService = Depends(get_user_service),
) -> Union[UserView, MessageResponse]:
    """
    Sign up with email and password.

    If someone was already invited with this email, the account is locked
    until the owner of the address sets a password from the emailed link.
    """
    user, created = await service.create_user(request)
    if not created:
        response.status_code = 200
        return MessageResponse(message="Please verify your email to proceed")
    return UserView.from_user(user)


@router.post("/auth", response_model=UserView)
async def authenticate(
    request: AuthenticateRequest,
    service: IUserService = Depends(get_user_service),
) -> UserView:
    return UserView.from_user(await service.authenticate(request))


@router.post("/oauth", response_model=UserView)
async def oauth(
    request: OAuthRequest,
    token_user: Optional[User] = Depends(get_optional_user),
    service: IUserService = Depends(get_user_service),
) -> UserView:
    """
    Log in with Google or Facebook.

    A caller holding the token of an invited, incomplete account has that
    account merged into (or linked as) the provider account.
    """
    return UserView.from_user(await service.oauth(request, token_user))


@router.post("/password", response_model=UserView)
async def update_password(
    request: UpdatePasswordRequest,
    service: IUserService = Depends(get_user_service),
) -> UserView:
    return UserView.from_user(await service.update_password(request))


@router.post("/verify", response_model=UserView)
async def verify_email(
    request: VerifyEmailRequest,
    service: IUserService = Depends(get_user_service),
) -> UserView:
    return UserView.from_user(await service.verify_email(request))


@router.post("/forgot", response_model=MessageResponse)
async def forgot_password(
    request: EmailRequest,
    service: IUserService = Depends(get_user_service),
) -> MessageResponse:
    await service.forgot_password(request.email)
    return MessageResponse(message="Check your email for a link to reset your password")


@router.post("/magic", response_model=UserView)
async def magic_login(
    request: MagicRequest,
    service: IUserService = Depends(get_user_service),
) -> UserView:
    return UserView.from_user(await service.magic_login(request))


@router.post("/unsubscribe", response_model=MessageResponse)
async def unsubscribe(
    request: MagicRequest,
    service: IUserService = Depends(get_user_service),
) -> MessageResponse:
    await service.unsubscribe(request)
    return MessageResponse(message="unsubscribed")


@router.get("", response_model=UserView)
async def get_me(user: User = Depends(get_current_user)) -> UserView:
    return UserView.from_user(user)


@router.patch("", response_model=UserView)
async def update_user(
    request: UpdateUserRequest,
    user: User = Depends(get_current_user),
    service: IUserService = Depends(get_user_service),
) -> UserView:
    return UserView.from_user(await service.update_user(user, request))


@router.post("/resend", response_model=UserView)
async def resend_verification(
    user: User = Depends(get_current_user),
    service: IUserService = Depends(get_user_service),
) -> UserView:
    await service.resend_verification(user)
    return UserView.from_user(user)


@router.get("/search", response_model=UserSearchResponse)
async def search_users(
    query: str = Query(default=""),
    user: User = Depends(get_current_user),
    service: IUserService = Depends(get_user_service),
) -> UserSearchResponse:
    return UserSearchResponse(users=await service.search(query))


@router.post("/avatar", response_model=UserView)
async def update_avatar(
    request: AvatarRequest,
    user: User = Depends(get_current_user),
    service: IUserService = Depends(get_user_service),
) -> UserView:
    return UserView.from_user(await service.update_avatar(user, request))


@router.post("/emails", response_model=UserView)
async def add_email(
    request: EmailRequest,
    user: User = Depends(get_current_user),
    service: IUserService = Depends(get_user_service),
) -> UserView:
    """Send a verification link for a new address. The address is added once verified."""
    await service.add_email(user, request.email)
    return UserView.from_user(user)


@router.delete("/emails", response_model=UserView)
async def remove_email(
    request: EmailRequest,
    user: User = Depends(get_current_user),
    service: IUserService = Depends(get_user_service),
) -> UserView:
    return UserView.from_user(await service.remove_email(user, request.email))


@router.patch("/emails", response_model=UserView)
async def make_email_primary(
    request: EmailRequest,
    user: User = Depends(get_current_user),
    service: IUserService = Depends(get_user_service),
) -> UserView:
    return UserView.from_user(await service.make_email_primary(user, request.email))


@router.get("/{user_id}", response_model=UserPartial)
async def get_user(
    user_id: str,
    user: User = Depends(get_current_user),
    service: IUserService = Depends(get_user_service),
) -> UserPartial:
    return UserPartial.from_user(await service.get_user(user_id))
