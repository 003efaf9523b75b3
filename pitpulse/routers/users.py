from fastapi import APIRouter, Depends, Query

from ..dependencies import Pagination, get_user_service
from ..exceptions import NotFoundError, ValidationError
from ..models import User
from ..schemas import (
    ApiResponse, AuthResponse, AvailabilityResponse, FollowStatusResponse,
    FollowUserResponse, LoginRequest, Paginated, ProfileResponse,
    PublicProfileResponse, PublicUserResponse, RegisterRequest, UserResponse,
    UserStats, UserUpdate,
)
from ..services.jwt_service import JWTService
from ..services.user_service import UserService
from ..utils import total_pages

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", response_model=ApiResponse[AuthResponse], status_code=201)
async def register(payload: RegisterRequest, users: UserService = Depends(get_user_service)):
    user = await users.create_user(
        email=payload.email,
        password=payload.password,
        username=payload.username,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    token = JWTService.create_token(user)
    return ApiResponse(
        data=AuthResponse(user=UserResponse.model_validate(user), token=token),
        message="User registered successfully",
    )


@router.post("/login", response_model=ApiResponse[AuthResponse])
async def login(payload: LoginRequest, users: UserService = Depends(get_user_service)):
    user, token = await users.authenticate(payload.email, payload.password)
    return ApiResponse(
        data=AuthResponse(user=UserResponse.model_validate(user), token=token),
        message="Login successful",
    )


@router.get("/me", response_model=ApiResponse[ProfileResponse])
async def get_profile(
    current_user: User = Depends(JWTService.get_current_user),
    users: UserService = Depends(get_user_service),
):
    stats = await users.get_stats(current_user.id)
    profile = ProfileResponse(
        **UserResponse.model_validate(current_user).model_dump(),
        stats=UserStats(**stats),
    )
    return ApiResponse(data=profile)


@router.put("/me", response_model=ApiResponse[UserResponse])
async def update_profile(
    payload: UserUpdate,
    current_user: User = Depends(JWTService.get_current_user),
    users: UserService = Depends(get_user_service),
):
    changes = payload.model_dump(by_alias=True, exclude_unset=True)
    user = await users.update_profile(current_user.id, changes)
    return ApiResponse(data=UserResponse.model_validate(user), message="Profile updated successfully")


@router.delete("/me", response_model=ApiResponse[None])
async def deactivate_account(
    current_user: User = Depends(JWTService.get_current_user),
    users: UserService = Depends(get_user_service),
):
    await users.deactivate(current_user.id)
    return ApiResponse(message="Account deactivated successfully")


@router.get("/check-username/{username}", response_model=ApiResponse[AvailabilityResponse])
async def check_username(username: str, users: UserService = Depends(get_user_service)):
    available = await users.is_username_available(username)
    return ApiResponse(data=AvailabilityResponse(username=username, available=available))


@router.get("/check-email", response_model=ApiResponse[AvailabilityResponse])
async def check_email(email: str = Query(None), users: UserService = Depends(get_user_service)):
    if not email:
        raise ValidationError("Email query parameter is required")
    available = await users.is_email_available(email)
    return ApiResponse(data=AvailabilityResponse(email=email, available=available))


@router.get("/me/followers", response_model=ApiResponse[Paginated[FollowUserResponse]])
async def list_followers(
    pagination: Pagination = Depends(),
    current_user: User = Depends(JWTService.get_current_user),
    users: UserService = Depends(get_user_service),
):
    rows, total = await users.list_followers(
        current_user.id, limit=pagination.limit, offset=pagination.offset)
    return ApiResponse(data=_follow_page(rows, total, pagination))


@router.get("/me/following", response_model=ApiResponse[Paginated[FollowUserResponse]])
async def list_following(
    pagination: Pagination = Depends(),
    current_user: User = Depends(JWTService.get_current_user),
    users: UserService = Depends(get_user_service),
):
    rows, total = await users.list_following(
        current_user.id, limit=pagination.limit, offset=pagination.offset)
    return ApiResponse(data=_follow_page(rows, total, pagination))


@router.post("/{user_id}/follow", response_model=ApiResponse[FollowStatusResponse])
async def follow_user(
    user_id: int,
    current_user: User = Depends(JWTService.get_current_user),
    users: UserService = Depends(get_user_service),
):
    await users.follow(current_user.id, user_id)
    return ApiResponse(data=FollowStatusResponse(following=True))


@router.delete("/{user_id}/follow", response_model=ApiResponse[FollowStatusResponse])
async def unfollow_user(
    user_id: int,
    current_user: User = Depends(JWTService.get_current_user),
    users: UserService = Depends(get_user_service),
):
    await users.unfollow(current_user.id, user_id)
    return ApiResponse(data=FollowStatusResponse(following=False))


@router.get("/{username}", response_model=ApiResponse[PublicProfileResponse])
async def get_user_by_username(username: str, users: UserService = Depends(get_user_service)):
    user = await users.get_by_username(username)
    if user is None:
        raise NotFoundError("User not found")
    stats = await users.get_stats(user.id)
    profile = PublicProfileResponse(
        **PublicUserResponse.model_validate(user).model_dump(),
        stats=UserStats(**stats),
    )
    return ApiResponse(data=profile)


def _follow_page(rows, total: int, pagination: Pagination) -> Paginated[FollowUserResponse]:
    items = [
        FollowUserResponse(
            id=user.id,
            username=user.username,
            profile_image_url=user.profile_image_url,
            followed_at=followed_at,
        )
        for user, followed_at in rows
    ]
    return Paginated[FollowUserResponse](
        items=items,
        total=total,
        page=pagination.page,
        total_pages=total_pages(total, pagination.limit),
    )
