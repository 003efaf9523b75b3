from fastapi import APIRouter, Depends, Query

from ..dependencies import get_badge_service
from ..models import User
from ..schemas import (
    ApiResponse, BadgeAwardResult, BadgeProgressResponse, BadgeResponse,
    LeaderboardEntry, UserBadgeResponse,
)
from ..services.badge_service import BadgeService
from ..services.jwt_service import JWTService

router = APIRouter(prefix="/badges", tags=["badges"])


@router.get("", response_model=ApiResponse[list[BadgeResponse]])
async def list_badges(badges: BadgeService = Depends(get_badge_service)):
    return ApiResponse(data=await badges.get_all_badges())


@router.get("/leaderboard", response_model=ApiResponse[list[LeaderboardEntry]])
async def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    badges: BadgeService = Depends(get_badge_service),
):
    return ApiResponse(data=await badges.get_leaderboard(limit))


@router.get("/my-badges", response_model=ApiResponse[list[UserBadgeResponse]])
async def my_badges(
    current_user: User = Depends(JWTService.get_current_user),
    badges: BadgeService = Depends(get_badge_service),
):
    return ApiResponse(data=await badges.get_user_badges(current_user.id))


@router.get("/my-progress", response_model=ApiResponse[list[BadgeProgressResponse]])
async def my_progress(
    current_user: User = Depends(JWTService.get_current_user),
    badges: BadgeService = Depends(get_badge_service),
):
    return ApiResponse(data=await badges.get_user_badge_progress(current_user.id))


@router.get("/user/{user_id}", response_model=ApiResponse[list[UserBadgeResponse]])
async def user_badges(user_id: int, badges: BadgeService = Depends(get_badge_service)):
    return ApiResponse(data=await badges.get_user_badges(user_id))


@router.post("/check-awards", response_model=ApiResponse[BadgeAwardResult])
async def check_awards(
    current_user: User = Depends(JWTService.get_current_user),
    badges: BadgeService = Depends(get_badge_service),
):
    new_badges = [BadgeResponse.model_validate(b) for b in await badges.check_and_award(current_user.id)]
    count = len(new_badges)
    if count:
        message = f"Congratulations! You earned {count} new badge{'s' if count > 1 else ''}!"
    else:
        message = "No new badges earned at this time"
    return ApiResponse(data=BadgeAwardResult(new_badges=new_badges, count=count), message=message)


@router.get("/{badge_id}", response_model=ApiResponse[BadgeResponse])
async def get_badge(badge_id: int, badges: BadgeService = Depends(get_badge_service)):
    return ApiResponse(data=await badges.get_badge(badge_id))
