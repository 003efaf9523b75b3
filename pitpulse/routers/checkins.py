from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..models import User
from ..dependencies import get_checkin_service
from ..schemas import (
    ApiResponse, CheckinCreate, CheckinResponse, CommentCreate,
    CommentResponse, FeedFilter,
)
from ..services.checkin_service import CheckinService
from ..services.jwt_service import JWTService

router = APIRouter(prefix="/checkins", tags=["checkins"])


@router.get("/feed", response_model=ApiResponse[list[CheckinResponse]])
async def activity_feed(
    filter: FeedFilter = FeedFilter.friends,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    current_user: User = Depends(JWTService.get_current_user),
    checkins: CheckinService = Depends(get_checkin_service),
):
    feed = await checkins.get_activity_feed(
        current_user.id,
        filter=filter.value,
        limit=limit,
        offset=offset,
        latitude=lat,
        longitude=lng,
    )
    return ApiResponse(data=feed)


@router.post("", response_model=ApiResponse[CheckinResponse], status_code=201)
async def create_checkin(
    payload: CheckinCreate,
    current_user: User = Depends(JWTService.get_current_user),
    checkins: CheckinService = Depends(get_checkin_service),
):
    checkin = await checkins.create(current_user.id, payload.model_dump())
    return ApiResponse(data=checkin, message="Check-in created successfully")


@router.get("/{checkin_id}", response_model=ApiResponse[CheckinResponse])
async def get_checkin(
    checkin_id: int,
    current_user: Optional[User] = Depends(JWTService.get_optional_user),
    checkins: CheckinService = Depends(get_checkin_service),
):
    viewer_id = current_user.id if current_user else None
    return ApiResponse(data=await checkins.get_by_id(checkin_id, viewer_id))


@router.delete("/{checkin_id}", response_model=ApiResponse[None])
async def delete_checkin(
    checkin_id: int,
    current_user: User = Depends(JWTService.get_current_user),
    checkins: CheckinService = Depends(get_checkin_service),
):
    await checkins.delete(current_user.id, checkin_id)
    return ApiResponse(message="Check-in deleted successfully")


@router.post("/{checkin_id}/toast", response_model=ApiResponse[None])
async def toast_checkin(
    checkin_id: int,
    current_user: User = Depends(JWTService.get_current_user),
    checkins: CheckinService = Depends(get_checkin_service),
):
    await checkins.toast(current_user.id, checkin_id)
    return ApiResponse(message="Check-in toasted successfully")


@router.delete("/{checkin_id}/toast", response_model=ApiResponse[None])
async def untoast_checkin(
    checkin_id: int,
    current_user: User = Depends(JWTService.get_current_user),
    checkins: CheckinService = Depends(get_checkin_service),
):
    await checkins.untoast(current_user.id, checkin_id)
    return ApiResponse(message="Toast removed successfully")


@router.get("/{checkin_id}/comments", response_model=ApiResponse[list[CommentResponse]])
async def list_comments(
    checkin_id: int,
    limit: int = Query(100, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(JWTService.get_current_user),
    checkins: CheckinService = Depends(get_checkin_service),
):
    return ApiResponse(data=await checkins.get_comments(checkin_id, limit=limit, offset=offset))


@router.post("/{checkin_id}/comments", response_model=ApiResponse[CommentResponse], status_code=201)
async def add_comment(
    checkin_id: int,
    payload: CommentCreate,
    current_user: User = Depends(JWTService.get_current_user),
    checkins: CheckinService = Depends(get_checkin_service),
):
    comment = await checkins.add_comment(current_user.id, checkin_id, payload.comment_text)
    return ApiResponse(data=comment, message="Comment added successfully")
