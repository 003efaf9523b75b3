from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import Pagination, get_review_service
from ..models import User
from ..schemas import (
    ApiResponse, HelpfulRequest, Paginated, ReviewCreate, ReviewResponse,
    ReviewUpdate, SortOrder,
)
from ..services.jwt_service import JWTService
from ..services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.get("", response_model=ApiResponse[Paginated[ReviewResponse]])
async def search_reviews(
    q: str = "",
    user_id: Optional[int] = Query(None, alias="userId"),
    venue_id: Optional[int] = Query(None, alias="venueId"),
    band_id: Optional[int] = Query(None, alias="bandId"),
    min_rating: Optional[int] = Query(None, alias="minRating", ge=1, le=5),
    max_rating: Optional[int] = Query(None, alias="maxRating", ge=1, le=5),
    sort: str = "created_at",
    order: SortOrder = SortOrder.desc,
    pagination: Pagination = Depends(),
    reviews: ReviewService = Depends(get_review_service),
):
    result = await reviews.search(
        q=q,
        user_id=user_id,
        venue_id=venue_id,
        band_id=band_id,
        min_rating=min_rating,
        max_rating=max_rating,
        page=pagination.page,
        limit=pagination.limit,
        sort=sort,
        order=order.value,
    )
    return ApiResponse(data=result)


@router.get("/venue/{venue_id}", response_model=ApiResponse[Paginated[ReviewResponse]])
async def venue_reviews(
    venue_id: int,
    sort: str = "created_at",
    order: SortOrder = SortOrder.desc,
    pagination: Pagination = Depends(),
    reviews: ReviewService = Depends(get_review_service),
):
    result = await reviews.search(
        venue_id=venue_id, page=pagination.page, limit=pagination.limit,
        sort=sort, order=order.value)
    return ApiResponse(data=result)


@router.get("/band/{band_id}", response_model=ApiResponse[Paginated[ReviewResponse]])
async def band_reviews(
    band_id: int,
    sort: str = "created_at",
    order: SortOrder = SortOrder.desc,
    pagination: Pagination = Depends(),
    reviews: ReviewService = Depends(get_review_service),
):
    result = await reviews.search(
        band_id=band_id, page=pagination.page, limit=pagination.limit,
        sort=sort, order=order.value)
    return ApiResponse(data=result)


@router.get("/user/{user_id}", response_model=ApiResponse[Paginated[ReviewResponse]])
async def user_reviews(
    user_id: int,
    pagination: Pagination = Depends(),
    reviews: ReviewService = Depends(get_review_service),
):
    result = await reviews.search(user_id=user_id, page=pagination.page, limit=pagination.limit)
    return ApiResponse(data=result)


@router.get("/my-review", response_model=ApiResponse[Optional[ReviewResponse]])
async def my_review(
    venue_id: Optional[int] = Query(None, alias="venueId"),
    band_id: Optional[int] = Query(None, alias="bandId"),
    current_user: User = Depends(JWTService.get_current_user),
    reviews: ReviewService = Depends(get_review_service),
):
    review = await reviews.get_user_review(current_user.id, venue_id=venue_id, band_id=band_id)
    return ApiResponse(data=review)


@router.get("/{review_id}", response_model=ApiResponse[ReviewResponse])
async def get_review(review_id: int, reviews: ReviewService = Depends(get_review_service)):
    return ApiResponse(data=await reviews.get_by_id(review_id))


@router.post("", response_model=ApiResponse[ReviewResponse], status_code=201)
async def create_review(
    payload: ReviewCreate,
    current_user: User = Depends(JWTService.get_current_user),
    reviews: ReviewService = Depends(get_review_service),
):
    review = await reviews.create(current_user.id, payload.model_dump())
    return ApiResponse(data=review, message="Review created successfully")


@router.put("/{review_id}", response_model=ApiResponse[ReviewResponse])
async def update_review(
    review_id: int,
    payload: ReviewUpdate,
    current_user: User = Depends(JWTService.get_current_user),
    reviews: ReviewService = Depends(get_review_service),
):
    changes = payload.model_dump(by_alias=True, exclude_unset=True)
    review = await reviews.update(review_id, current_user.id, changes)
    return ApiResponse(data=review, message="Review updated successfully")


@router.delete("/{review_id}", response_model=ApiResponse[None])
async def delete_review(
    review_id: int,
    current_user: User = Depends(JWTService.get_current_user),
    reviews: ReviewService = Depends(get_review_service),
):
    await reviews.delete(review_id, current_user.id)
    return ApiResponse(message="Review deleted successfully")


@router.post("/{review_id}/helpful", response_model=ApiResponse[ReviewResponse])
async def mark_helpful(
    review_id: int,
    payload: Optional[HelpfulRequest] = None,
    current_user: User = Depends(JWTService.get_current_user),
    reviews: ReviewService = Depends(get_review_service),
):
    is_helpful = payload.is_helpful if payload is not None else True
    review = await reviews.mark_helpful(review_id, current_user.id, is_helpful)
    message = f"Review marked as {'helpful' if is_helpful else 'not helpful'}"
    return ApiResponse(data=review, message=message)
