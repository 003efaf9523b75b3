from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import Pagination, get_band_service, get_event_service
from ..schemas import (
    ApiResponse, BandCreate, BandResponse, BandUpdate, EventResponse,
    Paginated, SortOrder,
)
from ..services.band_service import BandService
from ..services.event_service import EventService
from ..services.jwt_service import JWTService

router = APIRouter(prefix="/bands", tags=["bands"])

# Catalog edits need a signed-in user; there is no per-record ownership
requires_auth = [Depends(JWTService.get_current_user)]


@router.get("", response_model=ApiResponse[Paginated[BandResponse]])
async def search_bands(
    q: str = "",
    genre: Optional[str] = None,
    rating: Optional[float] = Query(None, ge=0, le=5),
    sort: str = "name",
    order: SortOrder = SortOrder.asc,
    pagination: Pagination = Depends(),
    bands: BandService = Depends(get_band_service),
):
    result = await bands.search(
        q=q,
        genre=genre,
        rating=rating,
        page=pagination.page,
        limit=pagination.limit,
        sort=sort,
        order=order.value,
    )
    return ApiResponse(data=result)


@router.get("/popular", response_model=ApiResponse[list[BandResponse]])
async def popular_bands(
    limit: int = Query(10, ge=1, le=100),
    bands: BandService = Depends(get_band_service),
):
    return ApiResponse(data=await bands.get_popular(limit))


@router.get("/trending", response_model=ApiResponse[list[BandResponse]])
async def trending_bands(
    limit: int = Query(10, ge=1, le=100),
    bands: BandService = Depends(get_band_service),
):
    return ApiResponse(data=await bands.get_trending(limit))


@router.get("/genres", response_model=ApiResponse[list[str]])
async def list_genres(bands: BandService = Depends(get_band_service)):
    return ApiResponse(data=await bands.get_genres())


@router.get("/genre/{genre}", response_model=ApiResponse[list[BandResponse]])
async def bands_by_genre(
    genre: str,
    limit: int = Query(20, ge=1, le=100),
    bands: BandService = Depends(get_band_service),
):
    return ApiResponse(data=await bands.get_by_genre(genre, limit))


@router.get("/{band_id}", response_model=ApiResponse[BandResponse])
async def get_band(band_id: int, bands: BandService = Depends(get_band_service)):
    return ApiResponse(data=await bands.require(band_id))


@router.get("/{band_id}/events", response_model=ApiResponse[list[EventResponse]])
async def band_events(
    band_id: int,
    upcoming: bool = True,
    limit: int = Query(50, ge=1, le=100),
    bands: BandService = Depends(get_band_service),
    events: EventService = Depends(get_event_service),
):
    await bands.require(band_id)
    return ApiResponse(data=await events.get_by_band(band_id, upcoming=upcoming, limit=limit))


@router.post("", response_model=ApiResponse[BandResponse], status_code=201, dependencies=requires_auth)
async def create_band(payload: BandCreate, bands: BandService = Depends(get_band_service)):
    band = await bands.create(payload.model_dump())
    return ApiResponse(data=band, message="Band created successfully")


@router.put("/{band_id}", response_model=ApiResponse[BandResponse], dependencies=requires_auth)
async def update_band(
    band_id: int,
    payload: BandUpdate,
    bands: BandService = Depends(get_band_service),
):
    band = await bands.update(band_id, payload.model_dump(by_alias=True, exclude_unset=True))
    return ApiResponse(data=band, message="Band updated successfully")


@router.delete("/{band_id}", response_model=ApiResponse[None], dependencies=requires_auth)
async def delete_band(band_id: int, bands: BandService = Depends(get_band_service)):
    await bands.delete(band_id)
    return ApiResponse(message="Band deleted successfully")
