from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import Pagination, get_event_service, get_venue_service
from ..schemas import (
    ApiResponse, EventResponse, NearbyVenueResponse, Paginated, SortOrder,
    VenueCreate, VenueResponse, VenueUpdate,
)
from ..services.event_service import EventService
from ..services.jwt_service import JWTService
from ..services.venue_service import VenueService

router = APIRouter(prefix="/venues", tags=["venues"])

# Catalog edits need a signed-in user; there is no per-record ownership
requires_auth = [Depends(JWTService.get_current_user)]


@router.get("", response_model=ApiResponse[Paginated[VenueResponse]])
async def search_venues(
    q: str = Query("", description="Free-text search over name, description and city"),
    city: Optional[str] = None,
    venue_type: Optional[str] = Query(None, alias="venueType"),
    rating: Optional[float] = Query(None, ge=0, le=5),
    sort: str = "name",
    order: SortOrder = SortOrder.asc,
    pagination: Pagination = Depends(),
    venues: VenueService = Depends(get_venue_service),
):
    result = await venues.search(
        q=q,
        city=city,
        venue_type=venue_type,
        rating=rating,
        page=pagination.page,
        limit=pagination.limit,
        sort=sort,
        order=order.value,
    )
    return ApiResponse(data=result)


@router.get("/popular", response_model=ApiResponse[list[VenueResponse]])
async def popular_venues(
    limit: int = Query(10, ge=1, le=100),
    venues: VenueService = Depends(get_venue_service),
):
    return ApiResponse(data=await venues.get_popular(limit))


@router.get("/near", response_model=ApiResponse[list[NearbyVenueResponse]])
async def venues_near(
    lat: float = Query(...),
    lng: float = Query(...),
    radius: float = Query(50, gt=0, description="Radius in kilometers"),
    limit: int = Query(20, ge=1, le=100),
    venues: VenueService = Depends(get_venue_service),
):
    nearby = await venues.get_near(lat, lng, radius_km=radius, limit=limit)
    data = [
        NearbyVenueResponse(
            **VenueResponse.model_validate(venue).model_dump(),
            distance_km=round(distance, 2),
        )
        for venue, distance in nearby
    ]
    return ApiResponse(data=data)


@router.get("/{venue_id}", response_model=ApiResponse[VenueResponse])
async def get_venue(venue_id: int, venues: VenueService = Depends(get_venue_service)):
    return ApiResponse(data=await venues.require(venue_id))


@router.get("/{venue_id}/events", response_model=ApiResponse[list[EventResponse]])
async def venue_events(
    venue_id: int,
    upcoming: bool = True,
    limit: int = Query(50, ge=1, le=100),
    venues: VenueService = Depends(get_venue_service),
    events: EventService = Depends(get_event_service),
):
    await venues.require(venue_id)
    return ApiResponse(data=await events.get_by_venue(venue_id, upcoming=upcoming, limit=limit))


@router.post("", response_model=ApiResponse[VenueResponse], status_code=201, dependencies=requires_auth)
async def create_venue(payload: VenueCreate, venues: VenueService = Depends(get_venue_service)):
    venue = await venues.create(payload.model_dump())
    return ApiResponse(data=venue, message="Venue created successfully")


@router.put("/{venue_id}", response_model=ApiResponse[VenueResponse], dependencies=requires_auth)
async def update_venue(
    venue_id: int,
    payload: VenueUpdate,
    venues: VenueService = Depends(get_venue_service),
):
    changes = payload.model_dump(by_alias=True, exclude_unset=True)
    venue = await venues.update(venue_id, changes)
    return ApiResponse(data=venue, message="Venue updated successfully")


@router.delete("/{venue_id}", response_model=ApiResponse[None], dependencies=requires_auth)
async def delete_venue(venue_id: int, venues: VenueService = Depends(get_venue_service)):
    await venues.delete(venue_id)
    return ApiResponse(message="Venue deleted successfully")
