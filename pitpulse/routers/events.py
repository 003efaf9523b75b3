from fastapi import APIRouter, Depends, Query

from ..dependencies import get_event_service
from ..models import User
from ..schemas import ApiResponse, EventCreate, EventResponse
from ..services.event_service import EventService
from ..services.jwt_service import JWTService

router = APIRouter(prefix="/events", tags=["events"])


@router.get("/upcoming", response_model=ApiResponse[list[EventResponse]])
async def upcoming_events(
    limit: int = Query(50, ge=1, le=100),
    events: EventService = Depends(get_event_service),
):
    return ApiResponse(data=await events.get_upcoming(limit))


@router.get("/trending", response_model=ApiResponse[list[EventResponse]])
async def trending_events(
    limit: int = Query(20, ge=1, le=100),
    events: EventService = Depends(get_event_service),
):
    return ApiResponse(data=await events.get_trending(limit))


@router.post("", response_model=ApiResponse[EventResponse], status_code=201)
async def create_event(
    payload: EventCreate,
    current_user: User = Depends(JWTService.get_current_user),
    events: EventService = Depends(get_event_service),
):
    # Same (venue, band, date) always resolves to the existing show
    event = await events.resolve_or_create(
        payload.venue_id,
        payload.band_id,
        payload.event_date,
        event_name=payload.event_name,
        created_by_user_id=current_user.id,
    )
    return ApiResponse(data=event, message="Event created successfully")


@router.get("/{event_id}", response_model=ApiResponse[EventResponse])
async def get_event(event_id: int, events: EventService = Depends(get_event_service)):
    return ApiResponse(data=await events.get_by_id(event_id))


@router.delete("/{event_id}", response_model=ApiResponse[None],
               dependencies=[Depends(JWTService.get_current_user)])
async def delete_event(event_id: int, events: EventService = Depends(get_event_service)):
    await events.delete(event_id)
    return ApiResponse(message="Event deleted successfully")
