"""User location endpoints."""

from fastapi import APIRouter, Depends

from ..locations import LocationStore
from .dependencies import get_locations
from .models import (
    LocationResponse,
    RemoveLocationRequest,
    SaveLocationRequest,
    StatusResponse,
)

router = APIRouter()


@router.post("/save-location", response_model=StatusResponse)
def save_location(
    request: SaveLocationRequest,
    store: LocationStore = Depends(get_locations),
) -> StatusResponse:
    """Store a user's location, replacing any previous one."""
    store.save(request.id, request.latitude, request.longitude)
    return StatusResponse(status="ok")


@router.post("/remove-location", response_model=StatusResponse)
def remove_location(
    request: RemoveLocationRequest,
    store: LocationStore = Depends(get_locations),
) -> StatusResponse:
    """Forget a user's location."""
    store.remove(request.id)
    return StatusResponse(status="removed")


@router.get("/get-locations", response_model=list[LocationResponse])
def get_locations_list(
    store: LocationStore = Depends(get_locations),
) -> list[LocationResponse]:
    """All stored locations."""
    return [LocationResponse(**location.to_dict()) for location in store.all()]
