"""Counter endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import PlainTextResponse

from ..counter import WayCounterService
from ..models import CandidateKeys
from .dependencies import get_service
from .models import CounterResponse, ValueRequest, ValueResponse

router = APIRouter()


@router.get("/config", response_model=list[CounterResponse])
async def get_config(
    service: WayCounterService = Depends(get_service),
) -> list[CounterResponse]:
    """List every way counter."""
    counters = await service.list_counters()
    return [CounterResponse(**counter.to_dict()) for counter in counters]


@router.post("/value", response_model=ValueResponse)
async def update_value(
    payload: Any = Body(default=None),
    service: WayCounterService = Depends(get_service),
) -> ValueResponse:
    """
    Increment or decrement a way's counter by delta.

    The body is validated by the service, not by FastAPI: anything that
    isn't a JSON object carries no delta and is rejected with a 400.
    """
    request = ValueRequest.model_validate(payload) if isinstance(payload, dict) else ValueRequest()
    candidates = CandidateKeys.from_request(key=request.key, way_id=request.wayId, id=request.id)
    counter = await service.apply_delta(candidates, request.delta)
    return ValueResponse(**counter.to_update_dict())


@router.get("/health", response_class=PlainTextResponse)
async def health_check() -> str:
    """Health check endpoint."""
    return "OK"
