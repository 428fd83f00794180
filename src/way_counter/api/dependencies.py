"""FastAPI dependencies for the counter service and location store."""

from fastapi import Request

from ..config import Settings
from ..counter import WayCounterService
from ..locations import LocationStore


def build_service(settings: Settings) -> WayCounterService:
    """Create a counter service from settings."""
    return WayCounterService(
        table_name=settings.table_name,
        region=settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
        max_value=settings.max_value,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
    )


def get_service(request: Request) -> WayCounterService:
    """The application's counter service."""
    service: WayCounterService = request.app.state.service
    return service


def get_locations(request: Request) -> LocationStore:
    """The application's location store."""
    store: LocationStore = request.app.state.locations
    return store
