"""Pydantic models for request/response schemas."""

from typing import Any

from pydantic import BaseModel, Field


# Counter Models
class CounterResponse(BaseModel):
    """A way counter as listed by GET /config."""

    key: str | None
    id: int
    label: str
    value: int


class ValueRequest(BaseModel):
    """
    Request to change a counter by ``delta``.

    Fields are deliberately untyped: identifiers and delta are validated
    and coerced by the counter service, which reports its own errors.
    """

    key: Any = Field(default=None, description="Logical string key, e.g. way-7")
    wayId: Any = Field(default=None, description="Numeric way id")  # noqa: N815
    id: Any = Field(default=None, description="Alias of wayId")
    delta: Any = Field(default=None, description="Change to apply (+1 or -1)")


class ValueResponse(BaseModel):
    """Counter after an update."""

    key: str | None
    id: int
    value: int


# Location Models
class SaveLocationRequest(BaseModel):
    """Request to store a user's location."""

    id: str | int = Field(..., description="User identifier")
    latitude: float
    longitude: float


class RemoveLocationRequest(BaseModel):
    """Request to forget a user's location."""

    id: str | int = Field(..., description="User identifier")


class LocationResponse(BaseModel):
    """A stored location."""

    id: str | int
    latitude: float
    longitude: float
    timestamp: str


class StatusResponse(BaseModel):
    """Simple status acknowledgement."""

    status: str
