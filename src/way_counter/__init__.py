"""
way-counter: bounded way counters backed by DynamoDB.

The service discovers the table's primary-key schema at runtime, maps
client identifiers (``key``, ``wayId``, ``id``) onto it, and applies
bounded deltas with conditional writes so that ``0 <= value <= max``.

Example:
    from way_counter import CandidateKeys, WayCounterService

    async with WayCounterService(table_name="WayConfig", max_value=10) as service:
        counter = await service.apply_delta(CandidateKeys.from_request(key="way-7"), 1)
        print(counter.value)
"""

from .counter import WayCounterService
from .exceptions import (
    BoundViolation,
    CounterError,
    CounterExistsError,
    InvalidDelta,
    KeyResolutionFailed,
    SchemaUnavailable,
    StoreError,
    StoreTransientFailure,
    ValidationError,
    WayCounterError,
)
from .models import (
    Bound,
    CandidateKeys,
    KeyAttribute,
    Location,
    SeedResult,
    TableSchema,
    WayCounter,
)
from .repository import Repository

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Main classes
    "WayCounterService",
    "Repository",
    # Models
    "Bound",
    "CandidateKeys",
    "KeyAttribute",
    "Location",
    "SeedResult",
    "TableSchema",
    "WayCounter",
    # Exceptions - Base
    "WayCounterError",
    # Exceptions - Categories
    "ValidationError",
    "CounterError",
    "StoreError",
    # Exceptions - Specific
    "InvalidDelta",
    "KeyResolutionFailed",
    "BoundViolation",
    "CounterExistsError",
    "SchemaUnavailable",
    "StoreTransientFailure",
]
