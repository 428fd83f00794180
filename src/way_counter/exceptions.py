"""Exceptions for way-counter."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import Bound


# ---------------------------------------------------------------------------
# Base Exception
# ---------------------------------------------------------------------------


class WayCounterError(Exception):
    """
    Base exception for all way-counter errors.

    All exceptions raised by this package inherit from this class,
    allowing callers to catch all package-specific errors with a single
    except clause.

    Attributes:
        status_code: HTTP status the API layer reports for this error
        error_code: Stable machine-readable error identifier
    """

    status_code: int = 500
    error_code: str = "way_counter_error"

    def as_dict(self) -> dict[str, Any]:
        """Serialize for JSON API responses."""
        return {"error": self.error_code, "message": str(self)}


# ---------------------------------------------------------------------------
# Category Exceptions
# ---------------------------------------------------------------------------


class ValidationError(WayCounterError):
    """
    Base exception for rejected client input.

    Raised before any store call is made, so a validation error never
    has side effects.
    """

    status_code = 400
    error_code = "validation_error"


class CounterError(WayCounterError):
    """Base exception for counter business-rule rejections."""

    status_code = 400
    error_code = "counter_error"


class StoreError(WayCounterError):
    """
    Base exception for DynamoDB-side failures.

    Attributes:
        cause: The underlying botocore exception, if any
        table_name: The DynamoDB table that was being accessed
    """

    status_code = 500
    error_code = "store_error"

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        *,
        table_name: str | None = None,
    ) -> None:
        self.cause = cause
        self.table_name = table_name
        super().__init__(self._format_message(message))

    def _format_message(self, message: str) -> str:
        parts = [message]
        if self.table_name:
            parts.append(f"[table={self.table_name}]")
        if self.cause is not None:
            parts.append(f"({self.cause})")
        return " ".join(parts)


# ---------------------------------------------------------------------------
# Validation Exceptions
# ---------------------------------------------------------------------------


class InvalidDelta(ValidationError):  # noqa: N818
    """Raised when a delta is not an integer in the allowed set."""

    error_code = "invalid_delta"

    def __init__(self, delta: Any, allowed: frozenset[int] | None = None) -> None:
        self.delta = delta
        self.allowed = allowed
        if allowed:
            choices = ", ".join(f"{d:+d}" for d in sorted(allowed))
            msg = f"delta must be one of [{choices}], got {delta!r}"
        else:
            msg = f"delta (integer) is required, got {delta!r}"
        super().__init__(msg)


class KeyResolutionFailed(ValidationError):  # noqa: N818
    """
    Raised when no candidate identifier satisfies the table key schema.

    Attributes:
        accepted: Identifier names a client may send
        missing: Key attributes that could not be resolved
    """

    error_code = "key_resolution_failed"
    accepted = ("key (string)", "wayId (number)", "id (number)")

    def __init__(self, missing: list[str] | None = None) -> None:
        self.missing = missing or []
        msg = (
            "Missing required key attributes for this table. "
            f"Include one or more of: {', '.join(self.accepted)}."
        )
        super().__init__(msg)

    def as_dict(self) -> dict[str, Any]:
        return {
            "error": self.error_code,
            "message": str(self),
            "accepted": list(self.accepted),
            "missing": self.missing,
        }


# ---------------------------------------------------------------------------
# Counter Exceptions
# ---------------------------------------------------------------------------


class BoundViolation(CounterError):  # noqa: N818
    """
    Raised when the conditional guard rejects an update at a bound.

    This is an expected business outcome: the counter is already at its
    ceiling (increment) or floor (decrement) and was left unchanged.

    Attributes:
        bound: Which bound was hit
        delta: The rejected delta
        max_value: Configured ceiling
        key: Native key the update targeted
        current_value: Stored value at rejection time, when the store reported it
    """

    error_code = "bound_violation"

    def __init__(
        self,
        bound: "Bound",
        delta: int,
        max_value: int,
        key: dict[str, Any] | None = None,
        current_value: int | None = None,
    ) -> None:
        self.bound = bound
        self.delta = delta
        self.max_value = max_value
        self.key = key or {}
        self.current_value = current_value
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.bound.value == "ceiling":
            return f"Value is already at the maximum ({self.max_value})"
        return "Value is already at the minimum (0)"

    def as_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": str(self),
            "bound": self.bound.value,
            "delta": self.delta,
            "max": self.max_value,
        }
        if self.current_value is not None:
            result["value"] = self.current_value
        return result


class CounterExistsError(CounterError):
    """Raised when a create-only write finds the counter already present."""

    error_code = "counter_exists"

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"Counter already exists: {key}")


# ---------------------------------------------------------------------------
# Store Exceptions
# ---------------------------------------------------------------------------


class SchemaUnavailable(StoreError):  # noqa: N818
    """
    Raised when the table key schema cannot be discovered.

    This typically means DynamoDB is unreachable or the table hasn't
    been created yet. No key resolution or update is attempted.
    """

    error_code = "schema_unavailable"


class StoreTransientFailure(StoreError):  # noqa: N818
    """
    Raised for any other DynamoDB failure (connectivity, throttling, validation).

    Not retried here; retry policy belongs to the botocore client config.
    """

    error_code = "store_failure"
