"""Coordinate field feature exceptions."""
from __future__ import annotations


class FieldModelError(Exception):
    """Base exception for the coordinate field feature."""


class UnknownFieldError(FieldModelError):
    """Raised when an operation targets a field id that is not buffered."""

    def __init__(self, field_id: str) -> None:
        super().__init__(f"Unknown field: {field_id}")
        self.field_id = field_id


class ImmutablePlacementError(FieldModelError):
    """Raised when a persisted signature placement is edited."""

    def __init__(self, field_id: str) -> None:
        super().__init__(f"Signature placement {field_id} is already persisted and cannot be changed")
        self.field_id = field_id


class PlacementInFlightError(ImmutablePlacementError):
    """Raised when a placement is edited while it is being submitted."""

    def __init__(self, field_id: str) -> None:
        FieldModelError.__init__(self, f"Signature placement {field_id} is being submitted and cannot be changed")
        self.field_id = field_id
