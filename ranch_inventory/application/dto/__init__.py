"""Application DTOs."""

from ranch_inventory.application.dto.requests import (
    ListItemsRequest,
    RecordMovementRequest,
    RegisterItemRequest,
    ReservationRequest,
)

__all__ = [
    "ListItemsRequest",
    "RecordMovementRequest",
    "ReservationRequest",
    "RegisterItemRequest",
]
