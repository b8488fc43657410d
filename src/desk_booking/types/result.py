# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Caller-facing result types for the admission engine.

Every admission or cancellation returns either ``Success(data=reservation)``
or ``Failure(error=ReservationError.X)``. HTTP status mapping and JSON shape
belong to the API layer.

Example:
    >>> result = await engine.create_reservation(user_id, day, Slot.MORNING)
    >>> if result.success:
    ...     print(result.data.id)
    ... elif result.error is ReservationError.FULL:
    ...     print("No desk left")
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Literal, TypeVar, Union

T = TypeVar("T")


class ReservationError(str, Enum):
    """Expected, recoverable booking outcomes.

    - FULL: capacity exhausted at check time
    - DUPLICATE: user already holds an active booking for the date and slot
    - TOO_LATE: cancellation attempted at or after slot start
    - NOT_FOUND: reservation absent or already cancelled
    - UNAUTHORIZED: requester does not own the reservation
    """

    FULL = "FULL"
    DUPLICATE = "DUPLICATE"
    TOO_LATE = "TOO_LATE"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"


@dataclass(frozen=True)
class Success(Generic[T]):
    data: T
    success: Literal[True] = True

    def to_dict(self) -> dict[str, Any]:
        payload = self.data.to_dict() if hasattr(self.data, "to_dict") else self.data
        return {"success": True, "data": payload}


@dataclass(frozen=True)
class Failure:
    error: ReservationError
    success: Literal[False] = False

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.error.value}


Result = Union[Success[T], Failure]


__all__ = ["Failure", "ReservationError", "Result", "Success"]
