# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Coworking settings model.

A single settings row holds the desk capacity shared by every date and slot,
and the start/end hour of each slot. Pydantic validates the row on every
construction, so an invalid admin update never reaches the store.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, model_validator

from .reservation import Slot

DEFAULT_TOTAL_DESKS = 10
DEFAULT_MORNING_START_HOUR = 8
DEFAULT_MORNING_END_HOUR = 13
DEFAULT_AFTERNOON_START_HOUR = 13
DEFAULT_AFTERNOON_END_HOUR = 18

# Fields an admin may change.
MUTABLE_FIELDS = frozenset(
    {
        "total_desks",
        "morning_start_hour",
        "morning_end_hour",
        "afternoon_start_hour",
        "afternoon_end_hour",
    }
)


class CoworkingSettings(BaseModel):
    """
    Capacity and slot hours.

    Slot overlap is not validated; keeping the morning and afternoon windows
    apart is left to the admin.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    total_desks: int = Field(default=DEFAULT_TOTAL_DESKS, ge=1)
    morning_start_hour: int = Field(default=DEFAULT_MORNING_START_HOUR, ge=0, le=23)
    morning_end_hour: int = Field(default=DEFAULT_MORNING_END_HOUR, ge=0, le=23)
    afternoon_start_hour: int = Field(
        default=DEFAULT_AFTERNOON_START_HOUR, ge=0, le=23
    )
    afternoon_end_hour: int = Field(default=DEFAULT_AFTERNOON_END_HOUR, ge=0, le=23)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _validate_slot_hours(self) -> "CoworkingSettings":
        """Each slot must start before it ends."""
        if self.morning_start_hour >= self.morning_end_hour:
            raise ValueError("morning_start_hour must be before morning_end_hour")
        if self.afternoon_start_hour >= self.afternoon_end_hour:
            raise ValueError("afternoon_start_hour must be before afternoon_end_hour")
        return self

    def slot_start_hour(self, slot: Slot) -> int:
        if slot is Slot.MORNING:
            return self.morning_start_hour
        return self.afternoon_start_hour

    def slot_end_hour(self, slot: Slot) -> int:
        if slot is Slot.MORNING:
            return self.morning_end_hour
        return self.afternoon_end_hour

    def slot_time_range(self, slot: Slot) -> str:
        """Human readable ``HH:00-HH:00`` window for a slot."""
        return f"{self.slot_start_hour(slot):02d}:00-{self.slot_end_hour(slot):02d}:00"

    def to_dict(self) -> dict[str, Any]:
        """Convert to a flat dict for backend storage."""
        return {
            "id": self.id,
            "total_desks": self.total_desks,
            "morning_start_hour": self.morning_start_hour,
            "morning_end_hour": self.morning_end_hour,
            "afternoon_start_hour": self.afternoon_start_hour,
            "afternoon_end_hour": self.afternoon_end_hour,
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CoworkingSettings":
        """Create settings from their stored dict form (values may be strings)."""
        return cls(
            id=data["id"],
            total_desks=int(data["total_desks"]),
            morning_start_hour=int(data["morning_start_hour"]),
            morning_end_hour=int(data["morning_end_hour"]),
            afternoon_start_hour=int(data["afternoon_start_hour"]),
            afternoon_end_hour=int(data["afternoon_end_hour"]),
            updated_at=datetime.fromisoformat(data["updated_at"])
            if data.get("updated_at")
            else datetime.now(timezone.utc),
        )


__all__ = [
    "DEFAULT_AFTERNOON_END_HOUR",
    "DEFAULT_AFTERNOON_START_HOUR",
    "DEFAULT_MORNING_END_HOUR",
    "DEFAULT_MORNING_START_HOUR",
    "DEFAULT_TOTAL_DESKS",
    "MUTABLE_FIELDS",
    "CoworkingSettings",
]
