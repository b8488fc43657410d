# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Availability snapshot for one date and slot."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Availability:
    """
    Remaining desks for a date and slot at the moment of the check.

    Advisory only: nothing is held between the check and a later booking.

    Attributes:
        available: Desks still free, never negative
        total: Configured desk capacity
    """

    available: int
    total: int

    @property
    def is_full(self) -> bool:
        return self.available <= 0

    def to_dict(self) -> dict[str, Any]:
        return {"available": self.available, "total": self.total}


__all__ = ["Availability"]
