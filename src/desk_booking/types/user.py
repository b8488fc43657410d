# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""User identity types."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Access role. Admins configure capacity and hours; members book desks."""

    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


@dataclass
class User:
    """
    A person who can hold reservations.

    Only identity, contact and role matter to the engine; profile editing is
    handled elsewhere.
    """

    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    role: Role = Role.MEMBER
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def display_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role.value,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            email=data["email"],
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            role=Role(data.get("role", "MEMBER")),
            created_at=datetime.fromisoformat(data["created_at"])
            if data.get("created_at")
            else datetime.now(timezone.utc),
        )


__all__ = ["Role", "User"]
