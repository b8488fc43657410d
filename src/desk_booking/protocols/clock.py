# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for time sources."""

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class ClockProtocol(Protocol):
    """
    Source of the current instant.

    Cancellation cutoffs and reminder windows compare against ``now()``, so
    tests swap in a fixed clock instead of patching ``datetime``.
    """

    def now(self) -> datetime:
        """Current instant as a timezone-aware datetime."""
        ...
