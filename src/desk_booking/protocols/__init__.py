# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocol definitions for pluggable collaborators.

Available protocols:
- ClockProtocol: Source of the current instant
- NotifierProtocol: Delivery channel for booking notifications
"""

from .clock import ClockProtocol
from .notifier import NotifierProtocol

__all__ = [
    "ClockProtocol",
    "NotifierProtocol",
]
