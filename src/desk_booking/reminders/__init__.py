# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Day-ahead reminder batch job."""

from .scanner import ReminderScanner

__all__ = ["ReminderScanner"]
