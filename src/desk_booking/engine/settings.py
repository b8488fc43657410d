# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Load-or-initialize access to the coworking settings row.
"""

import logging
from typing import Any

from pydantic import ValidationError

from ..backends.base import BaseStore
from ..clock import SystemClock
from ..config import BookingConfig
from ..exceptions import SettingsValidationError
from ..observability.collector import (
    UnifiedMetricsCollector,
    resolve_metrics_collector,
)
from ..observability.constants import (
    SETTINGS_INITIALIZED_TOTAL,
    SETTINGS_UPDATES_TOTAL,
)
from ..protocols.clock import ClockProtocol
from ..types.settings import MUTABLE_FIELDS, CoworkingSettings

logger = logging.getLogger(__name__)


class SettingsProvider:
    """
    Supplies the singleton settings row, creating it with defaults on first use.

    The store's ``create_settings`` only writes when no row exists and returns
    the stored row, so concurrent first reads settle on a single row.
    """

    def __init__(
        self,
        store: BaseStore,
        config: BookingConfig | None = None,
        clock: ClockProtocol | None = None,
        metrics_collector: UnifiedMetricsCollector | None = None,
    ):
        self.store = store
        self.config = config or BookingConfig()
        self.clock = clock or SystemClock()
        self.metrics_collector = resolve_metrics_collector(
            self.config.metrics_enabled, metrics_collector
        )

    def _defaults(self) -> CoworkingSettings:
        return CoworkingSettings(
            **self.config.default_settings_values(), updated_at=self.clock.now()
        )

    async def get_settings(self) -> CoworkingSettings:
        """
        Return the settings row, creating it with configured defaults if absent.

        Store failures propagate.
        """
        settings = await self.store.get_settings()
        if settings is not None:
            return settings

        defaults = self._defaults()
        stored = await self.store.create_settings(defaults)
        if stored.id == defaults.id:
            logger.info(
                f"Initialized coworking settings with defaults "
                f"(total_desks={stored.total_desks})"
            )
            if self.metrics_collector:
                self.metrics_collector.inc_counter(SETTINGS_INITIALIZED_TOTAL)
        return stored

    async def peek_settings(self) -> CoworkingSettings | None:
        """Return the settings row without creating it."""
        return await self.store.get_settings()

    async def update_settings(self, **changes: Any) -> CoworkingSettings:
        """
        Apply an admin partial update.

        Only ``total_desks`` and the four slot hour fields may change. The
        merged row is validated as a whole before anything is written.

        Raises:
            SettingsValidationError: Unknown field or invalid merged values
        """
        unknown = sorted(set(changes) - MUTABLE_FIELDS)
        if unknown:
            raise SettingsValidationError(
                f"Unknown settings field(s): {', '.join(unknown)}", field=unknown[0]
            )

        current = await self.get_settings()
        merged = current.to_dict()
        merged.update(changes)
        merged["updated_at"] = self.clock.now()

        try:
            updated = CoworkingSettings.model_validate(merged)
        except ValidationError as e:
            errors = e.errors()
            field = str(errors[0]["loc"][0]) if errors and errors[0]["loc"] else None
            raise SettingsValidationError(
                f"Invalid settings: {errors[0]['msg'] if errors else e}", field=field
            ) from e

        stored = await self.store.update_settings(updated)
        logger.info(f"Updated coworking settings: {sorted(changes)}")
        if self.metrics_collector:
            self.metrics_collector.inc_counter(SETTINGS_UPDATES_TOTAL)
        return stored


__all__ = ["SettingsProvider"]
