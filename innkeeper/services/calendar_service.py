"""
Calendar Service

Reads a consistent snapshot from the stores and hands it to the engine:
- room x date availability grid
- stay quotes
- manual room status (close / reopen, dirty / clean, special price)
"""

import dataclasses
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from ..config import Settings, get_settings
from ..engine.dates import date_range, validate_query_range
from ..engine.grid import build_grid
from ..engine.stay import StayQuote, quote_stay
from ..engine.types import (
    CalendarDay,
    OverrideStatus,
    RoomStatusOverride,
)
from ..exceptions import InvalidDateRange
from .stores import PropertyStores

logger = logging.getLogger(__name__)


class CalendarService:
    def __init__(self, stores: PropertyStores, settings: Optional[Settings] = None):
        self.stores = stores
        self.settings = settings or get_settings()

    def get_grid(
        self,
        start_date: date,
        end_date: date,
        room_ids: Optional[Sequence[str]] = None
    ) -> List[List[CalendarDay]]:
        """
        Availability grid for [start_date, end_date], grid[room][day].

        Raises:
            InvalidDateRange: end before start, or a window longer than MAX_GRID_DAYS
        """
        validate_query_range(start_date, end_date)
        span = (end_date - start_date).days + 1
        if span > self.settings.max_grid_days:
            raise InvalidDateRange(
                start_date, end_date,
                f"Calendar window of {span} days exceeds the limit of {self.settings.max_grid_days}"
            )

        snapshot = self.stores.snapshot(start_date, end_date, room_ids)
        return build_grid(
            snapshot.rooms,
            start_date,
            end_date,
            snapshot.reservations,
            snapshot.overrides,
            snapshot.rules,
            weekend_days=self.settings.weekend_day_numbers,
            decimals=self.settings.currency_decimals,
        )

    def quote(self, room_id: str, check_in: date, check_out: date) -> StayQuote:
        room = self.stores.require_room(room_id)
        overrides = self.stores.overrides.list_overrides(check_in, check_out, [room_id])
        return quote_stay(
            room, check_in, check_out,
            self.stores.rules.list_rules(),
            overrides,
            weekend_days=self.settings.weekend_day_numbers,
            decimals=self.settings.currency_decimals,
        )

    # ==================
    # Manual room status
    # ==================

    def _put_status(self, room_id: str, day: date, status: OverrideStatus, note: Optional[str]) -> RoomStatusOverride:
        existing = self.stores.overrides.get_override(room_id, day)
        if existing is not None:
            override = dataclasses.replace(existing, status=status, note=note)
        else:
            override = RoomStatusOverride(room_id=room_id, date=day, status=status, note=note)
        return self.stores.overrides.put(override)

    def block_dates(self, room_id: str, start_date: date, end_date: date, note: Optional[str] = None) -> int:
        """
        Close a room for every day from start_date to end_date inclusive.
        Existing reservations are kept; the closed days win on the calendar.
        Returns count of days closed.
        """
        validate_query_range(start_date, end_date)
        self.stores.require_room(room_id)
        count = 0
        with self.stores.transaction():
            for day in date_range(start_date, end_date):
                self._put_status(room_id, day, OverrideStatus.CLOSED, note)
                count += 1

        logger.info(f"Closed {count} days for room {room_id}, note: {note}")
        return count

    def unblock_dates(self, room_id: str, start_date: date, end_date: date) -> int:
        """
        Reopen closed days. A day that also carries a special price keeps
        it as an `available` override; otherwise the override is removed.
        Returns count of days reopened.
        """
        validate_query_range(start_date, end_date)
        self.stores.require_room(room_id)
        count = 0
        with self.stores.transaction():
            for override in self.stores.overrides.list_overrides(start_date, end_date, [room_id]):
                if override.status != OverrideStatus.CLOSED:
                    continue
                if override.price is not None:
                    self.stores.overrides.put(dataclasses.replace(
                        override, status=OverrideStatus.AVAILABLE, note=None
                    ))
                else:
                    self.stores.overrides.clear(room_id, override.date)
                count += 1

        logger.info(f"Reopened {count} days for room {room_id}")
        return count

    def set_room_status(
        self,
        room_id: str,
        day: date,
        status: OverrideStatus,
        note: Optional[str] = None
    ) -> Optional[RoomStatusOverride]:
        """
        Set the housekeeping status of a room for one day.

        Marking a room `available` (cleaned) with no special price on the
        day removes the override entirely and returns None.
        """
        status = OverrideStatus(status)
        self.stores.require_room(room_id)
        with self.stores.transaction():
            existing = self.stores.overrides.get_override(room_id, day)
            if status == OverrideStatus.AVAILABLE and (existing is None or existing.price is None):
                self.stores.overrides.clear(room_id, day)
                result = None
            else:
                result = self._put_status(room_id, day, status, note)

        logger.info(f"Room {room_id} on {day} set to {status.value}")
        return result

    def set_special_price(self, room_id: str, day: date, price: Optional[Decimal]) -> Optional[RoomStatusOverride]:
        """Pin the nightly price of one day; None removes the pin."""
        self.stores.require_room(room_id)
        with self.stores.transaction():
            existing = self.stores.overrides.get_override(room_id, day)
            if price is None:
                if existing is None:
                    return None
                if existing.status == OverrideStatus.AVAILABLE:
                    self.stores.overrides.clear(room_id, day)
                    return None
                return self.stores.overrides.put(dataclasses.replace(existing, price=None))

            if existing is None:
                existing = RoomStatusOverride(room_id=room_id, date=day, status=OverrideStatus.AVAILABLE)
            return self.stores.overrides.put(dataclasses.replace(existing, price=Decimal(str(price))))

