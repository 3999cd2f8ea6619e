# Models package
from .room import Room
from .reservation import Reservation
from .price_rule import PriceRule
from .room_status_override import RoomStatusOverride

__all__ = ["Room", "Reservation", "PriceRule", "RoomStatusOverride"]
