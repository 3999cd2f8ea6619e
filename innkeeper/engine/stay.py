"""
Stay Quote

Prices a multi-night stay night by night and checks it against the
min/max stay constraints of the arrival night.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import FrozenSet, Iterable, List, Optional, Tuple

from .dates import nights, validate_stay
from .overrides import index_overrides
from .pricing import (
    DEFAULT_DECIMALS,
    DEFAULT_WEEKEND_DAYS,
    day_price,
    quantize_price,
    resolve_price_detail,
)
from .types import PriceRule, Room, RoomStatusOverride


@dataclass(frozen=True)
class NightPrice:
    date: date
    price: Decimal
    applied_rule_ids: Tuple[int, ...] = field(default_factory=tuple)
    special_price: bool = False


@dataclass(frozen=True)
class StayQuote:
    room_id: str
    check_in: date
    check_out: date
    nights: List[NightPrice]
    total: Decimal
    min_stay: Optional[int] = None
    max_stay: Optional[int] = None
    violations: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def num_nights(self) -> int:
        return len(self.nights)

    @property
    def average_rate(self) -> Decimal:
        if not self.nights:
            return Decimal("0")
        return quantize_price(self.total / len(self.nights))


def stay_violations(num_nights: int, min_stay: Optional[int], max_stay: Optional[int]) -> Tuple[str, ...]:
    violations = []
    if min_stay is not None and num_nights < min_stay:
        violations.append(f"Minimum stay is {min_stay} nights, requested {num_nights}")
    if max_stay is not None and num_nights > max_stay:
        violations.append(f"Maximum stay is {max_stay} nights, requested {num_nights}")
    return tuple(violations)


def quote_stay(
    room: Room,
    check_in: date,
    check_out: date,
    rules: Iterable[PriceRule],
    overrides: Iterable[RoomStatusOverride] = (),
    weekend_days: FrozenSet[int] = DEFAULT_WEEKEND_DAYS,
    decimals: int = DEFAULT_DECIMALS
) -> StayQuote:
    """
    Price a stay in one room.

    Each occupied night is priced on its own; the check-out day is not
    charged. Stay constraints come from the arrival night.
    """
    validate_stay(check_in, check_out)
    rules = list(rules)
    override_index = index_overrides(o for o in overrides if o.room_id == room.id)

    priced: List[NightPrice] = []
    total = Decimal("0")
    min_stay = max_stay = None

    for night in nights(check_in, check_out):
        resolution = resolve_price_detail(room, night, rules, weekend_days, decimals)
        override = override_index.get((room.id, night))
        price = day_price(resolution, override, decimals)
        if night == check_in:
            min_stay, max_stay = resolution.min_stay, resolution.max_stay
        priced.append(NightPrice(
            date=night,
            price=price,
            applied_rule_ids=resolution.applied_rule_ids + (
                (resolution.fixed_rule_id,) if resolution.fixed_rule_id is not None else ()
            ),
            special_price=override is not None and override.price is not None,
        ))
        total += price

    return StayQuote(
        room_id=room.id,
        check_in=check_in,
        check_out=check_out,
        nights=priced,
        total=quantize_price(total, decimals),
        min_stay=min_stay,
        max_stay=max_stay,
        violations=stay_violations(len(priced), min_stay, max_stay),
    )
