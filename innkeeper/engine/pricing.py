"""
Price Rule Resolver

Computes the effective nightly price of a room on a date from a
prioritized rule set.

Resolution:
1. Keep rules that apply to the (room, date): active, in scope, inside
   the date window, and matching the weekday set.
2. Order by priority descending. Python's sort is stable, so equal
   priorities keep the order the rules were given in (creation order).
3. The highest-priority FIXED rule, if any, replaces the base price.
   Rules ranked after it are ignored; adjustments ranked before it,
   including equal-priority ones created earlier, still apply on top of
   the fixed price. Two FIXED rules tied at the top priority are
   ambiguous: the lower rule id wins and a RuleConflict is recorded.
4. PERCENTAGE and AMOUNT rules that survive step 3 are applied in rank
   order: percentage multiplies (price *= 1 + value/100), amount adds.
5. Clamp at zero, round half-up to the currency minor unit.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import FrozenSet, Iterable, List, Optional, Tuple

from .types import AdjustmentKind, PriceRule, Room, RoomStatusOverride, RuleType

logger = logging.getLogger(__name__)

# Weekday numbers run Sunday=0 .. Saturday=6
DEFAULT_WEEKEND_DAYS: FrozenSet[int] = frozenset({0, 6})  # Sunday, Saturday
DEFAULT_DECIMALS = 2  # CNY minor unit


@dataclass(frozen=True)
class RuleConflict:
    """Two FIXED rules of equal priority applied to the same day."""
    date: date
    room_id: str
    rule_ids: Tuple[int, ...]
    chosen_rule_id: int

    def describe(self) -> str:
        ids = ", ".join(str(r) for r in self.rule_ids)
        return f"fixed rules {ids} tie on {self.date}; rule {self.chosen_rule_id} used"


@dataclass(frozen=True)
class PriceResolution:
    price: Decimal
    base_price: Decimal
    fixed_rule_id: Optional[int] = None
    applied_rule_ids: Tuple[int, ...] = field(default_factory=tuple)
    min_stay: Optional[int] = None
    max_stay: Optional[int] = None
    conflicts: Tuple[RuleConflict, ...] = field(default_factory=tuple)


def quantize_price(amount: Decimal, decimals: int = DEFAULT_DECIMALS) -> Decimal:
    return amount.quantize(Decimal(10) ** -decimals, rounding=ROUND_HALF_UP)


def _rule_id_key(rule: PriceRule):
    # Numeric ids compare as numbers, anything else as text after them
    rule_id = rule.id
    if isinstance(rule_id, int):
        return (0, rule_id, "")
    text = str(rule_id)
    if text.isdigit():
        return (0, int(text), "")
    return (1, 0, text)


def day_number(day: date) -> int:
    """Weekday number of a date, Sunday=0 .. Saturday=6"""
    return (day.weekday() + 1) % 7


def rule_in_scope(rule: PriceRule, room: Room) -> bool:
    if rule.room_id is not None and rule.room_id != room.id:
        return False
    if rule.room_type is not None and rule.room_type != room.room_type:
        return False
    return True


def rule_weekdays(rule: PriceRule, weekend_days: FrozenSet[int]) -> Optional[FrozenSet[int]]:
    """Weekday set a rule is restricted to, or None for every day."""
    if rule.weekdays:
        return rule.weekdays
    if rule.rule_type == RuleType.WEEKEND:
        return weekend_days
    if rule.rule_type == RuleType.WEEKDAY:
        return frozenset(range(7)) - weekend_days
    return None


def rule_applies(
    rule: PriceRule,
    room: Room,
    day: date,
    weekend_days: FrozenSet[int] = DEFAULT_WEEKEND_DAYS
) -> bool:
    if not rule.is_active:
        return False
    if not rule_in_scope(rule, room):
        return False
    if rule.start_date is not None and day < rule.start_date:
        return False
    if rule.end_date is not None and day > rule.end_date:
        return False
    days = rule_weekdays(rule, weekend_days)
    if days is not None and day_number(day) not in days:
        return False
    return True


def applicable_rules(
    room: Room,
    day: date,
    rules: Iterable[PriceRule],
    weekend_days: FrozenSet[int] = DEFAULT_WEEKEND_DAYS
) -> List[PriceRule]:
    """Rules that apply to (room, day), highest priority first."""
    matched = [r for r in rules if rule_applies(r, room, day, weekend_days)]
    return sorted(matched, key=lambda r: -r.priority)


def resolve_price_detail(
    room: Room,
    day: date,
    rules: Iterable[PriceRule],
    weekend_days: FrozenSet[int] = DEFAULT_WEEKEND_DAYS,
    decimals: int = DEFAULT_DECIMALS
) -> PriceResolution:
    """
    Resolve the nightly price of a room on a date, with the trail of
    rules that produced it.

    Returns:
        PriceResolution with the rounded price, the fixed rule used (if
        any), the adjustments applied in order, the stay constraints and
        any equal-priority fixed-rule conflicts.
    """
    base_price = Decimal(str(room.base_price))
    ordered = applicable_rules(room, day, rules, weekend_days)

    conflicts: Tuple[RuleConflict, ...] = ()
    fixed_rule = None
    fixed_rules = [r for r in ordered if r.adjustment == AdjustmentKind.FIXED]
    if fixed_rules:
        top = fixed_rules[0].priority
        tied = [r for r in fixed_rules if r.priority == top]
        fixed_rule = min(tied, key=_rule_id_key)
        if len(tied) > 1:
            conflict = RuleConflict(
                date=day,
                room_id=room.id,
                rule_ids=tuple(sorted((r.id for r in tied), key=str)),
                chosen_rule_id=fixed_rule.id,
            )
            logger.warning(f"Price rule conflict for room {room.id}: {conflict.describe()}")
            conflicts = (conflict,)

    # Rules still in play, rank order
    if fixed_rule is not None:
        cut = ordered.index(fixed_rule)
        effective = [r for r in ordered[:cut] if r.adjustment != AdjustmentKind.FIXED]
        effective.append(fixed_rule)
        price = fixed_rule.value
    else:
        effective = ordered
        price = base_price

    applied = []
    for rule in effective:
        if rule.adjustment == AdjustmentKind.PERCENTAGE:
            price = price * (1 + rule.value / 100)
            applied.append(rule.id)
        elif rule.adjustment == AdjustmentKind.AMOUNT:
            price = price + rule.value
            applied.append(rule.id)

    if price < 0:
        price = Decimal("0")

    min_stay = next((r.min_stay for r in effective if r.min_stay is not None), None)
    max_stay = next((r.max_stay for r in effective if r.max_stay is not None), None)

    return PriceResolution(
        price=quantize_price(price, decimals),
        base_price=base_price,
        fixed_rule_id=fixed_rule.id if fixed_rule is not None else None,
        applied_rule_ids=tuple(applied),
        min_stay=min_stay,
        max_stay=max_stay,
        conflicts=conflicts,
    )


def resolve_price(
    room: Room,
    day: date,
    rules: Iterable[PriceRule],
    weekend_days: FrozenSet[int] = DEFAULT_WEEKEND_DAYS,
    decimals: int = DEFAULT_DECIMALS
) -> Decimal:
    """Effective nightly price of a room on a date."""
    return resolve_price_detail(room, day, rules, weekend_days, decimals).price


def day_price(
    resolution: PriceResolution,
    override: Optional[RoomStatusOverride],
    decimals: int = DEFAULT_DECIMALS
) -> Decimal:
    """Rule price, unless staff set a special price for that day."""
    if override is not None and override.price is not None:
        return quantize_price(Decimal(str(override.price)), decimals)
    return resolution.price
