"""
Tests for the Price Rule Resolver

These tests verify the core pricing logic including:
- Fixed rule override law
- Cumulative percentage / amount composition in priority order
- Equal-priority tie-breaking
- Rule applicability (date window, weekdays, scope, active flag)
- Clamping and half-up rounding
- Stay constraints from the winning rules
"""

import logging
import pytest
from datetime import date
from decimal import Decimal

from innkeeper.engine.pricing import (
    applicable_rules,
    day_number,
    day_price,
    resolve_price,
    resolve_price_detail,
)
from innkeeper.engine.types import (
    AdjustmentKind,
    OverrideStatus,
    PriceRule,
    Room,
    RoomStatusOverride,
    RuleType,
)
from innkeeper.exceptions import InvalidDateRange

WEDNESDAY = date(2024, 1, 10)
FRIDAY = date(2024, 1, 12)
SATURDAY = date(2024, 1, 13)
SUNDAY = date(2024, 1, 14)
MONDAY = date(2024, 1, 15)


def rule(rule_id, priority, adjustment, value, rule_type=RuleType.SEASONAL, **kwargs):
    return PriceRule(
        id=rule_id,
        priority=priority,
        rule_type=rule_type,
        adjustment=adjustment,
        value=Decimal(str(value)),
        **kwargs
    )


class TestBasePrice:
    """No applicable rule leaves the base price unchanged"""

    def test_no_rules(self, room):
        assert resolve_price(room, WEDNESDAY, []) == Decimal("100.00")

    def test_resolution_is_deterministic(self, room):
        rules = [
            rule(1, 3, AdjustmentKind.PERCENTAGE, 10),
            rule(2, 1, AdjustmentKind.AMOUNT, -5),
        ]
        first = resolve_price_detail(room, WEDNESDAY, rules)
        for _ in range(10):
            assert resolve_price_detail(room, WEDNESDAY, rules) == first


class TestFixedRules:
    """A fixed rule replaces the base price and cuts everything ranked after it"""

    def test_fixed_beats_lower_percentage(self, room):
        """Fixed priority 10 and percentage priority 5: the fixed value, unmodified"""
        rules = [
            rule(1, 10, AdjustmentKind.FIXED, 80),
            rule(2, 5, AdjustmentKind.PERCENTAGE, 50),
        ]
        detail = resolve_price_detail(room, WEDNESDAY, rules)
        assert detail.price == Decimal("80.00")
        assert detail.fixed_rule_id == 1
        assert detail.applied_rule_ids == ()

    def test_percentage_ranked_above_fixed_still_applies(self, room):
        rules = [
            rule(1, 5, AdjustmentKind.FIXED, 200),
            rule(2, 10, AdjustmentKind.PERCENTAGE, 10),
        ]
        assert resolve_price(room, WEDNESDAY, rules) == Decimal("220.00")

    def test_equal_priority_percentage_created_first_applies(self, room):
        """Same priority, percentage created before the fixed rule: 200 x 1.10"""
        rules = [
            rule(1, 10, AdjustmentKind.PERCENTAGE, 10),
            rule(2, 10, AdjustmentKind.FIXED, 200),
        ]
        detail = resolve_price_detail(room, WEDNESDAY, rules)
        assert detail.price == Decimal("220.00")
        assert detail.fixed_rule_id == 2
        assert detail.applied_rule_ids == (1,)

    def test_equal_priority_percentage_created_after_is_cut(self, room):
        """Same priority, percentage created after the fixed rule: ignored"""
        rules = [
            rule(1, 10, AdjustmentKind.FIXED, 200),
            rule(2, 10, AdjustmentKind.PERCENTAGE, 10),
        ]
        detail = resolve_price_detail(room, WEDNESDAY, rules)
        assert detail.price == Decimal("200.00")
        assert detail.applied_rule_ids == ()

    def test_higher_priority_fixed_wins(self, room):
        rules = [
            rule(1, 5, AdjustmentKind.FIXED, 150),
            rule(2, 9, AdjustmentKind.FIXED, 90),
        ]
        assert resolve_price(room, WEDNESDAY, rules) == Decimal("90.00")

    def test_equal_priority_fixed_rules_lower_id_wins(self, room, caplog):
        """Ambiguous tie is resolved, reported and logged, never raised"""
        rules = [
            rule(3, 5, AdjustmentKind.FIXED, 150),
            rule(2, 5, AdjustmentKind.FIXED, 120),
        ]
        with caplog.at_level(logging.WARNING, logger="innkeeper.engine.pricing"):
            detail = resolve_price_detail(room, WEDNESDAY, rules)

        assert detail.price == Decimal("120.00")
        assert detail.fixed_rule_id == 2
        assert len(detail.conflicts) == 1
        assert detail.conflicts[0].rule_ids == (2, 3)
        assert detail.conflicts[0].chosen_rule_id == 2
        assert "tie" in caplog.text


class TestCumulativeAdjustments:
    """Percentage multiplies, amount adds, highest priority first"""

    def test_ten_then_twenty_percent(self, room):
        """100 x 1.10 x 1.20 = 132.00"""
        rules = [
            rule(1, 2, AdjustmentKind.PERCENTAGE, 10),
            rule(2, 1, AdjustmentKind.PERCENTAGE, 20),
        ]
        detail = resolve_price_detail(room, WEDNESDAY, rules)
        assert detail.price == Decimal("132.00")
        assert detail.applied_rule_ids == (1, 2)

    def test_amount_before_percentage(self, room):
        """(100 + 10) x 1.10 = 121.00"""
        rules = [
            rule(1, 2, AdjustmentKind.AMOUNT, 10),
            rule(2, 1, AdjustmentKind.PERCENTAGE, 10),
        ]
        assert resolve_price(room, WEDNESDAY, rules) == Decimal("121.00")

    def test_percentage_before_amount(self, room):
        """100 x 1.10 + 10 = 120.00"""
        rules = [
            rule(1, 1, AdjustmentKind.AMOUNT, 10),
            rule(2, 2, AdjustmentKind.PERCENTAGE, 10),
        ]
        assert resolve_price(room, WEDNESDAY, rules) == Decimal("120.00")

    def test_equal_priority_keeps_given_order(self, room):
        """Stable sort: the earlier rule in the list is applied first"""
        amount = rule(1, 1, AdjustmentKind.AMOUNT, 10)
        percent = rule(2, 1, AdjustmentKind.PERCENTAGE, 10)
        assert resolve_price(room, WEDNESDAY, [amount, percent]) == Decimal("121.00")
        assert resolve_price(room, WEDNESDAY, [percent, amount]) == Decimal("120.00")

    def test_discount_clamped_at_zero(self, room):
        rules = [rule(1, 1, AdjustmentKind.AMOUNT, -150)]
        assert resolve_price(room, WEDNESDAY, rules) == Decimal("0.00")

    def test_round_half_up(self, room):
        """100 x 1.00125 = 100.125 rounds up to 100.13"""
        rules = [rule(1, 1, AdjustmentKind.PERCENTAGE, "0.125")]
        assert resolve_price(room, WEDNESDAY, rules) == Decimal("100.13")

    def test_zero_decimal_currency(self, room):
        rules = [rule(1, 1, AdjustmentKind.AMOUNT, "0.5")]
        assert resolve_price(room, WEDNESDAY, rules, decimals=0) == Decimal("101")


class TestApplicability:
    """Which rules apply to a (room, date)"""

    def test_weekend_rule_uses_default_weekend(self, room):
        rules = [rule(1, 1, AdjustmentKind.PERCENTAGE, 50, rule_type=RuleType.WEEKEND)]
        assert resolve_price(room, SATURDAY, rules) == Decimal("150.00")
        assert resolve_price(room, WEDNESDAY, rules) == Decimal("100.00")

    def test_weekend_rule_uses_configured_weekend(self, room):
        rules = [rule(1, 1, AdjustmentKind.PERCENTAGE, 50, rule_type=RuleType.WEEKEND)]
        friday_saturday = frozenset({5, 6})
        assert resolve_price(room, FRIDAY, rules, weekend_days=friday_saturday) == Decimal("150.00")

    def test_weekday_rule_skips_weekend(self, room):
        rules = [rule(1, 1, AdjustmentKind.AMOUNT, -20, rule_type=RuleType.WEEKDAY)]
        assert resolve_price(room, WEDNESDAY, rules) == Decimal("80.00")
        assert resolve_price(room, SATURDAY, rules) == Decimal("100.00")

    def test_explicit_weekday_set(self, room):
        """Wednesday only (weekday 3, Sunday=0)"""
        rules = [rule(1, 1, AdjustmentKind.AMOUNT, 5, weekdays=[3])]
        assert resolve_price(room, WEDNESDAY, rules) == Decimal("105.00")
        assert resolve_price(room, FRIDAY, rules) == Decimal("100.00")

    def test_sunday_zero_weekend_set(self, room):
        """weekdays {0, 6} are Sunday and Saturday, never Monday"""
        rules = [rule(1, 1, AdjustmentKind.PERCENTAGE, 20, rule_type=RuleType.WEEKEND, weekdays=[0, 6])]
        assert resolve_price(room, SATURDAY, rules) == Decimal("120.00")
        assert resolve_price(room, SUNDAY, rules) == Decimal("120.00")
        assert resolve_price(room, MONDAY, rules) == Decimal("100.00")

    def test_weekday_default_is_monday_to_friday(self, room):
        rules = [rule(1, 1, AdjustmentKind.AMOUNT, -20, rule_type=RuleType.WEEKDAY)]
        assert resolve_price(room, MONDAY, rules) == Decimal("80.00")
        assert resolve_price(room, FRIDAY, rules) == Decimal("80.00")
        assert resolve_price(room, SUNDAY, rules) == Decimal("100.00")

    def test_day_number(self):
        assert day_number(SUNDAY) == 0
        assert day_number(MONDAY) == 1
        assert day_number(SATURDAY) == 6

    def test_date_window_is_inclusive(self, room):
        rules = [rule(1, 1, AdjustmentKind.FIXED, 60, start_date=date(2024, 1, 11), end_date=FRIDAY)]
        assert resolve_price(room, WEDNESDAY, rules) == Decimal("100.00")
        assert resolve_price(room, date(2024, 1, 11), rules) == Decimal("60.00")
        assert resolve_price(room, FRIDAY, rules) == Decimal("60.00")
        assert resolve_price(room, SATURDAY, rules) == Decimal("100.00")

    def test_open_ended_window(self, room):
        rules = [rule(1, 1, AdjustmentKind.FIXED, 60, start_date=date(2024, 1, 11))]
        assert resolve_price(room, date(2030, 1, 1), rules) == Decimal("60.00")

    def test_room_type_scope(self, room):
        suite_only = rule(1, 1, AdjustmentKind.FIXED, 500, room_type="suite")
        assert resolve_price(room, WEDNESDAY, [suite_only]) == Decimal("100.00")
        suite = Room(id="r201", name="201", room_type="suite", base_price=Decimal("300"))
        assert resolve_price(suite, WEDNESDAY, [suite_only]) == Decimal("500.00")

    def test_room_id_scope(self, room):
        other_room = rule(1, 1, AdjustmentKind.FIXED, 50, room_id="r102")
        assert applicable_rules(room, WEDNESDAY, [other_room]) == []

    def test_inactive_rule_ignored(self, room):
        rules = [rule(1, 1, AdjustmentKind.FIXED, 50, is_active=False)]
        assert resolve_price(room, WEDNESDAY, rules) == Decimal("100.00")

    def test_rule_window_must_be_ordered(self):
        with pytest.raises(InvalidDateRange):
            rule(1, 1, AdjustmentKind.FIXED, 50, start_date=FRIDAY, end_date=WEDNESDAY)


class TestStayConstraints:
    """min/max stay come from the highest-ranked effective rule defining each"""

    def test_each_constraint_from_highest_rule(self, room):
        rules = [
            rule(1, 10, AdjustmentKind.PERCENTAGE, 0, min_stay=2),
            rule(2, 5, AdjustmentKind.AMOUNT, 0, min_stay=3, max_stay=7),
        ]
        detail = resolve_price_detail(room, WEDNESDAY, rules)
        assert detail.min_stay == 2
        assert detail.max_stay == 7

    def test_rules_cut_by_fixed_do_not_constrain(self, room):
        rules = [
            rule(1, 5, AdjustmentKind.FIXED, 90),
            rule(2, 1, AdjustmentKind.PERCENTAGE, 10, min_stay=4),
        ]
        detail = resolve_price_detail(room, WEDNESDAY, rules)
        assert detail.min_stay is None

    def test_unconstrained_without_rules(self, room):
        detail = resolve_price_detail(room, WEDNESDAY, [])
        assert detail.min_stay is None
        assert detail.max_stay is None


class TestSpecialPrice:
    """A special price on an override replaces the rule price for that day"""

    def test_override_price_replaces_rule_price(self, room):
        detail = resolve_price_detail(room, WEDNESDAY, [rule(1, 1, AdjustmentKind.PERCENTAGE, 10)])
        override = RoomStatusOverride(room.id, WEDNESDAY, OverrideStatus.AVAILABLE, price=Decimal("88.5"))
        assert day_price(detail, override) == Decimal("88.50")

    def test_override_without_price_keeps_rule_price(self, room):
        detail = resolve_price_detail(room, WEDNESDAY, [rule(1, 1, AdjustmentKind.PERCENTAGE, 10)])
        override = RoomStatusOverride(room.id, WEDNESDAY, OverrideStatus.DIRTY)
        assert day_price(detail, override) == Decimal("110.00")
