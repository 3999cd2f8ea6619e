"""
Pricing API Router

Endpoints for price rules and stay quotes.
"""

import dataclasses
import logging
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, status

from ..config import Settings, get_settings
from ..engine.types import PriceRule
from ..exceptions import NotFound
from ..schemas.pricing import (
    NightPriceResponse,
    PriceRuleCreate,
    PriceRuleResponse,
    PriceRuleUpdate,
    QuoteResponse,
)
from ..services.calendar_service import CalendarService
from ..services.sql_stores import SqlStores
from ..utils.dependencies import get_calendar_service, get_stores

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pricing", tags=["Pricing"])

# Fields a PUT may clear by sending null
NULLABLE_RULE_FIELDS = {
    "start_date", "end_date", "weekdays", "min_stay", "max_stay", "room_id", "room_type",
}


def _require_rule(stores: SqlStores, rule_id: int) -> PriceRule:
    rule = stores.rules.get_rule(rule_id)
    if rule is None:
        raise NotFound("PriceRule", rule_id)
    return rule


def _to_response(rule: PriceRule) -> PriceRuleResponse:
    return PriceRuleResponse.model_validate(rule)


# ================================
# PRICE RULES
# ================================

@router.get("/rules", response_model=List[PriceRuleResponse])
async def list_rules(stores: SqlStores = Depends(get_stores)):
    """All price rules in creation order"""
    return [_to_response(rule) for rule in stores.rules.list_rules()]


@router.get("/rules/{rule_id}", response_model=PriceRuleResponse)
async def get_rule(rule_id: int, stores: SqlStores = Depends(get_stores)):
    return _to_response(_require_rule(stores, rule_id))


@router.post("/rules", response_model=PriceRuleResponse, status_code=status.HTTP_201_CREATED)
async def create_rule(rule_data: PriceRuleCreate, stores: SqlStores = Depends(get_stores)):
    """
    Create a price rule.

    - fixed: replaces the room's base price
    - percentage: price *= 1 + value/100
    - amount: price += value
    Higher priority wins; among equal priorities the older rule wins.
    """
    if rule_data.room_id:
        stores.require_room(rule_data.room_id)

    rule = PriceRule(id=0, **rule_data.model_dump())
    with stores.transaction():
        saved = stores.rules.add_rule(rule)

    logger.info(
        f"Price rule {saved.id} created: {saved.rule_type.value}/{saved.adjustment.value} "
        f"{saved.value} priority={saved.priority}"
    )
    return _to_response(saved)


@router.put("/rules/{rule_id}", response_model=PriceRuleResponse)
async def update_rule(
    rule_id: int,
    rule_data: PriceRuleUpdate,
    stores: SqlStores = Depends(get_stores)
):
    current = _require_rule(stores, rule_id)
    changes = {
        k: v for k, v in rule_data.model_dump(exclude_unset=True).items()
        if v is not None or k in NULLABLE_RULE_FIELDS
    }
    if changes.get("room_id"):
        stores.require_room(changes["room_id"])

    # Construction re-validates the date window
    updated = dataclasses.replace(current, **changes)
    with stores.transaction():
        saved = stores.rules.save_rule(updated)

    logger.info(f"Price rule {rule_id} updated: {sorted(changes)}")
    return _to_response(saved)


@router.delete("/rules/{rule_id}")
async def delete_rule(rule_id: int, stores: SqlStores = Depends(get_stores)):
    _require_rule(stores, rule_id)
    with stores.transaction():
        stores.rules.delete_rule(rule_id)

    logger.info(f"Price rule {rule_id} deleted")
    return {"message": "Price rule deleted", "id": rule_id}


# ================================
# QUOTES
# ================================

@router.get("/quote", response_model=QuoteResponse)
async def quote_stay(
    room_id: str,
    check_in_date: date,
    check_out_date: date,
    service: CalendarService = Depends(get_calendar_service),
    settings: Settings = Depends(get_settings)
):
    """Nightly breakdown and total for a stay; the check-out day is not charged"""
    quote = service.quote(room_id, check_in_date, check_out_date)
    return QuoteResponse(
        room_id=quote.room_id,
        check_in_date=quote.check_in,
        check_out_date=quote.check_out,
        nights=quote.num_nights,
        total_amount=quote.total,
        average_rate=quote.average_rate,
        currency=settings.currency,
        min_stay=quote.min_stay,
        max_stay=quote.max_stay,
        violations=list(quote.violations),
        breakdown=[NightPriceResponse.model_validate(n) for n in quote.nights],
    )
