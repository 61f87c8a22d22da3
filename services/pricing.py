"""Hourly price resolution and pricing-rule administration."""
from models import db
from models.pricing_rule import PricingRule, RULE_TYPES
from services.errors import NotFound, InvalidRequest
from services.numbers import to_number
from services.sports import resolve_sport, weekend_rule_for
from services.timeutils import is_weekend, time_to_minutes


def price_for_sport(sport, date: str):
    """
    Hourly price of an already-resolved sport on ``date``.

    Weekends use the first active weekend rule: its override price if set,
    else base price times multiplier. Everything else pays the base price.
    """
    price = sport.base_price
    if is_weekend(date):
        rule = weekend_rule_for(sport.id)
        if rule is not None:
            if rule.override_price:
                price = rule.override_price
            else:
                price = price * rule.price_multiplier
    if isinstance(price, float) and price.is_integer():
        price = int(price)
    return price


def resolve_price(sport_identifier, date: str):
    return price_for_sport(resolve_sport(sport_identifier), date)


# ---------- pricing rules (admin) ----------

RULE_FIELDS = ("name", "type", "start_time", "end_time", "price_multiplier", "override_price", "is_active")


def _validate_rule(rule: PricingRule):
    """Check a rule in place, coercing its numeric fields."""
    if not isinstance(rule.name, str) or not rule.name.strip():
        raise InvalidRequest("Rule name required")
    if rule.type not in RULE_TYPES:
        raise InvalidRequest(f"type must be one of {', '.join(RULE_TYPES)}")
    if time_to_minutes(rule.end_time) <= time_to_minutes(rule.start_time):
        raise InvalidRequest("end_time must be after start_time")
    rule.price_multiplier = to_number(rule.price_multiplier, "price_multiplier", positive=True)
    if rule.override_price is not None:
        rule.override_price = to_number(rule.override_price, "override_price", integer=True)
    if not isinstance(rule.is_active, bool):
        raise InvalidRequest("is_active must be true or false")


def create_pricing_rule(sport_id, name, type, start_time, end_time,
                        price_multiplier=None, override_price=None, is_active=True) -> PricingRule:
    sport = resolve_sport(sport_id, include_inactive=True)
    rule = PricingRule(
        sport_id=sport.id,
        name=name.strip() if isinstance(name, str) else name,
        type=type,
        start_time=start_time,
        end_time=end_time,
        price_multiplier=price_multiplier or 1,
        override_price=override_price,
        is_active=True if is_active is None else bool(is_active),
    )
    _validate_rule(rule)
    db.session.add(rule)
    db.session.commit()
    return rule


def list_pricing_rules(sport_id=None):
    q = PricingRule.query
    if sport_id is not None:
        q = q.filter_by(sport_id=sport_id)
    return q.order_by(PricingRule.type.asc(), PricingRule.id.asc()).all()


def update_pricing_rule(rule_id: int, **fields) -> PricingRule:
    rule = db.session.get(PricingRule, rule_id)
    if rule is None:
        raise NotFound("Rule not found")
    for key, value in fields.items():
        if key not in RULE_FIELDS:
            raise InvalidRequest(f"Unknown rule field: {key}")
        setattr(rule, key, value)
    try:
        _validate_rule(rule)
    except InvalidRequest:
        db.session.rollback()
        raise
    db.session.commit()
    return rule


def delete_pricing_rule(rule_id: int):
    rule = db.session.get(PricingRule, rule_id)
    if rule is None:
        raise NotFound("Rule not found")
    db.session.delete(rule)
    db.session.commit()


def rule_to_dict(rule: PricingRule):
    return {
        "id": rule.id,
        "sport_id": rule.sport_id,
        "name": rule.name,
        "type": rule.type,
        "start_time": rule.start_time,
        "end_time": rule.end_time,
        "price_multiplier": rule.price_multiplier,
        "override_price": rule.override_price,
        "is_active": rule.is_active,
    }
