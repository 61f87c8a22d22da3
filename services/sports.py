import logging

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from models import db
from models.sport import Sport
from models.pricing_rule import PricingRule
from services.errors import NotFound, InvalidRequest
from services.numbers import to_number

logger = logging.getLogger(__name__)

SPORT_FIELDS = ("name", "description", "image", "base_price", "is_active", "sort_order", "duration_options")


def _as_id(identifier):
    if isinstance(identifier, bool):
        return None
    if isinstance(identifier, int):
        return identifier
    if isinstance(identifier, str) and identifier.strip().isdigit():
        return int(identifier.strip())
    return None


def resolve_sport(identifier, include_inactive: bool = False) -> Sport:
    """
    Look a sport up by id (int or numeric string) or, failing that, by exact
    case-insensitive name. Inactive sports are NotFound unless asked for.
    """
    if identifier is None or (isinstance(identifier, str) and not identifier.strip()):
        raise NotFound("Sport not found")

    sport = None
    sport_id = _as_id(identifier)
    if sport_id is not None:
        sport = db.session.get(Sport, sport_id)
    if sport is None and isinstance(identifier, str):
        sport = Sport.query.filter(func.lower(Sport.name) == identifier.strip().lower()).first()

    if sport is None or (not sport.is_active and not include_inactive):
        raise NotFound("Sport not found")
    return sport


def weekend_rule_for(sport_id: int):
    return (
        PricingRule.query
        .filter_by(sport_id=sport_id, type="weekend", is_active=True)
        .order_by(PricingRule.id.asc())
        .first()
    )


def list_sports(include_inactive: bool = False):
    q = Sport.query
    if not include_inactive:
        q = q.filter(Sport.is_active.is_(True))
    sports = q.order_by(Sport.sort_order.asc(), Sport.id.asc()).all()

    rules = {}
    for r in PricingRule.query.filter_by(type="weekend", is_active=True).order_by(PricingRule.id.asc()).all():
        rules.setdefault(r.sport_id, r)

    out = []
    for s in sports:
        rule = rules.get(s.id)
        out.append({
            "id": s.id,
            "name": s.name,
            "description": s.description,
            "image": s.image,
            "base_price": s.base_price,
            "weekend_price": rule.override_price if rule and rule.override_price else s.base_price,
            "is_active": s.is_active,
            "sort_order": s.sort_order,
            "duration_options": s.duration_options,
        })
    return out


def create_sport(name: str, base_price, description=None, image=None,
                 duration_options=None, sort_order: int = 0, weekend_price=None) -> Sport:
    name = (name or "").strip()
    if not name:
        raise InvalidRequest("Sport name required")
    base_price = to_number(base_price, "base_price", integer=True)
    sort_order = to_number(sort_order or 0, "sort_order", integer=True)
    if weekend_price not in (None, ""):
        weekend_price = to_number(weekend_price, "weekend_price", integer=True)
    if duration_options is not None:
        duration_options = _clean_field("duration_options", duration_options)

    sport = Sport(
        name=name,
        description=description,
        image=image,
        base_price=base_price,
        duration_options=duration_options or list(current_app.config.get("DEFAULT_DURATION_OPTIONS", [1, 1.5, 2, 3])),
        sort_order=sort_order,
        is_active=True,
    )
    db.session.add(sport)
    try:
        db.session.flush()
        if weekend_price:
            db.session.add(PricingRule(
                sport_id=sport.id,
                name="Weekend Peak",
                type="weekend",
                start_time="00:00",
                end_time="24:00",
                price_multiplier=1,
                override_price=weekend_price,
                is_active=True,
            ))
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise InvalidRequest("Sport name already exists")

    logger.info("Sport created: %s (id=%s)", sport.name, sport.id)
    return sport


def _clean_field(key, value):
    if key == "name":
        value = (value or "").strip() if isinstance(value, str) else ""
        if not value:
            raise InvalidRequest("Sport name required")
    elif key in ("base_price", "sort_order"):
        value = to_number(value, key, integer=True)
    elif key == "is_active":
        if not isinstance(value, bool):
            raise InvalidRequest("is_active must be true or false")
    elif key == "duration_options":
        if not isinstance(value, list) or not value:
            raise InvalidRequest("duration_options must be a non-empty list of hours")
        value = [to_number(v, "duration_options", positive=True) for v in value]
    return value


def update_sport(sport_id, **fields) -> Sport:
    sport = resolve_sport(sport_id, include_inactive=True)
    for key in fields:
        if key not in SPORT_FIELDS:
            raise InvalidRequest(f"Unknown sport field: {key}")
    # all fields are checked before any is applied
    cleaned = {key: _clean_field(key, value) for key, value in fields.items()}
    for key, value in cleaned.items():
        setattr(sport, key, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise InvalidRequest("Sport name already exists")
    return sport


def deactivate_sport(sport_id) -> Sport:
    # Bookings reference sports, so they are never deleted.
    return update_sport(sport_id, is_active=False)


def sport_snapshot(sport: Sport):
    return {k: getattr(sport, k) for k in SPORT_FIELDS}
