import logging

from flask import Blueprint, jsonify, g, request, current_app

from security.rbac import require_roles
from services.blocks import create_blocked_slot, list_blocked_slots, delete_blocked_slot, block_to_dict
from services.booking import create_walk_in, list_bookings, bookings_by_email
from services.errors import AlreadyCancelled
from services.lifecycle import cancel_booking, update_booking, notification_event, snapshot
from services.pricing import (
    create_pricing_rule, list_pricing_rules, update_pricing_rule, delete_pricing_rule,
    rule_to_dict, RULE_FIELDS,
)
from services.sports import (
    list_sports, resolve_sport, create_sport, update_sport, deactivate_sport, sport_snapshot, SPORT_FIELDS,
)
from services.tx import run_with_retry
from utils.audit import log_event
from utils.notifier import notify_quietly
from utils.validation import require_fields, check_date, check_time, parse_duration, first_error

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# ---------- bookings ----------
@admin_bp.post("/bookings/walk-in")
@require_roles("ADMIN")
def walk_in():
    data = request.get_json(silent=True) or {}
    duration, duration_err = parse_duration(data.get("duration"))
    err = first_error(
        require_fields(data, "sport_id", "date", "start_time", "customer_name", "customer_phone"),
        check_date(data.get("date")),
        check_time(data.get("start_time")),
        duration_err,
    )
    if err:
        return jsonify(error=err), 400

    booking = run_with_retry(
        create_walk_in,
        data["sport_id"],
        data["date"],
        data["start_time"],
        duration,
        customer_name=data["customer_name"],
        customer_phone=data["customer_phone"],
        customer_email=data.get("customer_email"),
        payment_method=data.get("payment_method") or "cash",
        attempts=current_app.config.get("TX_RETRY_ATTEMPTS", 3),
    )

    logger.info("[ADMIN_ACTION] Walk-in booking %s by admin %s", booking.id, g.user.id)
    log_event("WALK_IN_CREATE", user_id=g.user.id, entity="booking", entity_id=booking.id,
              metadata={"after": booking.to_dict()})
    notify_quietly(booking, "confirmed")
    return jsonify(booking.to_dict()), 201


@admin_bp.get("/bookings")
@require_roles("ADMIN")
def all_bookings():
    args = request.args
    result = list_bookings(
        date=args.get("date"),
        start_date=args.get("start_date"),
        end_date=args.get("end_date"),
        status=args.get("status"),
        payment_status=args.get("payment_status"),
        source=args.get("source"),
        sport_id=args.get("sport_id", type=int),
        search=args.get("search"),
        page=args.get("page", 1, type=int),
        limit=args.get("limit", 25, type=int),
    )
    return jsonify(
        data=[b.to_dict() for b in result["bookings"]],
        pagination=result["pagination"],
        stats=result["stats"],
    ), 200


@admin_bp.get("/bookings/by-email")
@require_roles("ADMIN")
def bookings_for_email():
    email = (request.args.get("email") or "").strip()
    if not email:
        return jsonify(error="email is required"), 400
    return jsonify([b.to_dict() for b in bookings_by_email(email)]), 200


@admin_bp.patch("/bookings/<int:booking_id>")
@require_roles("ADMIN")
def patch_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    booking, before, after = update_booking(
        booking_id,
        status=data.get("status"),
        payment_status=data.get("payment_status"),
        payment_method=data.get("payment_method"),
        paid_amount=data.get("paid_amount"),
        payment_reference=data.get("payment_reference"),
        payment_verified=data.get("payment_verified"),
    )

    action = "BOOKING_STATUS_CHANGE" if "status" in before else "PAYMENT_UPDATE"
    log_event(action, user_id=g.user.id, entity="booking", entity_id=booking.id,
              metadata={"before": before, "after": after})
    event = notification_event(before, after)
    if event:
        notify_quietly(booking, event)
    return jsonify(booking.to_dict()), 200


@admin_bp.post("/bookings/<int:booking_id>/cancel")
@require_roles("ADMIN")
def admin_cancel(booking_id: int):
    try:
        booking = cancel_booking(booking_id)
    except AlreadyCancelled:
        logger.info("Admin %s repeated cancel of booking %s", g.user.id, booking_id)
        return jsonify(message="Booking is already cancelled", already_cancelled=True), 200

    log_event("ADMIN_BOOKING_CANCEL", user_id=g.user.id, entity="booking", entity_id=booking.id,
              metadata={"after": snapshot(booking)})
    notify_quietly(booking, "cancelled")
    return jsonify(booking.to_dict()), 200


# ---------- blocked slots ----------
@admin_bp.get("/blocked-slots")
@require_roles("ADMIN")
def blocked_slots():
    rows = list_blocked_slots(date=request.args.get("date"), sport_id=request.args.get("sport_id", type=int))
    return jsonify([block_to_dict(b) for b in rows]), 200


@admin_bp.post("/blocked-slots")
@require_roles("ADMIN")
def block_slot():
    data = request.get_json(silent=True) or {}
    err = first_error(
        require_fields(data, "sport_id", "date", "start_time", "end_time"),
        check_date(data.get("date")),
        check_time(data.get("start_time")),
        check_time(data.get("end_time"), "end_time"),
    )
    if err:
        return jsonify(error=err), 400

    block = create_blocked_slot(data["sport_id"], data["date"], data["start_time"], data["end_time"],
                                reason=data.get("reason"))
    log_event("SLOT_BLOCK", user_id=g.user.id, entity="blocked_slot", entity_id=block.id,
              metadata={"after": block_to_dict(block)})
    return jsonify(block_to_dict(block)), 201


@admin_bp.delete("/blocked-slots/<int:block_id>")
@require_roles("ADMIN")
def unblock_slot(block_id: int):
    delete_blocked_slot(block_id)
    log_event("SLOT_UNBLOCK", user_id=g.user.id, entity="blocked_slot", entity_id=block_id)
    return jsonify(message="Slot unblocked"), 200


# ---------- pricing rules ----------
@admin_bp.get("/pricing-rules")
@require_roles("ADMIN")
def pricing_rules():
    rows = list_pricing_rules(sport_id=request.args.get("sport_id", type=int))
    return jsonify([rule_to_dict(r) for r in rows]), 200


@admin_bp.post("/pricing-rules")
@require_roles("ADMIN")
def add_pricing_rule():
    data = request.get_json(silent=True) or {}
    err = first_error(
        require_fields(data, "sport_id", "name", "type", "start_time", "end_time"),
        check_time(data.get("start_time")),
        check_time(data.get("end_time"), "end_time"),
    )
    if err:
        return jsonify(error=err), 400

    rule = create_pricing_rule(
        data["sport_id"], data["name"], data["type"], data["start_time"], data["end_time"],
        price_multiplier=data.get("price_multiplier"),
        override_price=data.get("override_price"),
        is_active=data.get("is_active", True),
    )
    log_event("PRICING_RULE_CREATE", user_id=g.user.id, entity="pricing_rule", entity_id=rule.id,
              metadata={"after": rule_to_dict(rule)})
    return jsonify(rule_to_dict(rule)), 201


@admin_bp.put("/pricing-rules/<int:rule_id>")
@require_roles("ADMIN")
def edit_pricing_rule(rule_id: int):
    data = request.get_json(silent=True) or {}
    fields = {k: v for k, v in data.items() if k in RULE_FIELDS}
    rule = update_pricing_rule(rule_id, **fields)
    log_event("PRICING_RULE_UPDATE", user_id=g.user.id, entity="pricing_rule", entity_id=rule.id,
              metadata={"after": rule_to_dict(rule)})
    return jsonify(rule_to_dict(rule)), 200


@admin_bp.delete("/pricing-rules/<int:rule_id>")
@require_roles("ADMIN")
def remove_pricing_rule(rule_id: int):
    delete_pricing_rule(rule_id)
    log_event("PRICING_RULE_DELETE", user_id=g.user.id, entity="pricing_rule", entity_id=rule_id)
    return jsonify(message="Rule deleted"), 200


# ---------- sports ----------
@admin_bp.get("/sports")
@require_roles("ADMIN")
def all_sports():
    return jsonify(list_sports(include_inactive=True)), 200


@admin_bp.post("/sports")
@require_roles("ADMIN")
def add_sport():
    data = request.get_json(silent=True) or {}
    err = require_fields(data, "name", "base_price")
    if err:
        return jsonify(error=err), 400

    sport = create_sport(
        data["name"],
        data["base_price"],
        description=data.get("description"),
        image=data.get("image"),
        duration_options=data.get("duration_options"),
        sort_order=data.get("sort_order") or 0,
        weekend_price=data.get("weekend_price"),
    )
    log_event("SPORT_CREATE", user_id=g.user.id, entity="sport", entity_id=sport.id,
              metadata={"after": sport_snapshot(sport)})
    return jsonify(id=sport.id, name=sport.name), 201


@admin_bp.put("/sports/<int:sport_id>")
@require_roles("ADMIN")
def edit_sport(sport_id: int):
    data = request.get_json(silent=True) or {}
    fields = {k: v for k, v in data.items() if k in SPORT_FIELDS}
    before = sport_snapshot(resolve_sport(sport_id, include_inactive=True))
    sport = update_sport(sport_id, **fields)
    log_event("SPORT_UPDATE", user_id=g.user.id, entity="sport", entity_id=sport.id,
              metadata={"before": before, "after": sport_snapshot(sport)})
    return jsonify(id=sport.id, name=sport.name, is_active=sport.is_active), 200


@admin_bp.post("/sports/<int:sport_id>/deactivate")
@require_roles("ADMIN")
def retire_sport(sport_id: int):
    sport = deactivate_sport(sport_id)
    log_event("SPORT_DEACTIVATE", user_id=g.user.id, entity="sport", entity_id=sport.id)
    return jsonify(message="Sport deactivated"), 200
