import logging

from flask import Blueprint, request, jsonify, current_app, g

from services.booking import create_booking, bookings_for_user, bookings_for_guest, get_booking, link_guest_bookings
from services.errors import AlreadyCancelled
from services.lifecycle import cancel_booking, reschedule_booking
from services.tx import run_with_retry
from utils.auth_context import login_required, identity_required, current_user_id, current_guest_id
from utils.notifier import notify_quietly
from utils.validation import require_fields, check_date, check_time, parse_duration, first_error

logger = logging.getLogger(__name__)

booking_bp = Blueprint("booking", __name__)


def _retries():
    return current_app.config.get("TX_RETRY_ATTEMPTS", 3)


# ---------- CUSTOMERS / GUESTS: book a slot (DOUBLE-BOOKING SAFE) ----------
@booking_bp.post("/bookings")
def create():
    data = request.get_json(silent=True) or {}
    sport = data.get("sport_id") or data.get("sport")
    duration, duration_err = parse_duration(data.get("duration"))
    err = first_error(
        None if sport else "sport_id is required",
        require_fields(data, "date", "start_time", "customer_name", "customer_email", "customer_phone"),
        check_date(data.get("date")),
        check_time(data.get("start_time")),
        duration_err,
    )
    if err:
        return jsonify(error=err), 400

    booking = run_with_retry(
        create_booking,
        sport,
        data["date"],
        data["start_time"],
        duration,
        customer_name=data["customer_name"],
        customer_email=data["customer_email"],
        customer_phone=data["customer_phone"],
        user_id=current_user_id(),
        guest_id=(data.get("guest_id") or current_guest_id()),
        payment_method=data.get("payment_method"),
        payment_reference=data.get("payment_reference"),
        attempts=_retries(),
    )

    notify_quietly(booking, "created")
    return jsonify(booking.to_dict()), 201


# ---------- CUSTOMERS / GUESTS: my bookings ----------
@booking_bp.get("/bookings/me")
@identity_required
def my_bookings():
    status = request.args.get("status")
    if g.user is not None:
        rows = bookings_for_user(g.user.id)
    else:
        rows = bookings_for_guest(current_guest_id())
    if status:
        rows = [b for b in rows if b.status == status]
    return jsonify([b.to_dict() for b in rows]), 200


@booking_bp.post("/bookings/link")
@login_required
def link_guest():
    linked = link_guest_bookings(g.user.email, g.user.id)
    return jsonify(linked=linked), 200


# ---------- CUSTOMERS: cancel ----------
@booking_bp.post("/bookings/<int:booking_id>/cancel")
@login_required
def cancel(booking_id: int):
    try:
        booking = run_with_retry(cancel_booking, booking_id, user_id=g.user.id, attempts=_retries())
    except AlreadyCancelled:
        logger.info("Repeat cancel of booking %s by user %s", booking_id, g.user.id)
        payload = get_booking(booking_id).to_dict()
        payload["already_cancelled"] = True
        return jsonify(payload), 200

    notify_quietly(booking, "cancelled")
    return jsonify(booking.to_dict()), 200


# ---------- CUSTOMERS: reschedule ----------
@booking_bp.post("/bookings/<int:booking_id>/reschedule")
@login_required
def reschedule(booking_id: int):
    data = request.get_json(silent=True) or {}
    duration, duration_err = parse_duration(data.get("new_duration"))
    err = first_error(
        require_fields(data, "new_date", "new_start_time"),
        check_date(data.get("new_date"), "new_date"),
        check_time(data.get("new_start_time"), "new_start_time"),
        duration_err,
    )
    if err:
        return jsonify(error=err), 400

    old, new = run_with_retry(
        reschedule_booking,
        booking_id,
        g.user.id,
        data["new_date"],
        data["new_start_time"],
        duration,
        attempts=_retries(),
    )

    notify_quietly(new, "rescheduled")
    return jsonify(old_booking=old.to_dict(), new_booking=new.to_dict()), 200
