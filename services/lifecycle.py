"""
Booking lifecycle after allocation: cancel, reschedule, admin status and
payment updates, and the stale-pending sweep.

``cancelled`` and ``rescheduled`` are terminal. A rescheduled booking is
replaced by a new row pointing back at it through ``rescheduled_from_id``.
"""
import logging
from datetime import timedelta

from flask import current_app

from models import db
from models.booking import Booking, BOOKING_STATUSES, PAYMENT_STATUSES, PAYMENT_METHODS
from services.booking import ensure_interval_free, lock_sport
from services.errors import NotFound, AlreadyCancelled, InvalidTransition, InvalidRequest
from services.numbers import to_number
from services.pricing import price_for_sport
from services.timeutils import end_time_for, parse_date, utcnow
from services.tx import atomic

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = ("status", "payment_status", "payment_method", "paid_amount",
                   "payment_reference", "payment_verified")

# status -> statuses an admin may move it to
ALLOWED_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"cancelled"},
    "cancelled": set(),
    "rescheduled": set(),
}


def snapshot(booking: Booking, fields=SNAPSHOT_FIELDS):
    return {f: getattr(booking, f) for f in fields}


def cancel_booking(booking_id: int, user_id=None) -> Booking:
    """
    Cancel a booking, scoped to ``user_id`` when given (customer path).
    Raises NotFound, AlreadyCancelled, or InvalidTransition for a booking
    that was already rescheduled.
    """
    with atomic():
        q = Booking.query.filter_by(id=booking_id)
        if user_id is not None:
            q = q.filter_by(user_id=user_id)
        booking = q.with_for_update().one_or_none()
        if booking is None:
            raise NotFound("Booking not found or you do not have permission to cancel it.")
        if booking.status == "cancelled":
            raise AlreadyCancelled()
        if booking.status == "rescheduled":
            raise InvalidTransition("Booking was rescheduled and can no longer be cancelled.")

        booking.status = "cancelled"

    logger.info("Booking %s cancelled%s", booking.id, f" by user {user_id}" if user_id else "")
    return booking


def reschedule_booking(booking_id: int, user_id: int, new_date: str, new_start_time: str, new_duration=1):
    """
    Move a confirmed booking to a new interval in one transaction: the old
    row becomes ``rescheduled`` and a new confirmed row takes the new slot.
    Returns (old_booking, new_booking).
    """
    parse_date(new_date)
    new_end_time = end_time_for(new_start_time, new_duration)

    with atomic():
        old = (
            Booking.query
            .filter_by(id=booking_id, user_id=user_id, status="confirmed")
            .with_for_update()
            .one_or_none()
        )
        if old is None:
            raise NotFound("Booking not found or you do not have permission to reschedule it.")

        sport = lock_sport(old.sport_id)
        amount = price_for_sport(sport, new_date) * float(new_duration)

        ensure_interval_free(sport.id, new_date, new_start_time, new_end_time, exclude_id=old.id)

        old.status = "rescheduled"
        # The old row must leave the active unique index before the new row enters it.
        db.session.flush()

        new = Booking(
            sport_id=sport.id,
            user_id=old.user_id,
            guest_id=old.guest_id,
            date=new_date,
            start_time=new_start_time,
            end_time=new_end_time,
            duration=float(new_duration),
            customer_name=old.customer_name,
            customer_email=old.customer_email,
            customer_phone=old.customer_phone,
            amount=amount,
            status="confirmed",
            payment_status=old.payment_status,
            payment_method=old.payment_method,
            paid_amount=old.paid_amount,
            payment_reference=old.payment_reference,
            payment_verified=old.payment_verified,
            payment_verified_at=old.payment_verified_at,
            source="online",
            rescheduled_from_id=old.id,
            created_at=utcnow(),
        )
        db.session.add(new)
        db.session.flush()

    logger.info("Booking %s rescheduled to %s (%s %s-%s)", old.id, new.id, new_date, new_start_time, new_end_time)
    return old, new


def update_booking(booking_id: int, status=None, payment_status=None, payment_method=None,
                   paid_amount=None, payment_reference=None, payment_verified=None):
    """
    Admin update of status and payment metadata. Returns
    (booking, before, after) where before/after only hold the touched fields.
    """
    requested = {
        "status": status,
        "payment_status": payment_status,
        "payment_method": payment_method,
        "paid_amount": paid_amount,
        "payment_reference": payment_reference,
        "payment_verified": payment_verified,
    }
    touched = [k for k, v in requested.items() if v is not None]
    if not touched:
        raise InvalidRequest("Nothing to update")
    if payment_status is not None and payment_status not in PAYMENT_STATUSES:
        raise InvalidRequest(f"payment_status must be one of {', '.join(PAYMENT_STATUSES)}")
    if payment_method is not None and payment_method not in PAYMENT_METHODS:
        raise InvalidRequest(f"payment_method must be one of {', '.join(PAYMENT_METHODS)}")
    if status is not None and status not in BOOKING_STATUSES:
        raise InvalidRequest(f"status must be one of {', '.join(BOOKING_STATUSES)}")
    if paid_amount is not None:
        paid_amount = to_number(paid_amount, "paid_amount")

    with atomic():
        booking = Booking.query.filter_by(id=booking_id).with_for_update().one_or_none()
        if booking is None:
            raise NotFound("Booking not found")

        before = snapshot(booking, touched)
        now = utcnow()

        if status is not None and status != booking.status:
            if status not in ALLOWED_TRANSITIONS.get(booking.status, set()):
                raise InvalidTransition(f"Cannot change booking from {booking.status} to {status}.")
            booking.status = status
        if payment_status is not None:
            booking.payment_status = payment_status
        if payment_method is not None:
            booking.payment_method = payment_method
        if paid_amount is not None:
            booking.paid_amount = paid_amount
        if payment_reference is not None:
            booking.payment_reference = payment_reference
        if payment_verified is not None:
            booking.payment_verified = bool(payment_verified)
            booking.payment_verified_at = now if payment_verified else None

        if payment_status == "paid":
            if paid_amount is None:
                booking.paid_amount = booking.amount
            if payment_verified is None:
                booking.payment_verified = True
                booking.payment_verified_at = now

        after = snapshot(booking, touched)

    logger.info("Booking %s updated: %s", booking.id,
                ", ".join(f"{k}={after[k]}" for k in touched))
    return booking, before, after


def expire_stale_pending(now=None) -> int:
    """
    Cancel online bookings still pending payment after the grace window.
    Availability already ignores them; this frees them for the allocator too.
    """
    now = now or utcnow()
    cutoff = now - timedelta(minutes=current_app.config.get("PENDING_HOLD_MINUTES", 15))
    with atomic():
        stale = (
            Booking.query
            .filter(
                Booking.status == "pending",
                Booking.payment_status == "pending",
                Booking.source == "online",
                Booking.created_at <= cutoff,
            )
            .with_for_update()
            .all()
        )
        for booking in stale:
            booking.status = "cancelled"

    if stale:
        logger.info("Expired %d stale pending bookings", len(stale))
    return len(stale)


def notification_event(before: dict, after: dict):
    """Event kind for the notification sink after an admin update, if any."""
    if before.get("status") != after.get("status"):
        if after.get("status") in ("confirmed", "cancelled"):
            return after["status"]
    if before.get("payment_status") != after.get("payment_status") and after.get("payment_status") == "paid":
        return "payment_received"
    return None
