"""
Booking allocation.

Every write to a sport/date's bookings goes through here or through
``services.lifecycle``. The overlap check and the insert share one
transaction: the sport row is locked first (FOR UPDATE on Postgres/MySQL,
BEGIN IMMEDIATE on SQLite), and the partial unique index on
(sport_id, date, start_time) catches anything the lock does not.
"""
import logging

from flask import current_app
from sqlalchemy import func, or_

from models import db
from models.booking import Booking, BOOKING_STATUSES, INACTIVE_STATUSES, PAYMENT_METHODS, PAYMENT_STATUSES, SOURCES
from models.blocked_slot import BlockedSlot
from models.sport import Sport
from services.errors import NotFound, SlotUnavailable, SlotBlocked, InvalidRequest
from services.pricing import price_for_sport
from services.sports import resolve_sport
from services.timeutils import end_time_for, parse_date, utcnow
from services.tx import atomic

logger = logging.getLogger(__name__)


def lock_sport(sport_id: int) -> Sport:
    """Serialize writers per sport for the rest of the transaction."""
    sport = Sport.query.filter_by(id=sport_id).with_for_update().one_or_none()
    if sport is None:
        raise NotFound("Sport not found")
    return sport


def find_overlapping_booking(sport_id: int, date: str, start_time: str, end_time: str, exclude_id=None):
    q = Booking.query.filter(
        Booking.sport_id == sport_id,
        Booking.date == date,
        Booking.status.notin_(INACTIVE_STATUSES),
        Booking.start_time < end_time,
        Booking.end_time > start_time,
    )
    if exclude_id is not None:
        q = q.filter(Booking.id != exclude_id)
    return q.first()


def find_overlapping_block(sport_id: int, date: str, start_time: str, end_time: str):
    return (
        BlockedSlot.query
        .filter(
            BlockedSlot.sport_id == sport_id,
            BlockedSlot.date == date,
            BlockedSlot.start_time < end_time,
            BlockedSlot.end_time > start_time,
        )
        .first()
    )


def ensure_interval_free(sport_id: int, date: str, start_time: str, end_time: str, exclude_id=None):
    """Raise SlotUnavailable / SlotBlocked if [start_time, end_time) is taken."""
    clash = find_overlapping_booking(sport_id, date, start_time, end_time, exclude_id=exclude_id)
    if clash is not None:
        logger.info("Slot conflict: sport=%s date=%s %s-%s overlaps booking %s (%s-%s)",
                    sport_id, date, start_time, end_time, clash.id, clash.start_time, clash.end_time)
        raise SlotUnavailable()

    block = find_overlapping_block(sport_id, date, start_time, end_time)
    if block is not None:
        logger.info("Slot blocked: sport=%s date=%s %s-%s by block %s",
                    sport_id, date, start_time, end_time, block.id)
        raise SlotBlocked()


def create_booking(sport_identifier, date: str, start_time: str, duration=1, *,
                   customer_name: str, customer_email: str, customer_phone: str,
                   user_id=None, guest_id=None, payment_method=None, payment_reference=None,
                   walk_in: bool = False) -> Booking:
    """
    Allocate [start_time, start_time + duration) on ``date`` for one sport.

    Online bookings are created ``pending`` awaiting payment; walk-ins are
    created ``confirmed`` and paid in cash. The amount is fixed here from the
    price in force for ``date`` and never recomputed.

    Raises NotFound, SlotUnavailable, SlotBlocked or InvalidRequest.
    """
    parse_date(date)
    end_time = end_time_for(start_time, duration)
    if not (customer_name or "").strip() or not (customer_phone or "").strip():
        raise InvalidRequest("Customer name and phone are required")
    if not walk_in and not (customer_email or "").strip():
        raise InvalidRequest("Customer email is required")
    if payment_method is not None and payment_method not in PAYMENT_METHODS:
        raise InvalidRequest(f"payment_method must be one of {', '.join(PAYMENT_METHODS)}")

    with atomic():
        sport = resolve_sport(sport_identifier)
        sport = lock_sport(sport.id)
        amount = price_for_sport(sport, date) * float(duration)

        ensure_interval_free(sport.id, date, start_time, end_time)

        now = utcnow()
        booking = Booking(
            sport_id=sport.id,
            date=date,
            start_time=start_time,
            end_time=end_time,
            duration=float(duration),
            customer_name=customer_name.strip(),
            customer_email=(customer_email or "").strip().lower(),
            customer_phone=customer_phone.strip(),
            amount=amount,
            created_at=now,
        )
        if user_id is not None:
            booking.user_id = user_id
        elif guest_id:
            booking.guest_id = guest_id

        if walk_in:
            booking.customer_email = booking.customer_email or current_app.config.get("WALK_IN_EMAIL", "walk-in@arena.local")
            booking.status = "confirmed"
            booking.source = "walk-in"
            booking.payment_status = "paid"
            booking.payment_method = payment_method or "cash"
            booking.paid_amount = amount
            booking.payment_verified = True
            booking.payment_verified_at = now
        else:
            booking.status = "pending"
            booking.source = "online"
            booking.payment_status = "pending"
            booking.payment_method = payment_method or "other"
            booking.payment_reference = payment_reference or None
            booking.paid_amount = 0
            booking.payment_verified = False

        db.session.add(booking)
        db.session.flush()

    logger.info("Booking %s created: sport=%s date=%s %s-%s amount=%s source=%s",
                booking.id, booking.sport_id, date, start_time, end_time, amount, booking.source)
    return booking


def create_walk_in(sport_identifier, date: str, start_time: str, duration=1, *,
                   customer_name: str, customer_phone: str, customer_email: str = None,
                   payment_method: str = "cash") -> Booking:
    return create_booking(
        sport_identifier, date, start_time, duration,
        customer_name=customer_name,
        customer_email=customer_email or "",
        customer_phone=customer_phone,
        payment_method=payment_method,
        walk_in=True,
    )


# ---------- read side ----------

def get_booking(booking_id: int) -> Booking:
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise NotFound("Booking not found")
    return booking


def bookings_for_user(user_id: int):
    return (
        Booking.query
        .filter_by(user_id=user_id)
        .order_by(Booking.date.desc(), Booking.start_time.desc())
        .all()
    )


def bookings_for_guest(guest_id: str):
    return (
        Booking.query
        .filter_by(guest_id=guest_id, user_id=None)
        .order_by(Booking.date.desc(), Booking.start_time.desc())
        .all()
    )


def bookings_by_email(email: str):
    return (
        Booking.query
        .filter_by(customer_email=(email or "").strip().lower())
        .order_by(Booking.date.desc(), Booking.start_time.desc())
        .all()
    )


def link_guest_bookings(email: str, user_id: int) -> int:
    """Attach guest bookings made with ``email`` to a registered user."""
    count = (
        Booking.query
        .filter(Booking.customer_email == (email or "").strip().lower(), Booking.user_id.is_(None))
        .update({Booking.user_id: user_id}, synchronize_session=False)
    )
    db.session.commit()
    return count


def list_bookings(date=None, start_date=None, end_date=None, status=None, payment_status=None,
                  source=None, sport_id=None, search=None, page: int = 1, limit: int = 25):
    """Admin listing with pagination and summary stats over the whole filter."""
    for field, value, allowed in (("status", status, BOOKING_STATUSES),
                                  ("payment_status", payment_status, PAYMENT_STATUSES),
                                  ("source", source, SOURCES)):
        if value and value != "all" and value not in allowed:
            raise InvalidRequest(f"{field} must be one of all, {', '.join(allowed)}")

    filters = []
    if date:
        filters.append(Booking.date == date)
    else:
        if start_date:
            filters.append(Booking.date >= start_date)
        if end_date:
            filters.append(Booking.date <= end_date)
    if status and status != "all":
        filters.append(Booking.status == status)
    if payment_status and payment_status != "all":
        filters.append(Booking.payment_status == payment_status)
    if source and source != "all":
        filters.append(Booking.source == source)
    if sport_id:
        filters.append(Booking.sport_id == sport_id)
    if search:
        like = f"%{search.strip()}%"
        filters.append(or_(
            Booking.customer_name.ilike(like),
            Booking.customer_phone.ilike(like),
            Booking.customer_email.ilike(like),
            Booking.payment_reference.ilike(like),
        ))

    page = max(int(page or 1), 1)
    limit = min(max(int(limit or 25), 1), 100)

    q = Booking.query.filter(*filters)
    total = q.count()
    rows = q.order_by(Booking.created_at.desc(), Booking.id.desc()).offset((page - 1) * limit).limit(limit).all()

    revenue = (
        db.session.query(func.coalesce(func.sum(Booking.amount), 0))
        .filter(*filters, Booking.status != "cancelled")
        .scalar()
    )
    cancelled = Booking.query.filter(*filters, Booking.status == "cancelled").count()
    pending_payments = Booking.query.filter(*filters, Booking.payment_status.in_(("pending", "partial"))).count()

    return {
        "bookings": rows,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": max(1, -(-total // limit)),
        },
        "stats": {
            "revenue": revenue,
            "count": total,
            "cancelled": cancelled,
            "pending_payments": pending_payments,
        },
    }
