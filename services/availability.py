"""
Slot grid and availability projection.

The projection is a read-only view for rendering. It tolerates staleness:
the allocator is the only arbiter of whether a slot can still be taken.
"""
import logging
from datetime import timedelta

from flask import current_app
from sqlalchemy import or_

from models.booking import Booking, INACTIVE_STATUSES
from models.blocked_slot import BlockedSlot
from services.pricing import price_for_sport
from services.sports import resolve_sport
from services.timeutils import DAY_END, hour_of, parse_date, previous_day, utcnow, venue_now

logger = logging.getLogger(__name__)

AVAILABLE = "available"
BOOKED = "booked"
PASSED = "passed"


def generate_slots(date: str, price):
    """The 24 hourly units of a day, 00:00-24:00, all available."""
    slots = []
    for hour in range(24):
        start = f"{hour:02d}:00"
        end = f"{hour + 1:02d}:00"
        slots.append({
            "time": f"{start} - {end}",
            "date": date,
            "start_time": start,
            "end_time": end,
            "status": AVAILABLE,
            "price": price,
        })
    return slots


def _holding_filter(now):
    """
    Bookings that occupy their slot in the view: confirmed ones, pending ones
    still inside the payment grace window, and anything whose payment has
    moved past pending. Older pending bookings are treated as abandoned.
    """
    hold_minutes = current_app.config.get("PENDING_HOLD_MINUTES", 15)
    cutoff = now - timedelta(minutes=hold_minutes)
    return or_(
        Booking.status == "confirmed",
        Booking.created_at > cutoff,
        Booking.payment_status != "pending",
    )


def holding_bookings(sport_id: int, date: str, now=None, overnight_only: bool = False):
    q = Booking.query.filter(
        Booking.sport_id == sport_id,
        Booking.date == date,
        Booking.status.notin_(INACTIVE_STATUSES),
        _holding_filter(now or utcnow()),
    )
    if overnight_only:
        q = q.filter(Booking.end_time > DAY_END)
    return q.with_entities(Booking.start_time, Booking.end_time).all()


def blocked_ranges(sport_id: int, date: str):
    return (
        BlockedSlot.query
        .filter_by(sport_id=sport_id, date=date)
        .with_entities(BlockedSlot.start_time, BlockedSlot.end_time)
        .all()
    )


def _covers(ranges, slot_start: str) -> bool:
    return any(start <= slot_start < end for start, end in ranges)


def _spills_into(prev_day_bookings, slot_hour: int) -> bool:
    # Hour granularity only: a booking ending 24:30 ("00:30" next day) does
    # not block the 00:00 slot.
    return any(slot_hour < hour_of(end) - 24 for _, end in prev_day_bookings)


def get_availability(sport_identifier, date: str, now=None):
    """
    Annotated slots for ``date``: ``booked`` when covered by a holding booking,
    an admin block or a spill from the previous evening, ``passed`` when the
    hour is already over at the venue today, otherwise ``available``.
    """
    parse_date(date)
    sport = resolve_sport(sport_identifier)
    now = now or utcnow()

    price = price_for_sport(sport, date)
    bookings = holding_bookings(sport.id, date, now=now)
    overnight = holding_bookings(sport.id, previous_day(date), now=now, overnight_only=True)
    blocks = blocked_ranges(sport.id, date)

    slots = generate_slots(date, price)
    for slot in slots:
        if _covers(bookings, slot["start_time"]) or _covers(blocks, slot["start_time"]):
            slot["status"] = BOOKED
        elif _spills_into(overnight, hour_of(slot["start_time"])):
            slot["status"] = BOOKED

    local_now = venue_now(current_app.config.get("VENUE_UTC_OFFSET_HOURS", 5), now)
    if date == local_now.date().isoformat():
        for slot in slots:
            if slot["status"] == AVAILABLE and hour_of(slot["start_time"]) < local_now.hour:
                slot["status"] = PASSED

    logger.debug("Availability for sport=%s date=%s: %d booked",
                 sport.id, date, sum(1 for s in slots if s["status"] == BOOKED))
    return slots
