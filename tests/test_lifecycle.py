from datetime import datetime, timedelta

import pytest

from models import db
from models.booking import Booking
from services import lifecycle
from services.blocks import create_blocked_slot
from services.booking import create_booking, create_walk_in
from services.errors import NotFound, AlreadyCancelled, InvalidTransition, SlotUnavailable, SlotBlocked, InvalidRequest
from services.lifecycle import (
    cancel_booking, reschedule_booking, update_booking, expire_stale_pending, notification_event,
)

from conftest import CUSTOMER

SATURDAY = "2025-06-14"
FRIDAY = "2025-06-13"


def _confirmed(user_id, date=SATURDAY, start="18:00", duration=2):
    booking = create_booking("Futsal", date, start, duration, user_id=user_id, **CUSTOMER)
    update_booking(booking.id, status="confirmed", payment_status="paid")
    return booking


class TestCancel:
    def test_cancel(self, futsal):
        booking = create_booking("Futsal", SATURDAY, "18:00", 1, **CUSTOMER)
        assert cancel_booking(booking.id).status == "cancelled"

    def test_cancel_twice(self, futsal):
        booking = create_booking("Futsal", SATURDAY, "18:00", 1, **CUSTOMER)
        cancel_booking(booking.id)
        with pytest.raises(AlreadyCancelled):
            cancel_booking(booking.id)

    def test_owner_scoped(self, futsal, customer, other_customer):
        booking = create_booking("Futsal", SATURDAY, "18:00", 1, user_id=customer.id, **CUSTOMER)
        with pytest.raises(NotFound):
            cancel_booking(booking.id, user_id=other_customer.id)
        assert cancel_booking(booking.id, user_id=customer.id).status == "cancelled"

    def test_missing(self, futsal):
        with pytest.raises(NotFound):
            cancel_booking(12345)

    def test_rescheduled_booking_cannot_be_cancelled(self, futsal, customer):
        old, _ = reschedule_booking(_confirmed(customer.id).id, customer.id, SATURDAY, "21:00", 1)
        with pytest.raises(InvalidTransition):
            cancel_booking(old.id)
        assert db.session.get(Booking, old.id).status == "rescheduled"


class TestReschedule:
    def test_moves_booking_atomically(self, futsal, customer):
        original = _confirmed(customer.id)
        old, new = reschedule_booking(original.id, customer.id, FRIDAY, "10:00", 1)

        assert old.status == "rescheduled"
        assert new.status == "confirmed"
        assert new.rescheduled_from_id == old.id
        assert new.source == "online"
        assert (new.date, new.start_time, new.end_time) == (FRIDAY, "10:00", "11:00")
        assert new.amount == 2700
        assert new.customer_phone == old.customer_phone
        assert new.user_id == customer.id
        assert new.payment_status == "paid"

    def test_can_overlap_its_own_old_interval(self, futsal, customer):
        original = _confirmed(customer.id, start="18:00", duration=2)
        old, new = reschedule_booking(original.id, customer.id, SATURDAY, "19:00", 2)
        assert (new.start_time, new.end_time) == ("19:00", "21:00")

    def test_same_start_time_new_duration(self, futsal, customer):
        original = _confirmed(customer.id, start="18:00", duration=1)
        _, new = reschedule_booking(original.id, customer.id, SATURDAY, "18:00", 2)
        assert new.end_time == "20:00"

    def test_conflict_leaves_everything_untouched(self, futsal, customer):
        original = _confirmed(customer.id)
        create_walk_in("Futsal", FRIDAY, "10:00", 2, customer_name="Bilal", customer_phone="0311")

        with pytest.raises(SlotUnavailable):
            reschedule_booking(original.id, customer.id, FRIDAY, "11:00", 1)

        db.session.expire_all()
        assert db.session.get(Booking, original.id).status == "confirmed"
        assert Booking.query.filter_by(rescheduled_from_id=original.id).count() == 0

    def test_non_finite_duration(self, futsal, customer):
        original = _confirmed(customer.id)
        with pytest.raises(InvalidRequest):
            reschedule_booking(original.id, customer.id, FRIDAY, "10:00", float("nan"))
        assert db.session.get(Booking, original.id).status == "confirmed"

    def test_blocked_destination(self, futsal, customer):
        original = _confirmed(customer.id)
        create_blocked_slot(futsal, FRIDAY, "08:00", "10:00")
        with pytest.raises(SlotBlocked):
            reschedule_booking(original.id, customer.id, FRIDAY, "09:00", 1)
        assert db.session.get(Booking, original.id).status == "confirmed"

    def test_requires_confirmed_and_owner(self, futsal, customer, other_customer):
        pending = create_booking("Futsal", SATURDAY, "08:00", 1, user_id=customer.id, **CUSTOMER)
        with pytest.raises(NotFound):
            reschedule_booking(pending.id, customer.id, FRIDAY, "10:00", 1)

        confirmed = _confirmed(customer.id)
        with pytest.raises(NotFound):
            reschedule_booking(confirmed.id, other_customer.id, FRIDAY, "10:00", 1)

    def test_rescheduled_is_terminal(self, futsal, customer):
        original = _confirmed(customer.id)
        reschedule_booking(original.id, customer.id, FRIDAY, "10:00", 1)
        with pytest.raises(NotFound):
            reschedule_booking(original.id, customer.id, FRIDAY, "14:00", 1)

    def test_history_chain(self, futsal, customer):
        first = _confirmed(customer.id)
        _, second = reschedule_booking(first.id, customer.id, FRIDAY, "10:00", 1)
        _, third = reschedule_booking(second.id, customer.id, FRIDAY, "12:00", 1)
        assert third.rescheduled_from.rescheduled_from.id == first.id

    def test_disjoint_after_mixed_operations(self, futsal, customer):
        a = _confirmed(customer.id, start="08:00", duration=1)
        b = _confirmed(customer.id, start="10:00", duration=2)
        create_walk_in("Futsal", SATURDAY, "13:00", 1, customer_name="Bilal", customer_phone="0311")
        reschedule_booking(a.id, customer.id, SATURDAY, "12:00", 1)
        cancel_booking(b.id)
        create_booking("Futsal", SATURDAY, "09:00", 3, **CUSTOMER)
        with pytest.raises(SlotUnavailable):
            create_booking("Futsal", SATURDAY, "12:30", 1, **CUSTOMER)

        active = (
            Booking.query
            .filter(Booking.date == SATURDAY, Booking.status.notin_(("cancelled", "rescheduled")))
            .order_by(Booking.start_time)
            .all()
        )
        for x, y in zip(active, active[1:]):
            assert x.end_time <= y.start_time


class TestAdminUpdate:
    def test_confirm_pending(self, futsal):
        booking = create_booking("Futsal", SATURDAY, "18:00", 1, **CUSTOMER)
        updated, before, after = update_booking(booking.id, status="confirmed")
        assert updated.status == "confirmed"
        assert before == {"status": "pending"}
        assert after == {"status": "confirmed"}

    def test_paid_fills_in_amount_and_verification(self, futsal):
        booking = create_booking("Futsal", SATURDAY, "18:00", 2, **CUSTOMER)
        updated, _, after = update_booking(booking.id, payment_status="paid", payment_method="easypaisa")
        assert updated.paid_amount == 7000
        assert updated.payment_verified is True
        assert updated.payment_verified_at is not None
        assert after["payment_status"] == "paid"

    def test_unverify_clears_timestamp(self, futsal):
        booking = create_walk_in("Futsal", SATURDAY, "18:00", 1, customer_name="Bilal", customer_phone="0311")
        updated, _, _ = update_booking(booking.id, payment_verified=False)
        assert updated.payment_verified is False
        assert updated.payment_verified_at is None

    @pytest.mark.parametrize("target", ["confirmed", "pending", "rescheduled"])
    def test_terminal_status_stays_terminal(self, futsal, target):
        booking = create_booking("Futsal", SATURDAY, "18:00", 1, **CUSTOMER)
        cancel_booking(booking.id)
        with pytest.raises(InvalidTransition):
            update_booking(booking.id, status=target)

    def test_rescheduled_cannot_be_set_directly(self, futsal):
        booking = create_walk_in("Futsal", SATURDAY, "18:00", 1, customer_name="Bilal", customer_phone="0311")
        with pytest.raises(InvalidTransition):
            update_booking(booking.id, status="rescheduled")

    def test_validation(self, futsal):
        booking = create_booking("Futsal", SATURDAY, "18:00", 1, **CUSTOMER)
        with pytest.raises(InvalidRequest):
            update_booking(booking.id)
        with pytest.raises(InvalidRequest):
            update_booking(booking.id, payment_status="bounced")
        with pytest.raises(InvalidRequest):
            update_booking(booking.id, status="archived")
        with pytest.raises(InvalidRequest):
            update_booking(booking.id, paid_amount="abc")
        with pytest.raises(NotFound):
            update_booking(999, status="confirmed")

    def test_notification_event(self):
        assert notification_event({"status": "pending"}, {"status": "confirmed"}) == "confirmed"
        assert notification_event({"status": "confirmed"}, {"status": "cancelled"}) == "cancelled"
        assert notification_event({"payment_status": "pending"}, {"payment_status": "paid"}) == "payment_received"
        assert notification_event({"payment_method": "cash"}, {"payment_method": "card"}) is None


class TestExpireStalePending:
    def test_only_stale_unpaid_online_bookings_expire(self, futsal):
        stale = create_booking("Futsal", SATURDAY, "08:00", 1, **CUSTOMER)
        fresh = create_booking("Futsal", SATURDAY, "09:00", 1, **CUSTOMER)
        partly_paid = create_booking("Futsal", SATURDAY, "10:00", 1, **CUSTOMER)
        walk_in = create_walk_in("Futsal", SATURDAY, "11:00", 1, customer_name="Bilal", customer_phone="0311")

        old = datetime.utcnow() - timedelta(minutes=30)
        for b in (stale, partly_paid, walk_in):
            b.created_at = old
        partly_paid.payment_status = "partial"
        db.session.commit()

        assert expire_stale_pending() == 1
        db.session.expire_all()
        assert db.session.get(Booking, stale.id).status == "cancelled"
        assert db.session.get(Booking, fresh.id).status == "pending"
        assert db.session.get(Booking, partly_paid.id).status == "pending"
        assert db.session.get(Booking, walk_in.id).status == "confirmed"

    def test_expired_slot_can_be_booked_again(self, futsal):
        stale = create_booking("Futsal", SATURDAY, "08:00", 1, **CUSTOMER)
        stale.created_at = datetime.utcnow() - timedelta(minutes=16)
        db.session.commit()

        expire_stale_pending()
        create_booking("Futsal", SATURDAY, "08:00", 1, **CUSTOMER)

    def test_uses_configured_hold(self, app, futsal):
        app.config["PENDING_HOLD_MINUTES"] = 60
        stale = create_booking("Futsal", SATURDAY, "08:00", 1, **CUSTOMER)
        stale.created_at = datetime.utcnow() - timedelta(minutes=30)
        db.session.commit()
        assert lifecycle.expire_stale_pending() == 0
