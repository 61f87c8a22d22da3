from datetime import datetime
from models.db import db

BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "rescheduled")
INACTIVE_STATUSES = ("cancelled", "rescheduled")
PAYMENT_STATUSES = ("pending", "partial", "paid", "failed", "refunded")
PAYMENT_METHODS = ("easypaisa", "jazzcash", "cash", "card", "other")
SOURCES = ("online", "walk-in")


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    sport_id = db.Column(db.Integer, db.ForeignKey("sports.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    guest_id = db.Column(db.String(64), nullable=True, index=True)

    # Strings so that lexical order == time order. end_time may run past
    # "24:00" ("25:00") for bookings spilling into the next day.
    date = db.Column(db.String(10), nullable=False)
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    duration = db.Column(db.Float, nullable=False)  # hours

    customer_name = db.Column(db.String(120), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False, index=True)
    customer_phone = db.Column(db.String(30), nullable=False, index=True)

    amount = db.Column(db.Float, nullable=False)  # fixed at creation
    status = db.Column(db.String(20), nullable=False, default="pending")

    payment_status = db.Column(db.String(20), nullable=False, default="pending")
    payment_method = db.Column(db.String(20), nullable=False, default="other")
    paid_amount = db.Column(db.Float, nullable=False, default=0)
    payment_reference = db.Column(db.String(120), nullable=True)
    payment_verified = db.Column(db.Boolean, nullable=False, default=False)
    payment_verified_at = db.Column(db.DateTime, nullable=True)

    source = db.Column(db.String(20), nullable=False, default="online")
    rescheduled_from_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    sport = db.relationship("Sport")
    rescheduled_from = db.relationship("Booking", remote_side=[id])

    __table_args__ = (
        # Last line of defence against double booking: one active booking per start.
        db.Index(
            "uq_booking_active_slot",
            "sport_id", "date", "start_time",
            unique=True,
            sqlite_where=db.text("status NOT IN ('cancelled', 'rescheduled')"),
            postgresql_where=db.text("status NOT IN ('cancelled', 'rescheduled')"),
        ),
        db.Index("ix_bookings_sport_date", "sport_id", "date"),
        db.Index("ix_bookings_date_status", "date", "status"),
        db.Index("ix_bookings_payment_status_date", "payment_status", "date"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "sport_id": self.sport_id,
            "sport": self.sport.name if self.sport else None,
            "user_id": self.user_id,
            "guest_id": self.guest_id,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "amount": self.amount,
            "status": self.status,
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "paid_amount": self.paid_amount,
            "payment_reference": self.payment_reference,
            "payment_verified": self.payment_verified,
            "payment_verified_at": self.payment_verified_at.isoformat() if self.payment_verified_at else None,
            "source": self.source,
            "rescheduled_from": self.rescheduled_from_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
