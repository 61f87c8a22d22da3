from datetime import datetime
from models.db import db

class BlockedSlot(db.Model):
    __tablename__ = "blocked_slots"

    id = db.Column(db.Integer, primary_key=True)
    sport_id = db.Column(db.Integer, db.ForeignKey("sports.id"), nullable=False)

    date = db.Column(db.String(10), nullable=False)       # YYYY-MM-DD
    start_time = db.Column(db.String(5), nullable=False)  # HH:MM
    end_time = db.Column(db.String(5), nullable=False)
    reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    sport = db.relationship("Sport")

    __table_args__ = (
        db.Index("ix_blocked_slots_sport_date", "sport_id", "date"),
    )
