from datetime import datetime
from models.db import db

class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True)  # admin who acted, null for system jobs
    action = db.Column(db.String(80), nullable=False)  # e.g. WALK_IN_CREATE, BOOKING_UPDATE
    entity = db.Column(db.String(80), nullable=True)   # booking, sport, pricing_rule, blocked_slot
    entity_id = db.Column(db.String(80), nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    # {"before": {...}, "after": {...}, "summary": "..."}
    metadata_json = db.Column(db.Text, nullable=True)

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
