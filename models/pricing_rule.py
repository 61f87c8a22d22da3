from models.db import db

RULE_TYPES = ("weekday", "weekend", "special")

class PricingRule(db.Model):
    __tablename__ = "pricing_rules"

    id = db.Column(db.Integer, primary_key=True)
    sport_id = db.Column(db.Integer, db.ForeignKey("sports.id"), nullable=False)

    name = db.Column(db.String(120), nullable=False)  # e.g. "Weekend Peak"
    type = db.Column(db.String(20), nullable=False)   # weekday, weekend, special
    start_time = db.Column(db.String(5), nullable=False)  # "17:00"
    end_time = db.Column(db.String(5), nullable=False)    # "23:00"

    price_multiplier = db.Column(db.Float, nullable=False, default=1)
    override_price = db.Column(db.Integer, nullable=True)  # wins over multiplier when set
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    sport = db.relationship("Sport", back_populates="pricing_rules")

    __table_args__ = (
        db.Index("ix_pricing_rules_sport_type", "sport_id", "type"),
    )
