from models.db import db

class Sport(db.Model):
    __tablename__ = "sports"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(255), nullable=True)

    base_price = db.Column(db.Integer, nullable=False)  # per hour, PKR
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    sort_order = db.Column(db.Integer, default=0, nullable=False)
    # e.g. [1, 1.5, 2, 3]
    duration_options = db.Column(db.JSON, nullable=False, default=lambda: [1, 1.5, 2, 3])

    pricing_rules = db.relationship("PricingRule", back_populates="sport", lazy="select")
