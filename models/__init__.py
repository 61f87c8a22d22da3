from .db import db
from .user import User, Role, user_roles
from .audit_log import AuditLog
from .session import Session
from .sport import Sport
from .pricing_rule import PricingRule
from .blocked_slot import BlockedSlot
from .booking import Booking
