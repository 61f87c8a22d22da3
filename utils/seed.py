from models import db
from models.user import Role
from services.sports import create_sport, resolve_sport
from services.errors import NotFound

DEFAULT_ROLES = ["CUSTOMER", "ADMIN"]

# name: (base price, weekend price, sort order)
DEFAULT_SPORTS = {
    "Cricket": (2700, 3500, 1),
    "Futsal": (2700, 3500, 2),
    "Padel": (3500, 5000, 3),
}

def seed_roles():
    existing = {r.name for r in Role.query.all()}
    for name in DEFAULT_ROLES:
        if name not in existing:
            db.session.add(Role(name=name))
    db.session.commit()

def seed_sports():
    created = []
    for name, (base, weekend, order) in DEFAULT_SPORTS.items():
        try:
            resolve_sport(name, include_inactive=True)
            continue
        except NotFound:
            pass
        created.append(create_sport(name, base, sort_order=order, weekend_price=weekend))
    return created
