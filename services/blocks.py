from models import db
from models.blocked_slot import BlockedSlot
from services.errors import NotFound, InvalidRequest
from services.sports import resolve_sport
from services.timeutils import parse_date, time_to_minutes


def create_blocked_slot(sport_id, date: str, start_time: str, end_time: str, reason=None) -> BlockedSlot:
    """Withhold [start_time, end_time) on ``date`` without creating a booking."""
    parse_date(date)
    if time_to_minutes(end_time) <= time_to_minutes(start_time):
        raise InvalidRequest("end_time must be after start_time")
    sport = resolve_sport(sport_id, include_inactive=True)

    block = BlockedSlot(
        sport_id=sport.id,
        date=date,
        start_time=start_time,
        end_time=end_time,
        reason=(reason or "").strip() or "Blocked by admin",
    )
    db.session.add(block)
    db.session.commit()
    return block


def list_blocked_slots(date=None, sport_id=None):
    q = BlockedSlot.query
    if date:
        q = q.filter_by(date=date)
    if sport_id:
        q = q.filter_by(sport_id=sport_id)
    return q.order_by(BlockedSlot.date.asc(), BlockedSlot.start_time.asc()).all()


def delete_blocked_slot(block_id: int) -> BlockedSlot:
    block = db.session.get(BlockedSlot, block_id)
    if block is None:
        raise NotFound("Blocked slot not found")
    db.session.delete(block)
    db.session.commit()
    return block


def block_to_dict(block: BlockedSlot):
    return {
        "id": block.id,
        "sport_id": block.sport_id,
        "sport": block.sport.name if block.sport else None,
        "date": block.date,
        "start_time": block.start_time,
        "end_time": block.end_time,
        "reason": block.reason,
        "created_at": block.created_at.isoformat() if block.created_at else None,
    }
