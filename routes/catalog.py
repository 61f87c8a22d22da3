from flask import Blueprint, request, jsonify

from services.availability import get_availability
from services.pricing import resolve_price
from services.sports import list_sports
from utils.validation import check_date

catalog_bp = Blueprint("catalog", __name__)


@catalog_bp.get("/sports")
def sports():
    return jsonify(list_sports()), 200


@catalog_bp.get("/sports/<identifier>/price")
def sport_price(identifier: str):
    date_str = request.args.get("date")
    err = check_date(date_str)
    if err:
        return jsonify(error=err), 400
    return jsonify(sport=identifier, date=date_str, price=resolve_price(identifier, date_str)), 200


# ---------- PUBLIC: slot availability for a sport/day ----------
@catalog_bp.get("/availability")
def availability():
    sport = (request.args.get("sport") or request.args.get("sport_id") or "").strip()
    date_str = request.args.get("date")
    if not sport:
        return jsonify(error="sport is required"), 400
    err = check_date(date_str)
    if err:
        return jsonify(error=err), 400

    return jsonify(sport=sport, date=date_str, slots=get_availability(sport, date_str)), 200
