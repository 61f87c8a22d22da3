"""WhatsApp booking notifications. Best effort: failures are reported, never raised."""
import logging
import re

import requests
from flask import current_app

logger = logging.getLogger(__name__)

EVENT_TITLES = {
    "created": "Booking Received",
    "confirmed": "Booking Confirmed",
    "cancelled": "Booking Cancelled",
    "rescheduled": "Booking Rescheduled",
    "payment_received": "Payment Received",
}


def normalize_phone(value: str, default_country_code: str = "92") -> str:
    country = re.sub(r"\D", "", default_country_code or "")
    raw = re.sub(r"[^\d+]", "", value or "")
    if not raw:
        return ""
    if raw.startswith("+"):
        return "+" + re.sub(r"\D", "", raw[1:])
    if raw.startswith("00"):
        return "+" + raw[2:]
    if raw.startswith("0"):
        return f"+{country}{raw[1:]}"
    if len(raw) <= 10:
        return f"+{country}{raw}"
    return f"+{raw}"


def build_message(booking, event: str) -> str:
    lines = [f"*{EVENT_TITLES.get(event, 'Booking Update')}*", f"Name: {booking.customer_name}"]
    if booking.sport is not None:
        lines.append(f"Sport: {booking.sport.name}")
    lines.append(f"Date: {booking.date}")
    if booking.end_time:
        lines.append(f"Time: {booking.start_time} - {booking.end_time}")
    else:
        lines.append(f"Time: {booking.start_time}")
    if booking.amount is not None:
        lines.append(f"Amount: Rs {booking.amount:g}")
    if booking.status:
        lines.append(f"Status: {booking.status}")
    return "\n".join(lines)


def notify_booking(booking, event: str):
    """
    Returns (sent, reason). Call after the booking mutation has committed.
    """
    token = current_app.config.get("WHATSAPP_TOKEN")
    phone_number_id = current_app.config.get("WHATSAPP_PHONE_NUMBER_ID")
    if not token or not phone_number_id:
        return False, "WhatsApp not configured"

    to = normalize_phone(booking.customer_phone, current_app.config.get("WHATSAPP_DEFAULT_COUNTRY_CODE", "92"))
    if not to:
        return False, "Invalid phone number"

    api_version = current_app.config.get("WHATSAPP_API_VERSION", "v20.0")
    url = f"https://graph.facebook.com/{api_version}/{phone_number_id}/messages"
    payload = {
        "messaging_product": "whatsapp",
        "to": to.lstrip("+"),
        "type": "text",
        "text": {"body": build_message(booking, event)},
    }
    try:
        resp = requests.post(
            url,
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
            timeout=current_app.config.get("WHATSAPP_TIMEOUT_SECONDS", 10),
        )
    except requests.RequestException as exc:
        return False, str(exc)

    if resp.status_code >= 400:
        return False, f"WhatsApp API returned {resp.status_code}"
    return True, None


def notify_quietly(booking, event: str) -> bool:
    try:
        sent, reason = notify_booking(booking, event)
    except Exception:
        # Notification must never affect a committed booking.
        logger.exception("Notification for booking %s (%s) crashed", getattr(booking, "id", None), event)
        return False
    if not sent:
        logger.warning("Notification for booking %s (%s) not sent: %s", booking.id, event, reason)
    return sent
