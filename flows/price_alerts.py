# price_alerts.py
"""
Checks a user's active price alerts against live mandi prices.

Each alert that crosses its threshold is moved to 'triggered' exactly once (the
transition is a Firestore transaction) and the farmer gets at most one WhatsApp
message for it. A failed message is logged and never undoes the transition.
"""
import asyncio
import logging
from typing import Optional

from basemodel_dto.market_dto import PriceCheckOutput
from flows.market_advisor import parse_location
from store.alerts import list_alerts, mark_triggered
from store.profiles import get_or_create_profile
from tools.mandi_tool import get_mandi_prices
from tools.whatsapp_tool import send_whatsapp_message

logger = logging.getLogger(__name__)


def _rupees(amount: float) -> str:
    return f"{int(amount)}" if float(amount).is_integer() else f"{amount:.2f}"


def build_alert_message(crop: str, price: float, district: str, threshold: float) -> str:
    return (
        f"📈 Price Alert! The price for *{crop}* has reached *₹{_rupees(price)}* per quintal in the {district} region, "
        f"which is above your target of ₹{_rupees(threshold)}. "
        "Consider visiting the Market Insights page in the Krishak Mitra app for selling advice."
    )


async def check_price_alerts(user_id: str, verified_phone: Optional[str] = None) -> PriceCheckOutput:
    """verified_phone is the number from the caller's ID token; the profile phone is the fallback."""
    profile = await asyncio.to_thread(get_or_create_profile, user_id)
    district, state = parse_location(profile.location)
    recipient = verified_phone or profile.phone

    alerts = await asyncio.to_thread(list_alerts, user_id, "active")
    logger.info("Checking %d active alerts for user %s in %s, %s", len(alerts), user_id, district, state)

    triggered = []
    for alert in alerts:
        prices = await asyncio.to_thread(get_mandi_prices, state, district, alert.crop)
        highest = max((p.price for p in prices), default=0)
        if highest <= alert.priceThreshold:
            continue

        if not await asyncio.to_thread(mark_triggered, alert.id, highest):
            logger.info("Alert %s was already handled by another check", alert.id)
            continue

        triggered.append(alert.id)
        logger.info("Alert %s triggered: %s at %s (threshold %s)", alert.id, alert.crop, highest, alert.priceThreshold)

        if not recipient:
            logger.warning("No phone number for user %s, skipping notification for alert %s", user_id, alert.id)
            continue
        try:
            await asyncio.to_thread(
                send_whatsapp_message, recipient,
                build_alert_message(alert.crop, highest, district, alert.priceThreshold),
            )
        except Exception as e:
            logger.error("Notification for alert %s failed: %s", alert.id, e)

    return PriceCheckOutput(triggeredAlerts=triggered)
