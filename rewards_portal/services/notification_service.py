import logging

logger = logging.getLogger(__name__)


def build_welcome_message(location_name: str | None, signup_gift_name: str | None, link: str) -> str:
    restaurant = location_name or "our restaurant"
    if signup_gift_name:
        return f"Thanks for enrolling in {restaurant}! You've earned a free {signup_gift_name}. Redeem here: {link}"
    return f"Thanks for enrolling in {restaurant}! View your rewards here: {link}"


def send_welcome_message(phone_e164: str, message: str) -> None:
    # SMS delivery is handled outside this service; the outbound text is logged.
    logger.info("outbound sms", extra={"to": phone_e164, "body": message})
