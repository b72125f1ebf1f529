# notifications.py
import logging
import os

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

logger = logging.getLogger(__name__)

SENDGRID_API_KEY = os.environ.get("SENDGRID_API_KEY", "")
FROM_EMAIL = os.environ.get("FROM_EMAIL", "orders@crate-factory.jp")


def send_email(to_email: str, subject: str, html: str) -> bool:
    # Allow running without email configured
    if not SENDGRID_API_KEY:
        logger.info("SENDGRID_API_KEY not set; skipping email to %s", to_email)
        return False

    msg = Mail(
        from_email=FROM_EMAIL,
        to_emails=to_email,
        subject=subject,
        html_content=html,
    )
    try:
        SendGridAPIClient(SENDGRID_API_KEY).send(msg)
    except Exception:
        # runs as a background task after checkout; the order is already saved
        logger.exception("email to %s failed", to_email)
        return False
    return True


def send_order_received(to_email: str, order_number: str, total_amount: int, item_count: int) -> bool:
    return send_email(
        to_email=to_email,
        subject=f"Crate order {order_number} received",
        html=f"""
        <p>Thank you, we received your order.</p>
        <p><b>Order #:</b> {order_number}</p>
        <p><b>Items:</b> {item_count}</p>
        <p><b>Total (tax incl.):</b> ¥{total_amount:,}</p>
        <p>We will confirm the order before manufacturing starts.</p>
        """,
    )
