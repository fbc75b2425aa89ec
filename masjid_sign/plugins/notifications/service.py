"""
Service layer: subscriptions and fire-and-forget notifications.
Notification helpers never raise; they log the failure and return False.
"""
import html
import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, select

from masjid_sign.core.db import session_scope
from masjid_sign.plugins.notifications.mailer import Mailer
from masjid_sign.plugins.notifications.models import Subscription
from masjid_sign.plugins.notifications.sms import SinchSms

logger = logging.getLogger(__name__)

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

CONTACT = "contact"
QURAN_REQUEST = "quran_request"
MEMBERSHIP = "membership"
FORM_TYPES = (CONTACT, QURAN_REQUEST, MEMBERSHIP)


def normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    if not _EMAIL.match(email):
        raise ValueError(f"Invalid email address: {email!r}")
    return email


def subscribe(email: str) -> Tuple[Subscription, bool]:
    """Add a subscriber. Returns (row, created); subscribing twice is a no-op."""
    email = normalize_email(email)
    with session_scope() as session:
        row = session.execute(select(Subscription).where(Subscription.email == email)).scalars().first()
        if row is not None:
            return row, False
        row = Subscription(email=email)
        session.add(row)
        session.flush()
        return row, True


def unsubscribe(email: str) -> bool:
    email = normalize_email(email)
    with session_scope() as session:
        result = session.execute(delete(Subscription).where(Subscription.email == email))
        return result.rowcount > 0


def get_subscriber_emails() -> List[str]:
    with session_scope() as session:
        return list(session.execute(select(Subscription.email).order_by(Subscription.id)).scalars().all())


def _format_date(value: Any) -> str:
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    if isinstance(value, date):
        return f"{value.strftime('%B')} {value.day}, {value.year}"
    return ""


def announcement_email(announcement: Dict[str, Any], mosque_name: str) -> Tuple[str, str, str]:
    """(subject, text body, html body) for an announcement."""
    title = announcement.get("title") or ""
    description = announcement.get("description") or ""
    when = _format_date(announcement.get("announcement_date"))
    image_url = announcement.get("image_url")

    subject = f"New Announcement from {mosque_name}: {title}"
    text = "\n\n".join(part for part in (
        title,
        f"Date: {when}" if when else "",
        description,
        "For more details, please visit our website's announcements page.",
        f"You are receiving this email because you subscribed to announcements from the {mosque_name}.",
    ) if part)
    image = f'<p><img src="{html.escape(image_url)}" alt="{html.escape(title)}" style="max-width:100%"/></p>' if image_url else ""
    body = (
        f"<html><body><h2>{html.escape(title)}</h2>"
        f"<p><em>Date: {html.escape(when)}</em></p>{image}"
        f"<p>{html.escape(description)}</p>"
        "<p>For more details, please visit our website's announcements page.</p>"
        f"<p><small>You are receiving this email because you subscribed to announcements "
        f"from the {html.escape(mosque_name)}.</small></p></body></html>"
    )
    return subject, text, body


def notify_announcement(announcement: Dict[str, Any], config_data: Optional[Dict[str, Any]] = None) -> bool:
    """Email an announcement to every subscriber. True when sent or nobody is subscribed."""
    config_data = config_data or {}
    mosque_name = (config_data.get("sign") or {}).get("mosque_name") or "Islamic Society"
    try:
        recipients = get_subscriber_emails()
        if not recipients:
            logger.info("No subscribers to send announcement email to")
            return True
        subject, text, body = announcement_email(announcement, mosque_name)
        Mailer(config_data.get("notifications") or {}).send_email(recipients, subject, text, body)
        return True
    except Exception as e:
        logger.error(f"Announcement email failed: {e}", exc_info=True)
        return False


def form_email(form_type: str, data: Dict[str, Any]) -> Tuple[str, str]:
    """(subject, body) for a public form submission. Raises ValueError for unknown forms."""
    def field(name: str) -> str:
        return str(data.get(name) or "").strip()

    if form_type == CONTACT:
        subject = f"New Contact Form Submission: {field('subject')}"
        lines = [f"Name: {field('name')}", f"Email: {field('email')}",
                 f"Subject: {field('subject')}", f"Message: {field('message')}"]
    elif form_type == QURAN_REQUEST:
        subject = "New Quran Request"
        address = f"{field('address')}, {field('city')}, {field('state')} {field('zip')}"
        lines = [f"Name: {field('name')}", f"Email: {field('email')}", f"Address: {address}"]
    elif form_type == MEMBERSHIP:
        subject = f"New Membership Application: {field('name')}"
        lines = [f"Name: {field('name')}", f"Email: {field('email')}", f"Phone: {field('phone')}",
                 f"Address: {field('address')}", f"Message: {field('message')}"]
    else:
        raise ValueError(f"Invalid form type: {form_type}")
    return subject, "\n".join(lines)


def send_form(form_type: str, data: Dict[str, Any], config_data: Optional[Dict[str, Any]] = None) -> bool:
    """Email a form submission to the configured recipient and text the on-call number if enabled."""
    subject, body = form_email(form_type, data)
    notifications = (config_data or {}).get("notifications") or {}
    sent = True
    try:
        recipient = notifications.get("recipient")
        if not recipient:
            raise RuntimeError("notifications.recipient is not set")
        Mailer(notifications).send_email([recipient], subject, body, reply_to=data.get("email") or None)
    except Exception as e:
        logger.error(f"{form_type} email failed: {e}", exc_info=True)
        sent = False

    sms = SinchSms(notifications.get("sms") or {})
    if sms.configured and sms.to_number:
        try:
            sms.send(sms.to_number, subject)
        except Exception as e:
            logger.error(f"{form_type} SMS failed: {e}")
    return sent
