import asyncio
import smtplib
import ssl
from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from html import escape
from typing import Optional

from skyiq.config import settings
from skyiq.logging_config import get_logger
from skyiq.utils.helper import format_duration

logger = get_logger(__name__)


def _call_date(timestamp: str) -> str:
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return timestamp or ""
    return parsed.strftime("%A, %B %d, %Y")


def build_call_notification(call: dict, to_email: str) -> EmailMessage:
    caller = call.get("caller_number") or "Unknown"
    date = _call_date(call.get("timestamp"))
    duration = format_duration(call.get("duration"))

    msg = EmailMessage()
    msg["Message-ID"] = make_msgid()
    msg["From"] = formataddr((settings.EMAIL_FROM_NAME, settings.EMAIL_FROM))
    msg["To"] = formataddr((settings.EMAIL_TO_NAME, to_email))
    msg["Subject"] = f"Inbound Call - {caller} - SkyIQ"

    msg.set_content(
        f"New inbound call\n\n"
        f"Phone: {caller}\n"
        f"Date: {date}\n"
        f"Duration: {duration}\n\n"
        f"View dashboard: {settings.DASHBOARD_URL}\n"
    )
    msg.add_alternative(f"""
        <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
            <h1>New Inbound Call</h1>
            <table>
                <tr><td><b>Phone:</b></td><td>{escape(caller)}</td></tr>
                <tr><td><b>Date:</b></td><td>{escape(date)}</td></tr>
                <tr><td><b>Duration:</b></td><td>{escape(duration)}</td></tr>
            </table>
            <p><a href="{escape(settings.DASHBOARD_URL)}">View Dashboard</a></p>
        </div>
    """, subtype="html")
    return msg


def _smtp_send(msg: EmailMessage) -> None:
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        smtp.ehlo()
        if settings.SMTP_USE_TLS:
            smtp.starttls(context=ssl.create_default_context())
            smtp.ehlo()
        if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


async def send_call_notification(call: dict, to_email: Optional[str] = None) -> bool:
    """Email an inbound call summary. Returns False when nothing was sent."""
    if not settings.email_configured or call.get("call_type") == "outbound":
        return False

    try:
        msg = build_call_notification(call, to_email or settings.EMAIL_TO)
        await asyncio.to_thread(_smtp_send, msg)
    except Exception as e:
        logger.error("call_notification_failed", call_id=call.get("id"), error=str(e))
        return False

    logger.info("call_notification_sent", call_id=call.get("id"))
    return True
