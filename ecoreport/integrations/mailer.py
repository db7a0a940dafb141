from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from starlette.concurrency import run_in_threadpool

from ecoreport.core.settings import settings

logger = logging.getLogger(__name__)


def _send(recipient: str, subject: str, body: str) -> None:
    msg = EmailMessage()
    msg["From"] = settings.SMTP_USER
    msg["To"] = recipient
    msg["Subject"] = subject
    msg.set_content(body)
    with smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.HTTP_TIMEOUT) as smtp:
        smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


async def send_email(recipient: str, subject: str, body: str) -> bool:
    """Fire-and-forget: failures are logged and reported as ``False``."""
    if not (settings.SMTP_USER and recipient):
        logger.warning("mail not configured, dropping %r", subject)
        return False
    try:
        await run_in_threadpool(_send, recipient, subject, body)
    except (smtplib.SMTPException, OSError):
        logger.exception("sending %r to %s failed", subject, recipient)
        return False
    logger.info("sent %r to %s", subject, recipient)
    return True


async def send_visit_alert(url: str, timestamp: str) -> bool:
    recipient = settings.ALERT_EMAIL or settings.SMTP_USER
    return await send_email(recipient, "New Website Visitor", f"A user just visited your site: {url} at {timestamp}")
