"""
SMTP email channel.

smtplib is blocking, so sends run in a worker thread. The channel is
disabled when SMTP_HOST is not configured, and guarded by a circuit
breaker so a dead mail server does not stall every job pass.
"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from ambureview.app.core.config import settings
from ambureview.app.core.reliability import email_circuit_breaker, CircuitOpenError

logger = logging.getLogger(__name__)


def is_email_enabled() -> bool:
    return bool(settings.smtp_host)


def _send_email_sync(to_email: str, subject: str, html_body: str, text_body: Optional[str] = None) -> None:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.smtp_from
    msg["To"] = to_email

    if text_body:
        msg.attach(MIMEText(text_body, "plain"))
    msg.attach(MIMEText(html_body, "html"))

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
        if settings.smtp_use_tls:
            server.starttls()
        if settings.smtp_user:
            server.login(settings.smtp_user, settings.smtp_password or "")
        server.sendmail(settings.smtp_from, [to_email], msg.as_string())


async def _send_in_thread(to_email: str, subject: str, html_body: str, text_body: Optional[str]):
    await asyncio.to_thread(_send_email_sync, to_email, subject, html_body, text_body)


async def send_email(to_email: str, subject: str, html_body: str, text_body: Optional[str] = None) -> bool:
    """
    Send one email.

    Returns True if sent, False if the channel is disabled, the circuit is
    open or the send failed. Never raises.
    """
    if not is_email_enabled():
        logger.debug("SMTP not configured, skipping email to %s", to_email)
        return False

    try:
        await email_circuit_breaker.call(_send_in_thread, to_email, subject, html_body, text_body)
    except CircuitOpenError:
        logger.warning("Email circuit open, dropping email to %s: %s", to_email, subject)
        return False
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Email sending to %s failed: %s", to_email, e)
        return False

    logger.info("Email sent to %s: %s", to_email, subject)
    return True
