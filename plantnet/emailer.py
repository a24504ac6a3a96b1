# plantnet/emailer.py
from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Dict, Optional

from .config import settings

logger = logging.getLogger(__name__)


def build_message(to_email: str, email_data: Dict[str, str]) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = settings.mail_user
    msg["To"] = to_email
    msg["Subject"] = email_data.get("subject") or ""
    msg.set_content(f"<p>{email_data.get('message') or ''}</p>", subtype="html")
    return msg


def send_email(to_email: Optional[str], email_data: Optional[Dict[str, str]] = None) -> bool:
    """
    Best-effort delivery over authenticated SMTP (STARTTLS).
    Runs as a background task after the response went out, so it never raises:
    failures end up in the log and the return value.
    """
    if not to_email:
        logger.debug("mail skipped: no recipient")
        return False

    if not (settings.mail_user and settings.mail_pass):
        logger.info("mail skipped (MAIL_USER/MAIL_PASS not set): to=%s", to_email)
        return False

    msg = build_message(to_email, email_data or {})
    try:
        with smtplib.SMTP(settings.mail_host, settings.mail_port, timeout=30) as server:
            server.starttls()
            server.login(settings.mail_user, settings.mail_pass)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.warning("mail to %s failed: %s", to_email, e)
        return False

    logger.info("mail sent to %s: %s", to_email, msg["Subject"])
    return True
