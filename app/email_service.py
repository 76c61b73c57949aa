# app/email_service.py
from __future__ import annotations

import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

Recipients = Optional[Union[str, Iterable[str]]]

# ===== SMTP settings (STARTTLS, e.g. port 587) =====
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
SMTP_TIMEOUT = float(os.getenv("SMTP_TIMEOUT", "20"))
FROM_EMAIL = os.getenv("FROM_EMAIL") or SMTP_USER
FROM_NAME = os.getenv("FROM_NAME", "Prokvartiru Notifications")


def is_configured() -> bool:
    return bool(SMTP_USER and SMTP_PASSWORD)


def _addresses(value: Recipients) -> List[str]:
    if not value:
        return []
    items = [value] if isinstance(value, str) else list(value)
    return [a.strip() for a in items if a and a.strip()]


def _build_message(recipients: List[str], subject: str, html_body: str, text_body: Optional[str],
                   cc: List[str], reply_to: Optional[str]) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{FROM_NAME} <{FROM_EMAIL}>"
    msg["To"] = ", ".join(recipients)
    if cc:
        msg["Cc"] = ", ".join(cc)
    if reply_to:
        msg["Reply-To"] = reply_to
    # plain first, html last: clients show the last part they understand
    msg.attach(MIMEText(text_body or "", "plain", "utf-8"))
    msg.attach(MIMEText(html_body or "", "html", "utf-8"))
    return msg


def send_email(
    to: Recipients,
    subject: str,
    html_body: str,
    text_body: Optional[str] = None,
    cc: Recipients = None,
    bcc: Recipients = None,
    reply_to: Optional[str] = None,
) -> bool:
    """Send one multipart message. Transport problems are logged and reported as False."""
    if not is_configured():
        logger.warning("[WARN] SMTP credentials missing, email to %s not sent", to)
        return False

    recipients = _addresses(to)
    if not recipients:
        logger.warning("[WARN] email %r has no recipient", subject)
        return False

    cc_list = _addresses(cc)
    envelope = recipients + cc_list + _addresses(bcc)
    msg = _build_message(recipients, subject, html_body, text_body, cc_list, reply_to)

    try:
        with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=SMTP_TIMEOUT) as server:
            server.starttls()
            server.login(SMTP_USER, SMTP_PASSWORD)
            server.sendmail(FROM_EMAIL, envelope, msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error("SMTP error sending %r to %s: %s", subject, recipients, e)
        return False

    logger.info("email %r sent to %s", subject, recipients)
    return True
