# app/notifications.py
"""
Outgoing email for review activity and account verification.

Every function here is a side effect of some primary operation, so nothing raises:
failures are logged and reported as False.
"""
from __future__ import annotations

import logging
import os
from html import escape

from .email_service import send_email
from .models import Review, User

logger = logging.getLogger(__name__)

FRONTEND_URL = (os.getenv("FRONTEND_URL") or os.getenv("SITE_URL") or "http://localhost:3000").rstrip("/")
TEAM_SIGNATURE = os.getenv("TEAM_SIGNATURE", "Prokvartiru.kz Team")
PREVIEW_CHARS = 100

_REVIEW_LABELS = {
    "property": "property review",
    "residentialComplex": "residential complex review",
    "landlord": "landlord review",
    "tenant": "tenant review",
}


def _preview(text: str) -> str:
    text = text or ""
    return text[:PREVIEW_CHARS] + "..." if len(text) > PREVIEW_CHARS else text


def review_link(review: Review) -> str:
    section = "tenant" if review.kind == "tenant" else "property"
    return f"{FRONTEND_URL}/{section}/{review.id}"


def should_notify_author(review: Review, commenter: User) -> bool:
    author = review.author
    if not author or not author.email:
        return False
    if author.id == commenter.id:
        return False
    return author.email_notifications is not False


def notify_review_author_of_comment(review: Review, commenter: User, comment_text: str) -> bool:
    """Tell the review's author about a new comment, unless they wrote it or opted out."""
    if not should_notify_author(review, commenter):
        return False

    author = review.author
    label = _REVIEW_LABELS.get(review.kind, "review")
    link = review_link(review)
    commenter_name = commenter.full_name
    preview = _preview(comment_text)

    subject = f"New comment on your {label} from {commenter_name}"
    text = (
        f"Hi {author.first_name},\n\n"
        f"{commenter_name} commented on your {label}:\n\n"
        f"\"{preview}\"\n\n"
        f"View the full comment and reply here: {link}\n\n"
        f"Best regards,\n{TEAM_SIGNATURE}"
    )
    html = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #333;">New comment on your {escape(label)}</h2>
        <p>Hi {escape(author.first_name)},</p>
        <p><strong>{escape(commenter_name)}</strong> commented on your {escape(label)}:</p>
        <div style="background-color: #f5f5f5; padding: 15px; border-left: 4px solid #007bff; margin: 20px 0;">
          <p style="margin: 0; font-style: italic;">"{escape(preview)}"</p>
        </div>
        <p><a href="{link}" style="background-color: #007bff; color: white; padding: 10px 20px; text-decoration: none; border-radius: 5px;">View comment &amp; reply</a></p>
        <p style="color: #666; font-size: 14px;">Best regards,<br>{escape(TEAM_SIGNATURE)}</p>
      </div>
    """

    try:
        logger.info("Sending comment notification to %s for review %s", author.email, review.id)
        ok = send_email(author.email, subject, html, text_body=text)
    except Exception:
        logger.exception("Failed to send comment notification for review %s", review.id)
        return False
    if not ok:
        logger.warning("[WARN] comment notification for review %s was not delivered", review.id)
    return ok


def send_verification_code(user: User, code: str, minutes: int) -> bool:
    subject = "Your verification code"
    text = (
        f"Hello {user.first_name}\n\n"
        f"Your email verification code is: {code}\n"
        f"It expires in {minutes} minutes.\n\n"
        f"If this wasn't you, please ignore this message."
    )
    html = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #333;">Hello {escape(user.first_name)}</h2>
        <p>Your email verification code is:</p>
        <p style="font-size: 28px; font-weight: 800; letter-spacing: 6px;">{code}</p>
        <p style="color: #666; font-size: 14px;">The code expires in {minutes} minutes.</p>
      </div>
    """
    try:
        return send_email(user.email, subject, html, text_body=text)
    except Exception:
        logger.exception("Failed to send verification code to %s", user.email)
        return False
