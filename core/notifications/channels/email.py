"""SendGrid email delivery channel."""

import html
import logging
import os

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

logger = logging.getLogger(__name__)

SENDGRID_API_KEY = os.environ.get("SENDGRID_API_KEY")
FROM_EMAIL = os.environ.get("FROM_EMAIL", "exams@example.org")
FROM_NAME = os.environ.get("FROM_NAME", "Exam Notifications")

_client: SendGridAPIClient | None = None


def render_html(subject: str, body: str) -> str:
    """
    Wrap a plain-text body in a minimal HTML document.

    Blank lines separate paragraphs; text is escaped.
    """
    paragraphs = [p.strip() for p in body.split("\n\n") if p.strip()]
    content = "\n".join(
        f"<p>{html.escape(p).replace(chr(10), '<br>')}</p>" for p in paragraphs
    )
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{html.escape(subject)}</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.5; color: #333;">
{content}
</body>
</html>"""


def _get_sendgrid_client() -> SendGridAPIClient | None:
    """Get or create SendGrid client singleton."""
    global _client
    if _client is None and SENDGRID_API_KEY:
        _client = SendGridAPIClient(SENDGRID_API_KEY)
    return _client


def send_email(to_email: str, subject: str, body: str) -> bool:
    """
    Send an email via SendGrid, as plain text plus an HTML part.

    Returns:
        True if SendGrid accepted the message, False otherwise
    """
    client = _get_sendgrid_client()
    if not client:
        logger.warning("SendGrid not configured (SENDGRID_API_KEY not set)")
        return False

    try:
        mail = Mail(
            from_email=(FROM_EMAIL, FROM_NAME),
            to_emails=to_email,
            subject=subject,
            plain_text_content=body,
            html_content=render_html(subject, body),
        )
        response = client.send(mail)
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False

    if response.status_code not in (200, 201, 202):
        logger.error(f"SendGrid rejected email to {to_email}: {response.status_code}")
        return False
    return True
