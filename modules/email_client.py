"""Outbound email via the Resend HTTP API."""
import logging
from typing import List, Optional

import requests

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


def send_email(
    api_key: str,
    from_email: str,
    to: List[str],
    subject: str,
    html_body: str,
    text_body: Optional[str] = None,
    cc: Optional[List[str]] = None,
    session: Optional[requests.Session] = None,
) -> bool:
    """Send one email. Returns True when the provider accepted it.

    Failures are logged and never raised: the watchdog runs again on its
    schedule and will report whatever is still failing then.
    """
    if not api_key:
        logger.warning("RESEND_API_KEY not set; skipping email send.")
        return False
    if not to:
        logger.warning("No recipients configured (ALERT_EMAIL); skipping email send.")
        return False

    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    data = {
        "from": from_email,
        "to": list(to),
        "subject": subject,
        "html": html_body,
    }
    if text_body:
        data["text"] = text_body
    if cc:
        data["cc"] = list(cc)

    logger.info(f"Sending '{subject}' to {', '.join(to)}...")
    poster = session or requests
    try:
        resp = poster.post(RESEND_URL, json=data, headers=headers, timeout=10)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Failed to send email: {e}")
        if getattr(e, "response", None) is not None:
            logger.error(e.response.text)
        return False

    logger.info(f"Email service response: {resp.status_code} - {resp.reason}")
    return True
