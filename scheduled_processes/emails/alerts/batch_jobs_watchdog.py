#!/usr/bin/env python3
"""
Alert email: failed batch jobs report.

Fetches the batch job preferences from the application's REST service,
checks each job against its staleness window and sends ONE email listing:
  - jobs that are overdue (last run + frequency + 2 x approx run time < now)
  - jobs that are turned on but never ran
  - jobs that are turned off (as a reminder)
  - or a single "no data" line when the REST call returned nothing

No email is sent when every job is healthy. Nothing is persisted; a failed
send is simply retried by the next scheduled run.

Environment (see config/settings.py):
  - REST_BASE, REST_USER, REST_PASSWORD
  - RESEND_API_KEY   (required to send email)
  - ALERT_EMAIL      (comma-separated recipients), ALERT_CC_EMAIL (optional)
  - SENDER_EMAIL, SENDER_NAME, ALERT_SUBJECT (optional)
"""

import html
import logging
import os
import sys
from datetime import datetime
from typing import Callable, List, Optional

import requests

# Make repo modules importable
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
if REPO_ROOT not in sys.path:
    sys.path.append(REPO_ROOT)

from config.settings import WatchdogSettings, load_settings  # noqa: E402
from modules.batch_jobs_client import BatchJobsClient  # noqa: E402
from modules.email_client import send_email  # noqa: E402
from modules.staleness import FailureReason, collect_failures  # noqa: E402

logger = logging.getLogger(__name__)

REPORT_HEADER = "Failed batch jobs report:"
REPORT_FOOTER = "Please ensure to take necessary steps."


def format_email_text(failures: List[FailureReason]) -> str:
    lines: List[str] = [REPORT_HEADER, ""]
    lines.extend(f.render() for f in failures)
    lines.append("")
    lines.append(REPORT_FOOTER)
    return "\n".join(lines)


def format_email_html(failures: List[FailureReason]) -> str:
    rows = "".join(f"<br>{html.escape(f.render())}" for f in failures)
    return f"{REPORT_HEADER}<br>{rows}<br><br>{REPORT_FOOTER}"


def report_failures(
    failures: List[FailureReason],
    settings: WatchdogSettings,
    sender: Callable[..., bool] = send_email,
    session: Optional[requests.Session] = None,
) -> bool:
    """Send at most one email for this run. Returns True if one was accepted."""
    if not failures:
        logger.info("All batch jobs are healthy; no email sent.")
        return False

    text_body = format_email_text(failures)
    html_body = format_email_html(failures)

    logger.info("----- EMAIL BODY BEGIN -----")
    logger.info(text_body)
    logger.info("----- EMAIL BODY END -----")

    return sender(
        api_key=settings.resend_api_key,
        from_email=settings.from_email,
        to=settings.to_emails,
        subject=settings.subject,
        html_body=html_body,
        text_body=text_body,
        cc=settings.cc_emails,
        session=session,
    )


def run(
    settings: WatchdogSettings,
    session: Optional[requests.Session] = None,
    now: Optional[datetime] = None,
    sender: Callable[..., bool] = send_email,
) -> List[FailureReason]:
    """One watchdog invocation: fetch, evaluate, report."""
    owns_session = session is None
    session = session or requests.Session()
    try:
        client = BatchJobsClient(
            settings.rest_base, settings.rest_user, settings.rest_password, session=session
        )
        records = client.get_batch_jobs()
        logger.info(f"Fetched {len(records)} batch job preferences.")

        failures = collect_failures(records, now=now)
        for failure in failures:
            logger.warning(failure.render())

        report_failures(failures, settings, sender=sender, session=session)
        return failures
    finally:
        if owns_session:
            session.close()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    logger.info(f"[batch_jobs_watchdog] Starting at {datetime.now():%Y-%m-%d %H:%M:%S}...")
    settings = load_settings()
    failures = run(settings)
    logger.info(f"[batch_jobs_watchdog] Done. {len(failures)} failure(s) reported.")


if __name__ == "__main__":
    main()
