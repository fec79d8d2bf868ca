"""Central configuration for the batch jobs watchdog.
Override via environment variables where possible, and fall back to a local
JSON secrets file that is never committed to git.
"""
import os
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


class SettingsError(RuntimeError):
    """Raised when a required setting is missing."""


def _load_local_secrets(path: Optional[Path] = None) -> dict:
    """Load optional local secrets from config/local_secrets.json (untracked).

    Shape is a simple key/value mapping, using the same keys as
    environment variables, e.g.:

        {
          "REST_PASSWORD": "…",
          "RESEND_API_KEY": "…"
        }
    """
    path = path or Path(__file__).with_name("local_secrets.json")
    if not path.exists():
        return {}
    try:
        with path.open("r") as f:
            data = json.load(f)
    except (OSError, ValueError):
        # Fail closed: if the file is malformed, ignore it rather than crash
        return {}
    return data if isinstance(data, dict) else {}


def get_secret(name: str, default: str = "", secrets: Optional[dict] = None) -> str:
    """Return a setting from env or local_secrets.json.

    Priority:
      1. Environment variable `name`
      2. Entry in config/local_secrets.json using the same key
      3. Provided default
    """
    if name in os.environ:
        return os.environ[name]
    if secrets is None:
        secrets = _load_local_secrets()
    return str(secrets.get(name, default))


def _split_addresses(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


DEFAULT_SUBJECT = "CMS@Work - failed batch jobs report"
DEFAULT_SENDER_EMAIL = "alerts@resend.dev"
DEFAULT_SENDER_NAME = "Batch Jobs Watchdog"
DEFAULT_CRON = "*/30 * * * *"


@dataclass(frozen=True)
class WatchdogSettings:
    rest_base: str
    rest_user: str = ""
    rest_password: str = ""
    resend_api_key: str = ""
    sender_email: str = DEFAULT_SENDER_EMAIL
    sender_name: str = DEFAULT_SENDER_NAME
    to_emails: List[str] = field(default_factory=list)
    cc_emails: List[str] = field(default_factory=list)
    subject: str = DEFAULT_SUBJECT
    cron: str = DEFAULT_CRON

    @property
    def from_email(self) -> str:
        """Sender in 'Name <address>' form."""
        if self.sender_name:
            return f"{self.sender_name} <{self.sender_email}>"
        return self.sender_email


def load_settings(secrets_path: Optional[Path] = None) -> WatchdogSettings:
    """Build WatchdogSettings once at process start."""
    secrets = _load_local_secrets(secrets_path)

    def _get(name: str, default: str = "") -> str:
        return get_secret(name, default, secrets=secrets)

    rest_base = _get("REST_BASE").strip().rstrip("/")
    if not rest_base:
        raise SettingsError("REST_BASE is not set (env or config/local_secrets.json)")

    return WatchdogSettings(
        rest_base=rest_base,
        rest_user=_get("REST_USER"),
        rest_password=_get("REST_PASSWORD"),
        resend_api_key=_get("RESEND_API_KEY"),
        sender_email=_get("SENDER_EMAIL", DEFAULT_SENDER_EMAIL),
        sender_name=_get("SENDER_NAME", DEFAULT_SENDER_NAME),
        to_emails=_split_addresses(_get("ALERT_EMAIL")),
        cc_emails=_split_addresses(_get("ALERT_CC_EMAIL")),
        subject=_get("ALERT_SUBJECT", DEFAULT_SUBJECT),
        cron=_get("CRON_BATCH_JOBS_WATCHER", DEFAULT_CRON),
    )
