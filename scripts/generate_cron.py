#!/usr/bin/env python3
"""
generate_cron.py
----------------

Prints the recommended crontab entry for the batch jobs watchdog.
The schedule comes from CRON_BATCH_JOBS_WATCHER (env or
config/local_secrets.json), defaulting to every 30 minutes.
"""

import os
import sys
from typing import List

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.append(REPO_ROOT)

from config.settings import DEFAULT_CRON, get_secret  # noqa: E402

WATCHDOG_SCRIPT = "scheduled_processes/emails/alerts/batch_jobs_watchdog.py"


def build_cron_lines(repo_root: str, cron: str, python: str = "/usr/bin/python3") -> List[str]:
    if len(cron.split()) != 5:
        raise ValueError(f"Expected a 5-field cron expression, got {cron!r}")
    return [
        "# Batch jobs watchdog scheduled processes",
        "# Add these lines to your crontab (crontab -e)",
        f"# REPO_ROOT = {repo_root}",
        "",
        "# Failed batch jobs report (sends mail only when something is wrong)",
        f"{cron} cd {repo_root} && {python} {WATCHDOG_SCRIPT} >> logs/batch_jobs_watchdog.log 2>&1",
        "",
        "# Note: Ensure the log directory exists:",
        f"#   mkdir -p {os.path.join(repo_root, 'logs')}",
    ]


def main() -> None:
    cron = get_secret("CRON_BATCH_JOBS_WATCHER", DEFAULT_CRON)
    for line in build_cron_lines(REPO_ROOT, cron):
        print(line)


if __name__ == "__main__":
    main()
