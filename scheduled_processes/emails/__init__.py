"""
Email-related scheduled jobs.

This package is intended to hold small, single-purpose scripts that are
invoked via cron, for example:
  - alerts/batch_jobs_watchdog.py

Each module should define a `main()` entrypoint and be runnable as a
standalone script.
"""
