"""
Alert emails.

Jobs here run frequently and only send mail when something needs attention:
  - batch_jobs_watchdog.py
      • overdue, never-run and turned-off batch jobs of the application
"""
