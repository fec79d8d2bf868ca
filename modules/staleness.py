"""Staleness policy for batch job preferences.

Each preference record describes a recurring batch job: whether it is on,
when it last finished, how often it should run and roughly how long a run
takes. A job is reported when it is:

  - turned off (reported as a reminder until an administrator stops
    tracking it),
  - turned on but has never run,
  - overdue: last run + (frequency + 2 * approx run time) is in the past.

The 2x run time slack exists because the last run date is written when a run
finishes and jobs skip on overlap, so a job still executing must not be
reported as late.
"""
import enum
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional

logger = logging.getLogger(__name__)

# Minimum date value the preferences service sends for "never run".
NEVER_RUN_PREFIX = "0001-01-01"

# Minutes fields are 32-bit ints on the service side.
MAX_MINUTES = 2**31 - 1

ISO_TIMESTAMP = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"(?:[T ](?P<hour>\d{2}):(?P<minute>\d{2})(?::(?P<second>\d{2})(?:\.(?P<fraction>\d+))?)?)?"
    r"(?P<tz>Z|[+-]\d{2}:?\d{2})?$"
)


class JobRecordError(ValueError):
    """A preference record could not be parsed."""


class FailureKind(enum.Enum):
    DISABLED = "disabled"
    NEVER_RUN = "never_run"
    OVERDUE = "overdue"
    NO_DATA = "no_data"


DISABLED_EXPLANATION = (
    "AdminPreference is turned off, it will be included in this report as a reminder. "
    "If you wish to exclude it an application administrator needs to mark it as not a batch job;"
)
NEVER_RUN_EXPLANATION = (
    "has not run at least once yet but it is marked to be included in this report, "
    "it should be excluded by application administrator until it is confirmed to be working properly;"
)
OVERDUE_EXPLANATION = "has been running longer than expected or didn't run at all;"
NO_DATA_EXPLANATION = (
    "REST call did not return any data. If there are no batch jobs set in the application "
    "this reporting function should be turned off. If there are batch jobs set in the "
    "application that means there is something wrong with the REST connection."
)


@dataclass(frozen=True)
class JobRecord:
    title: str
    enabled: bool
    last_run_at: Optional[datetime]  # None means never run
    interval_minutes: int
    approx_duration_minutes: int


@dataclass(frozen=True)
class FailureReason:
    title: str
    kind: FailureKind
    explanation: str

    def render(self) -> str:
        """Single report line for this failure."""
        if self.kind is FailureKind.NO_DATA:
            return self.explanation
        return f"{self.title} - {self.explanation}"


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    offset = value.utcoffset()
    naive = value.replace(tzinfo=None)
    try:
        return naive - offset
    except OverflowError:
        # Offset pushed the value past year 1 or 9999
        return datetime.max if offset < timedelta(0) else datetime.min


def _coerce_time(raw: Any) -> Optional[datetime]:
    """Parse a LastRunDate value into naive UTC, None for the never-run sentinel."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return _to_naive_utc(raw)
    if not isinstance(raw, str):
        raise JobRecordError(f"Unsupported LastRunDate value: {raw!r}")

    raw = raw.strip()
    if not raw or raw.startswith(NEVER_RUN_PREFIX):
        return None

    match = ISO_TIMESTAMP.match(raw)
    if match is None:
        raise JobRecordError(f"LastRunDate is not an ISO-8601 timestamp: {raw!r}")
    parts = match.groupdict()

    # .NET sends up to 7 fraction digits; keep microseconds
    fraction = (parts["fraction"] or "")[:6].ljust(6, "0")
    tz = None
    try:
        if parts["tz"] == "Z":
            tz = timezone.utc
        elif parts["tz"]:
            sign = -1 if parts["tz"][0] == "-" else 1
            digits = parts["tz"][1:].replace(":", "")
            tz = timezone(sign * timedelta(hours=int(digits[:2]), minutes=int(digits[2:])))
        value = datetime(
            int(parts["year"]), int(parts["month"]), int(parts["day"]),
            int(parts["hour"] or 0), int(parts["minute"] or 0), int(parts["second"] or 0),
            int(fraction), tzinfo=tz,
        )
    except ValueError as e:
        raise JobRecordError(f"Unparseable LastRunDate: {raw!r}") from e
    return _to_naive_utc(value)


def _as_minutes(raw: Any, key: str) -> int:
    error = JobRecordError(f"{key} must be an integer number of minutes, got {raw!r}")
    if isinstance(raw, bool) or raw is None:
        raise error
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        if not raw.is_integer():
            raise error
        value = int(raw)
    elif isinstance(raw, str):
        try:
            value = int(raw.strip())
        except ValueError as e:
            raise error from e
    else:
        raise error
    if not 0 <= value <= MAX_MINUTES:
        raise JobRecordError(f"{key} must be between 0 and {MAX_MINUTES}, got {raw!r}")
    return value


def parse_job_record(raw: Any) -> JobRecord:
    """Build a JobRecord from one JSON object of the preferences service."""
    if not isinstance(raw, dict):
        raise JobRecordError(f"Expected an object, got {type(raw).__name__}")

    title = raw.get("PreferenceTitle")
    if not isinstance(title, str) or not title.strip():
        raise JobRecordError(f"Missing PreferenceTitle in {raw!r}")

    enabled = raw.get("IsOn")
    if not isinstance(enabled, bool):
        raise JobRecordError(f"IsOn must be a boolean for {title!r}, got {enabled!r}")

    return JobRecord(
        title=title.strip(),
        enabled=enabled,
        last_run_at=_coerce_time(raw.get("LastRunDate")),
        interval_minutes=_as_minutes(raw.get("BatchRunFrequency"), "BatchRunFrequency"),
        approx_duration_minutes=_as_minutes(raw.get("AproxBatchRunTime"), "AproxBatchRunTime"),
    )


def parse_job_records(payload: Any) -> List[JobRecord]:
    if not isinstance(payload, list):
        raise JobRecordError(f"Expected a JSON array, got {type(payload).__name__}")
    return [parse_job_record(item) for item in payload]


def allowed_window(record: JobRecord) -> timedelta:
    """Frequency plus two approximate run times."""
    return timedelta(minutes=record.interval_minutes + 2 * record.approx_duration_minutes)


def evaluate_job(record: JobRecord, now: datetime) -> Optional[FailureReason]:
    if not record.enabled:
        return FailureReason(record.title, FailureKind.DISABLED, DISABLED_EXPLANATION)

    if record.last_run_at is None:
        return FailureReason(record.title, FailureKind.NEVER_RUN, NEVER_RUN_EXPLANATION)

    window = allowed_window(record)
    # Elapsed == window is still on time.
    if now - record.last_run_at > window:
        explanation = (
            f"{OVERDUE_EXPLANATION} last run {record.last_run_at:%Y-%m-%d %H:%M} UTC, "
            f"allowed window {int(window.total_seconds() // 60)} min"
        )
        return FailureReason(record.title, FailureKind.OVERDUE, explanation)

    return None


def evaluate_jobs(records: Iterable[JobRecord], now: Optional[datetime] = None) -> List[FailureReason]:
    """Evaluate records in order against a single `now`."""
    now = now or _now()
    failures: List[FailureReason] = []
    for record in records:
        reason = evaluate_job(record, now)
        if reason is None:
            logger.debug(f"OK: {record.title}")
            continue
        failures.append(reason)
    return failures


def no_data_failure() -> FailureReason:
    return FailureReason("", FailureKind.NO_DATA, NO_DATA_EXPLANATION)


def collect_failures(records: List[JobRecord], now: Optional[datetime] = None) -> List[FailureReason]:
    """All failures for one run; an empty fetch yields the single no-data failure."""
    if not records:
        return [no_data_failure()]
    return evaluate_jobs(records, now=now)
