import logging
from typing import List, Optional

import requests
from requests.auth import HTTPBasicAuth

from modules.staleness import NO_DATA_EXPLANATION, JobRecord, JobRecordError, parse_job_records

logger = logging.getLogger(__name__)


class BatchJobsClient:
    """Reads batch job preferences from the application's published REST service.

    A session passed in belongs to the caller. Without one the client opens
    its own, which `close()` (or leaving a `with` block) releases.
    """

    ENDPOINT = "/GetBatchJobsPreferences"

    def __init__(self, base_url: str, username: str, password: str,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.auth = HTTPBasicAuth(username, password)
        self._owns_session = session is None
        self.session = session or requests.Session()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "BatchJobsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _get(self, endpoint: str) -> requests.Response:
        url = f"{self.base_url}{endpoint}"
        return self.session.get(url, auth=self.auth, headers={"Accept": "application/json"})

    def get_batch_jobs(self) -> List[JobRecord]:
        """Single attempt; any failure is logged and yields an empty list."""
        try:
            resp = self._get(self.ENDPOINT)
        except requests.RequestException as e:
            logger.error(f"Error calling {self.ENDPOINT}: {e}")
            return []

        if not resp.ok:
            logger.warning(f"There was a problem with a REST call: {resp.status_code} - {resp.reason}")
            return []

        try:
            records = parse_job_records(resp.json())
        except (ValueError, JobRecordError) as e:
            # JSONDecodeError is a ValueError too
            logger.error(f"Malformed response from {self.ENDPOINT}: {e}")
            return []

        if not records:
            logger.info(NO_DATA_EXPLANATION)
        return records
