import logging

import requests

from conftest import FakeSession, make_response
from modules import batch_jobs_client
from modules.batch_jobs_client import BatchJobsClient
from modules.staleness import FailureKind, collect_failures

JOBS = [
    {
        "PreferenceTitle": "Invoices export",
        "IsOn": True,
        "LastRunDate": "2024-05-01T11:00:00",
        "BatchRunFrequency": 60,
        "AproxBatchRunTime": 10,
    },
    {
        "PreferenceTitle": "Archive cleanup",
        "IsOn": False,
        "LastRunDate": "0001-01-01T00:00:00",
        "BatchRunFrequency": 1440,
        "AproxBatchRunTime": 30,
    },
]


def _client(session):
    return BatchJobsClient("https://app.example.com/rest/", "watcher", "s3cret", session=session)


def test_get_batch_jobs_calls_endpoint_with_basic_auth():
    session = FakeSession(get_response=make_response(200, JOBS))

    records = _client(session).get_batch_jobs()

    assert [r.title for r in records] == ["Invoices export", "Archive cleanup"]
    assert records[1].last_run_at is None
    url, kwargs = session.gets[0]
    assert url == "https://app.example.com/rest/GetBatchJobsPreferences"
    assert kwargs["auth"] == requests.auth.HTTPBasicAuth("watcher", "s3cret")
    assert kwargs["headers"]["Accept"] == "application/json"
    assert "timeout" not in kwargs
    assert len(session.gets) == 1


def test_get_batch_jobs_returns_empty_on_http_error(caplog):
    session = FakeSession(get_response=make_response(500, body="boom", reason="Internal Server Error"))

    with caplog.at_level(logging.WARNING):
        records = _client(session).get_batch_jobs()

    assert records == []
    assert "500 - Internal Server Error" in caplog.text
    assert len(session.gets) == 1


def test_get_batch_jobs_returns_empty_on_transport_error():
    session = FakeSession(get_exc=requests.ConnectionError("connection refused"))

    assert _client(session).get_batch_jobs() == []


def test_get_batch_jobs_treats_non_json_body_as_fetch_error():
    session = FakeSession(get_response=make_response(200, body="<html>login</html>"))

    assert _client(session).get_batch_jobs() == []


def test_get_batch_jobs_treats_unparseable_record_as_fetch_error():
    bad = dict(JOBS[0], BatchRunFrequency="hourly")
    session = FakeSession(get_response=make_response(200, [JOBS[1], bad]))

    assert _client(session).get_batch_jobs() == []


def test_get_batch_jobs_logs_when_no_records(caplog):
    session = FakeSession(get_response=make_response(200, []))

    with caplog.at_level(logging.INFO):
        records = _client(session).get_batch_jobs()

    assert records == []
    assert "did not return any data" in caplog.text


def test_out_of_range_frequency_is_reported_as_no_data(now):
    huge = dict(JOBS[0], BatchRunFrequency=10**16)
    session = FakeSession(get_response=make_response(200, [huge, JOBS[1]]))

    records = _client(session).get_batch_jobs()
    failures = collect_failures(records, now=now)

    assert records == []
    assert [f.kind for f in failures] == [FailureKind.NO_DATA]


def test_client_closes_session_it_opened(monkeypatch):
    session = FakeSession(get_response=make_response(200, JOBS))
    monkeypatch.setattr(batch_jobs_client.requests, "Session", lambda: session)

    with BatchJobsClient("https://app.example.com/rest", "watcher", "s3cret") as client:
        client.get_batch_jobs()

    assert session.closed is True


def test_client_leaves_caller_session_open():
    session = FakeSession(get_response=make_response(200, JOBS))

    with _client(session) as client:
        client.get_batch_jobs()

    assert session.closed is False
