import json
from datetime import datetime

import pytest
import requests

from config.settings import WatchdogSettings

NOW = datetime(2024, 5, 1, 12, 0, 0)


def make_response(status_code=200, payload=None, body=None, reason="OK"):
    resp = requests.Response()
    resp.status_code = status_code
    resp.reason = reason
    resp.url = "https://app.example.com/rest/GetBatchJobsPreferences"
    if body is None:
        body = json.dumps(payload if payload is not None else [])
    resp._content = body.encode("utf-8")
    return resp


class FakeSession:
    """Stands in for requests.Session; records calls and replays canned responses."""

    def __init__(self, get_response=None, post_response=None, get_exc=None, post_exc=None):
        self.get_response = get_response
        self.post_response = post_response if post_response is not None else make_response(200, {"id": "email-1"})
        self.get_exc = get_exc
        self.post_exc = post_exc
        self.gets = []
        self.posts = []
        self.closed = False

    def get(self, url, **kwargs):
        self.gets.append((url, kwargs))
        if self.get_exc is not None:
            raise self.get_exc
        return self.get_response

    def post(self, url, **kwargs):
        self.posts.append((url, kwargs))
        if self.post_exc is not None:
            raise self.post_exc
        return self.post_response

    def close(self):
        self.closed = True


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def settings():
    return WatchdogSettings(
        rest_base="https://app.example.com/rest",
        rest_user="watcher",
        rest_password="s3cret",
        resend_api_key="re_test",
        to_emails=["ops@example.com"],
        cc_emails=[],
    )
