# tests/test_publisher.py
"""
Tests for posting reports to an inventory service.
"""

import json

import pytest
import requests

from hardware_report import publisher
from hardware_report.publisher import ReportPublisher

REPORT = {'hostname': 'node01', 'cpu': {'flags': ('fpu', 'lm')}}


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


class FakePost:
    """Stands in for requests.post; reply is a FakeResponse or an exception to raise"""

    def __init__(self):
        self.calls = []
        self.reply = FakeResponse()

    def __call__(self, url, json=None, headers=None, timeout=None):
        self.calls.append({'url': url, 'json': json, 'headers': headers, 'timeout': timeout})
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


@pytest.fixture
def posts(monkeypatch):
    fake_post = FakePost()
    monkeypatch.setattr(publisher.requests, 'post', fake_post)
    return fake_post


class TestReportPublisher:

    def test_payload_shape(self, posts):
        assert ReportPublisher('https://inventory.example.com/hosts').publish(REPORT, labels={'rack': 'r12'})

        call = posts.calls[0]
        assert call['url'] == 'https://inventory.example.com/hosts'
        assert call['json'] == {'labels': {'rack': 'r12'},
                                'result': {'hostname': 'node01', 'cpu': {'flags': ['fpu', 'lm']}}}
        assert 'Authorization' not in call['headers']
        assert call['timeout'] == 30

    def test_bearer_token(self, posts):
        ReportPublisher('https://inventory.example.com/hosts', auth_token='s3cret').publish(REPORT)

        assert posts.calls[0]['headers']['Authorization'] == 'Bearer s3cret'
        assert posts.calls[0]['json']['labels'] == {}

    @pytest.mark.parametrize('reply', [
        FakeResponse(500),
        requests.ConnectionError("connection refused"),
        requests.Timeout("read timed out"),
    ])
    def test_failures_return_false(self, posts, reply):
        posts.reply = reply

        assert ReportPublisher('https://inventory.example.com/hosts').publish(REPORT) is False

    def test_save_payload(self, posts, tmp_path):
        path = tmp_path / 'debug' / 'payload.json'

        ReportPublisher('https://inventory.example.com/hosts').publish(
            REPORT, labels={'owner': 'hpc'}, save_payload=str(path))

        assert json.loads(path.read_text()) == posts.calls[0]['json']

    @pytest.mark.parametrize('endpoint', ['', '   ', None])
    def test_endpoint_required(self, endpoint):
        with pytest.raises(ValueError):
            ReportPublisher(endpoint)
