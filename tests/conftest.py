import json

import pytest
import requests


def make_response(status_code, body):
    """Build a real requests.Response; dict/list bodies are JSON-encoded."""
    response = requests.Response()
    response.status_code = status_code
    if isinstance(body, (dict, list)):
        body = json.dumps(body)
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    return response


class FakeSession:
    """Stands in for requests.Session: replays queued responses or exceptions and records calls."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self):
        self.waits = []

    def __call__(self, seconds):
        self.waits.append(seconds)


@pytest.fixture
def sleep():
    return RecordingSleep()


ANSWER_BODY = {
    "answer": "SUM > 1.2, 0.5",
    "coordinates": [[0, 3], [1, 3]],
    "cells": ["1.2", "0.5"],
    "aggregator": "SUM",
}
