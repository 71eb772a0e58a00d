"""
Fixtures for the playground service tests.
"""

import json
from typing import Any, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from shared.test_helpers import SAMPLE_EXPLANATION, make_playground_config, model_reply
from service_playground.app.main import create_app


class MockUpstreams:
    """Execution API and model API behind one httpx.MockTransport."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.compile_status = 200
        self.compile_body: Any = {"output": "hi\n", "statusCode": 200, "memory": "1024", "cpuTime": "0.01"}
        self.compile_error: Optional[Exception] = None
        self.model_status = 200
        self.model_body: Any = model_reply(json.dumps(SAMPLE_EXPLANATION))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "compiler.zest.test":
            if self.compile_error is not None:
                raise self.compile_error
            return self._respond(self.compile_status, self.compile_body)
        if request.url.host == "model.zest.test":
            return self._respond(self.model_status, self.model_body)
        return httpx.Response(404)

    @staticmethod
    def _respond(status: int, body: Any) -> httpx.Response:
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)

    def sent_json(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


@pytest.fixture
def upstreams():
    return MockUpstreams()


@pytest.fixture
def make_client(upstreams):
    clients = []

    def factory(**overrides):
        app = create_app(make_playground_config(**overrides), transport=httpx.MockTransport(upstreams.handler))
        test_client = TestClient(app)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield factory
    for test_client in clients:
        test_client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()
