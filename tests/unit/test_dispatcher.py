"""
Unit tests for prefix dispatching and the API handler.
"""

import pytest

from rawhttp.http.dispatcher import Dispatcher, is_api_request
from rawhttp.http.request import Request
from rawhttp.http.response import Response, text_response
from rawhttp.handlers.api import handle_api


def make_request(method: str, path: str) -> Request:
    """Helper to create a request for testing."""
    return Request(method=method, path=path)


class RecordingHandler:
    """Handler that remembers the requests it saw."""

    def __init__(self, name: str):
        self.name = name
        self.requests = []

    def __call__(self, request: Request) -> Response:
        self.requests.append(request)
        return text_response(200, self.name)


class TestIsAPIRequest:

    @pytest.mark.parametrize("path", ["/api", "/api/", "/api/foo", "/apiary", "/api?x=1"])
    def test_api_paths(self, path):
        assert is_api_request(path)

    @pytest.mark.parametrize("path", ["/", "/index.html", "/API/foo", "api/foo", "/static/api"])
    def test_static_paths(self, path):
        assert not is_api_request(path)

    def test_custom_prefix(self):
        assert is_api_request("/v1/users", prefix="/v1")
        assert not is_api_request("/api/users", prefix="/v1")


class TestDispatcher:
    """Tests for Dispatcher class."""

    def setup_method(self):
        self.api = RecordingHandler("api")
        self.static = RecordingHandler("static")
        self.dispatcher = Dispatcher(self.api, self.static)

    def test_api_request_goes_to_api_handler(self):
        response = self.dispatcher.dispatch(make_request("GET", "/api/foo"))

        assert response.body == b"api"
        assert len(self.api.requests) == 1
        assert self.static.requests == []

    def test_other_request_goes_to_static_handler(self):
        response = self.dispatcher.dispatch(make_request("GET", "/index.html"))

        assert response.body == b"static"
        assert self.api.requests == []
        assert len(self.static.requests) == 1

    def test_method_does_not_affect_routing(self):
        for method in ("GET", "POST", "DELETE", "WHATEVER"):
            self.dispatcher.dispatch(make_request(method, "/api/x"))

        assert len(self.api.requests) == 4
        assert self.static.requests == []

    def test_handler_receives_same_request(self):
        request = Request(method="POST", path="/api/anything", body=b"hello")
        self.dispatcher.dispatch(request)

        assert self.api.requests[0] is request
        assert self.api.requests[0].body == b"hello"

    def test_select(self):
        assert self.dispatcher.select(make_request("GET", "/api")) is self.api
        assert self.dispatcher.select(make_request("GET", "/")) is self.static

    def test_custom_prefix(self):
        dispatcher = Dispatcher(self.api, self.static, api_prefix="/rpc")

        dispatcher.dispatch(make_request("GET", "/rpc/call"))
        dispatcher.dispatch(make_request("GET", "/api/call"))

        assert len(self.api.requests) == 1
        assert len(self.static.requests) == 1


class TestAPIHandler:

    def test_echoes_path(self):
        response = handle_api(make_request("GET", "/api/foo"))

        assert response.status_code == 200
        assert response.status_text == "OK"
        assert response.headers["Content-Type"] == "text/plain"
        assert response.body == b"Request Path: /api/foo"

    def test_path_echoed_raw(self):
        response = handle_api(make_request("POST", "/api/a%20b?c=d"))
        assert response.body == b"Request Path: /api/a%20b?c=d"

    def test_non_ascii_path_echoed_as_received(self):
        path = b"/api/caf\xc3\xa9".decode("utf-8", "surrogateescape")
        assert handle_api(make_request("GET", path)).body == b"Request Path: /api/caf\xc3\xa9"

    def test_invalid_utf8_path_echoed_as_received(self):
        path = b"/api/caf\xe9".decode("utf-8", "surrogateescape")
        assert handle_api(make_request("GET", path)).body == b"Request Path: /api/caf\xe9"
