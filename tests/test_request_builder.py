"""
Tests for request_builder.py and transport_strategy.py
Logic testing: Decision/Branch, Boundary Value, Path coverage
"""
import json
import logging

import pytest

from infactory_client.config import SDK_VERSION_HEADER, ClientConfig, resolve_config
from infactory_client.core.request_builder import (
    apply_auth,
    build_body,
    build_headers,
    build_url,
    expand_path,
    merge_query_params,
    prepare_request,
    validate_descriptor,
)
from infactory_client.core.transport_strategy import (
    DirectTransportStrategy,
    ProxyTransportStrategy,
    select_transport_strategy,
)
from infactory_client.errors import ValidationError
from infactory_client.types import RequestDescriptor


@pytest.fixture
def resolved():
    return resolve_config(ClientConfig(base_url="https://api.example.com", api_key="nf-key"))


@pytest.fixture
def direct():
    return DirectTransportStrategy("https://api.example.com")


class TestExpandPath:
    """Tests for expand_path."""

    def test_fills_placeholders(self):
        assert expand_path("/v1/projects/{project_id}", project_id="p1") == "/v1/projects/p1"

    def test_quotes_values(self):
        assert expand_path("/v1/files/{name}", name="a b/c") == "/v1/files/a%20b%2Fc"

    # Error Path: missing or empty values raise before any request
    @pytest.mark.parametrize("kwargs", [{}, {"project_id": None}, {"project_id": ""}])
    def test_missing_value_raises(self, kwargs):
        with pytest.raises(ValidationError, match="project_id") as exc_info:
            expand_path("/v1/projects/{project_id}", **kwargs)
        assert exc_info.value.details == {"missing": ["project_id"]}

    def test_zero_is_a_value(self):
        assert expand_path("/v1/pages/{page}", page=0) == "/v1/pages/0"


class TestMergeQueryParams:
    """Tests for query merging."""

    # Decision: None values are dropped
    def test_none_dropped(self):
        assert merge_query_params([], {"a": 1, "b": None}) == [("a", "1")]

    def test_booleans(self):
        assert merge_query_params([], {"flag": True, "other": False}) == [
            ("flag", "true"),
            ("other", "false"),
        ]

    def test_lists_repeat_key(self):
        assert merge_query_params([], {"id": ["a", None, "b"]}) == [("id", "a"), ("id", "b")]

    # Decision: call site wins over path query
    def test_call_site_wins(self):
        merged = merge_query_params([("limit", "10"), ("sort", "asc")], {"limit": 50})
        assert merged == [("sort", "asc"), ("limit", "50")]

    # Decision: a None call-site value keeps the path value
    def test_none_keeps_path_value(self):
        assert merge_query_params([("teamId", "t1")], {"teamId": None}) == [("teamId", "t1")]


class TestBuildUrl:
    """Tests for build_url."""

    def test_simple_path(self, direct):
        assert build_url(direct, "/v1/projects") == "https://api.example.com/v1/projects"

    def test_adds_leading_slash(self, direct):
        assert build_url(direct, "v1/projects") == "https://api.example.com/v1/projects"

    def test_params_appended(self, direct):
        url = build_url(direct, "/v1/projects", {"team_id": "t1", "skip": None})
        assert url == "https://api.example.com/v1/projects?team_id=t1"

    def test_path_query_kept_unless_overridden(self, direct):
        url = build_url(direct, "/v1/items?limit=10&sort=asc", {"limit": 5})
        assert url == "https://api.example.com/v1/items?sort=asc&limit=5"

    def test_proxy_strategy(self):
        proxy = ProxyTransportStrategy("http://localhost:3000", "/api/infactory")
        assert build_url(proxy, "/v1/projects") == "http://localhost:3000/api/infactory/v1/projects"


class TestTransportStrategy:
    """Tests for strategy selection."""

    def test_direct_by_default(self, resolved):
        strategy = select_transport_strategy(resolved)
        assert isinstance(strategy, DirectTransportStrategy)
        assert strategy.api_root == "https://api.example.com"

    def test_proxy_when_origin_set(self):
        resolved = resolve_config(ClientConfig(proxy_origin="http://localhost:3000/"))
        strategy = select_transport_strategy(resolved)
        assert isinstance(strategy, ProxyTransportStrategy)
        assert strategy.api_root == "http://localhost:3000/api/infactory"

    # Boundary: empty proxy base path
    def test_proxy_without_base_path(self):
        assert ProxyTransportStrategy("http://localhost:3000", "/").api_root == "http://localhost:3000"


class TestApplyAuth:
    """Tests for auth placement."""

    def test_header_mode(self, resolved):
        headers, params = apply_auth(resolved, {}, None)
        assert headers == {"Authorization": "Bearer nf-key"}
        assert params is None

    def test_query_mode(self):
        resolved = resolve_config(ClientConfig(api_key="nf-key", auth_mode="query"))
        headers, params = apply_auth(resolved, {}, {"a": 1})
        assert headers == {}
        assert params == {"a": 1, "nf_api_key": "nf-key"}

    def test_cookie_mode(self):
        resolved = resolve_config(ClientConfig(auth_mode="cookie", cookie="session=abc"))
        headers, _ = apply_auth(resolved, {}, None)
        assert headers == {"Cookie": "session=abc"}

    # Decision: no key, nothing placed
    def test_no_key(self):
        resolved = resolve_config(ClientConfig())
        assert apply_auth(resolved, {}, None) == ({}, None)


class TestBuildHeaders:
    """Tests for build_headers."""

    def test_defaults(self, resolved):
        headers = build_headers(resolved)
        assert headers[SDK_VERSION_HEADER]
        assert headers["accept"] == "application/json"
        assert "content-type" not in headers

    def test_json_body_sets_content_type(self, resolved):
        assert build_headers(resolved, has_json_body=True)["content-type"] == "application/json"

    def test_caller_content_type_kept(self, resolved):
        headers = build_headers(resolved, {"Content-Type": "text/plain"}, has_json_body=True)
        assert headers["Content-Type"] == "text/plain"
        assert "content-type" not in headers

    def test_accept_override(self, resolved):
        headers = build_headers(resolved, {"Accept": "application/xml"}, accept="text/event-stream")
        assert headers["accept"] == "text/event-stream"
        assert "Accept" not in headers


class TestDescriptorValidation:
    """Tests for validate_descriptor and build_body."""

    # Error Path: conflicting bodies
    def test_conflicting_bodies(self):
        descriptor = RequestDescriptor("/x", "POST", raw_body="a", json_body={"b": 1})
        with pytest.raises(ValidationError, match="raw_body, json_body"):
            validate_descriptor(descriptor)

    def test_single_body_ok(self):
        validate_descriptor(RequestDescriptor("/x", "POST", json_body={"b": 1}))

    def test_json_body_serialized(self, resolved):
        body = build_body(RequestDescriptor("/x", "POST", json_body={"a": 1}), resolved.serializer)
        assert json.loads(body["content"]) == {"a": 1}

    def test_multipart_drops_none_fields(self, resolved):
        descriptor = RequestDescriptor(
            "/x",
            "POST",
            files={"file": ("a.csv", b"x,y")},
            form_fields={"project_id": "p1", "note": None, "overwrite": True},
        )
        body = build_body(descriptor, resolved.serializer)
        assert body["files"] == {"file": ("a.csv", b"x,y")}
        assert body["data"] == {"project_id": "p1", "overwrite": "true"}

    def test_no_body(self, resolved):
        assert build_body(RequestDescriptor("/x"), resolved.serializer) == {}


class TestPrepareRequest:
    """Tests for prepare_request."""

    def test_full_preparation(self, resolved, direct):
        descriptor = RequestDescriptor(
            "/v1/projects", "post", params={"team_id": "t1"}, json_body={"name": "p"}, timeout=5.0
        )
        url, kwargs = prepare_request(resolved, direct, descriptor)
        assert url == "https://api.example.com/v1/projects?team_id=t1"
        assert kwargs["method"] == "POST"
        assert kwargs["headers"]["Authorization"] == "Bearer nf-key"
        assert kwargs["headers"]["content-type"] == "application/json"
        assert kwargs["timeout"] == 5.0
        assert json.loads(kwargs["content"]) == {"name": "p"}

    def test_no_timeout_key_when_unset(self, resolved, direct):
        _, kwargs = prepare_request(resolved, direct, RequestDescriptor("/v1/projects"))
        assert "timeout" not in kwargs

    def test_query_auth_in_url(self, direct):
        resolved = resolve_config(ClientConfig(api_key="nf-key", auth_mode="query"))
        url, _ = prepare_request(resolved, direct, RequestDescriptor("/v1/projects"))
        assert url == "https://api.example.com/v1/projects?nf_api_key=nf-key"

    def test_query_auth_masked_in_debug_log(self, direct, caplog):
        resolved = resolve_config(ClientConfig(api_key="nf-secret-key", auth_mode="query"))
        with caplog.at_level(logging.DEBUG, logger="infactory_client.request_builder"):
            prepare_request(resolved, direct, RequestDescriptor("/v1/projects"))
        assert "nf-secret-key" not in caplog.text
        assert "nf_api_key=****" in caplog.text
