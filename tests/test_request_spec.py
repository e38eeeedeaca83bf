import pytest

from api_doc_import.parser.base import CanonicalRequest, FormField, RequestBody
from api_doc_import.replay.spec import build_request_spec, generate_session_name, resolve_url


def _request(url: str, method: str = "GET", **kwargs) -> CanonicalRequest:
    return CanonicalRequest(id="r1", name="", method=method, url=url, **kwargs)


class TestResolveUrl:
    def test_override_replaces_every_template(self):
        assert resolve_url("{{baseUrl}}/v1/{{id}}", "api.local") == "https://api.local/v1/api.local"

    def test_override_prefixes_relative(self):
        assert resolve_url("/v1/items", " api.local ") == "https://api.local/v1/items"

    def test_override_replaces_host_only(self):
        assert resolve_url("http://old.com:8080/a/b?x=1", "new.com") == "http://new.com/a/b?x=1"

    def test_override_on_bare_host(self):
        assert resolve_url("old.com/a", "new.com") == "https://new.com/a"

    def test_template_without_override(self):
        assert resolve_url("{{baseUrl}}/v1/items/{{id}}") == "https://example.com/v1/items/example.com"

    def test_relative_without_override(self):
        assert resolve_url("/v1/items") == "https://example.com/v1/items"

    def test_missing_scheme(self):
        assert resolve_url("api.com/x") == "https://api.com/x"

    def test_blank_override_is_ignored(self):
        assert resolve_url("/x", "   ") == "https://example.com/x"


class TestBuildRequestSpec:
    def test_absolute_url(self):
        spec = build_request_spec(_request("https://a.com/x?q=1"))
        assert (spec.host, spec.port, spec.path, spec.query, spec.tls) == ("a.com", 443, "/x", "?q=1", True)
        assert spec.url == "https://a.com/x?q=1"

    def test_http_default_port_and_explicit_port(self):
        assert build_request_spec(_request("http://a.com")).port == 80
        spec = build_request_spec(_request("http://a.com:8080"))
        assert spec.port == 8080
        assert spec.path == "/"
        assert spec.tls is False

    def test_templated_url_scenario(self):
        spec = build_request_spec(_request("{{baseUrl}}/v1/items/{{id}}"))
        assert spec.host == "example.com"
        assert spec.path == "/v1/items/example.com"

    def test_unparseable_url_is_dropped(self):
        assert build_request_spec(_request("ftp://files.example.com/a")) is None

    def test_url_is_matched_as_prefix(self):
        spec = build_request_spec(_request("https://api.com/search?q=hello world"))
        assert (spec.host, spec.path, spec.query) == ("api.com", "/search", "?q=hello")

    def test_templated_scheme_and_host(self):
        spec = build_request_spec(_request("{{scheme}}://{{host}}/users"))
        assert spec.host == "example.com"
        assert spec.path == "/"
        assert spec.port == 443

    def test_raw_body(self):
        spec = build_request_spec(
            _request("/x", method="POST", headers={"Content-Type": "application/json"},
                     body=RequestBody(mode="raw", raw='{"a": 1}'))
        )
        assert spec.body == '{"a": 1}'
        assert spec.headers["Content-Type"] == "application/json"

    def test_formdata_is_urlencoded(self):
        body = RequestBody(mode="formdata", formdata=[
            FormField(key="user name", value="a&b"),
            FormField(key="empty"),
        ])
        spec = build_request_spec(
            _request("/login", method="POST", headers={"Content-Type": "multipart/form-data"}, body=body)
        )
        assert spec.body == "user%20name=a%26b&empty="
        assert spec.headers["Content-Type"] == "application/x-www-form-urlencoded"

    def test_hostname_rebuild_is_independent(self):
        req = _request("/x")
        first = build_request_spec(req, "one.local")
        second = build_request_spec(req, "two.local")
        third = build_request_spec(req)
        assert (first.host, second.host, third.host) == ("one.local", "two.local", "example.com")
        assert req.url == "/x"


class TestSessionName:
    def test_scenario_absolute(self):
        assert generate_session_name(_request("https://a.com/x?q=1")) == "GET /x"

    def test_template_keeps_path_after_last_template(self):
        assert generate_session_name(_request("{{baseUrl}}/v1/items")) == "GET /v1/items"

    def test_template_ending_in_template_falls_back_to_raw(self):
        name = generate_session_name(_request("{{baseUrl}}/v1/items/{{id}}"))
        assert name == "GET {{baseUrl}}/v1/items/{{id}}"

    def test_relative_and_bare(self):
        assert generate_session_name(_request("/api//users")) == "GET /api/users"
        assert generate_session_name(_request("api/users", method="post")) == "POST /api/users"

    def test_host_only(self):
        assert generate_session_name(_request("https://a.com")) == "GET /"

    def test_root(self):
        assert generate_session_name(_request("/")) == "GET /"

    @pytest.mark.parametrize(
        "url",
        [
            "https://a.com/x/y",
            "https://a.com",
            "{{baseUrl}}/v1/items",
            "{{baseUrl}}/v1/items/{{id}}",
            "/api/users",
            "api/users",
        ],
    )
    def test_query_and_fragment_do_not_change_name(self, url):
        assert generate_session_name(_request(url + "?x=1#y")) == generate_session_name(_request(url))
