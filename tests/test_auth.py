import base64

import pytest
from pydantic import ValidationError

from api_doc_import.parser.base import CanonicalRequest
from api_doc_import.replay.auth import (
    ApiKeyAuth,
    BasicAuth,
    BearerAuth,
    CustomHeaderAuth,
    DetectedAuth,
    NoAuth,
    apply_authentication,
    parse_auth_config,
)


def _request(headers: dict[str, str]) -> CanonicalRequest:
    return CanonicalRequest(id="r1", name="A", method="GET", url="https://a.com/x", headers=headers)


class TestParseAuthConfig:
    def test_discriminated_by_type(self):
        assert isinstance(parse_auth_config({"type": "bearer", "token": "T1"}), BearerAuth)
        assert isinstance(parse_auth_config({"type": "none"}), NoAuth)

    def test_hostname_on_every_variant(self):
        auth = parse_auth_config({"type": "basic", "username": "u", "password": "p", "hostname": "h.local"})
        assert auth.hostname == "h.local"

    def test_missing_fields_rejected(self):
        with pytest.raises(ValidationError):
            parse_auth_config({"type": "apikey", "key": "X-API-Key"})

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_auth_config({"type": "oauth2"})


class TestApplyAuthentication:
    def test_none_keeps_headers(self):
        req = _request({"Authorization": "Bearer old"})
        assert apply_authentication(req, NoAuth()).headers == {"Authorization": "Bearer old"}

    def test_bearer_replaces_api_key(self):
        req = _request({"X-API-Key": "K"})
        result = apply_authentication(req, BearerAuth(token="T1"))
        assert result.headers == {"Authorization": "Bearer T1"}

    def test_apikey_replaces_authorization(self):
        req = _request({"Authorization": "Bearer old", "authorization": "x", "Accept": "*/*"})
        result = apply_authentication(req, ApiKeyAuth(key="X-API-Key", value="K"))
        assert result.headers == {"Accept": "*/*", "X-API-Key": "K"}

    def test_basic_encodes_credentials(self):
        req = _request({"x-auth-token": "t"})
        result = apply_authentication(req, BasicAuth(username="alice", password="s3cret"))
        expected = base64.b64encode(b"alice:s3cret").decode()
        assert result.headers == {"Authorization": f"Basic {expected}"}

    def test_custom_authorization_clears_api_key(self):
        req = _request({"X-API-Key": "K", "X-Auth-Token": "T"})
        result = apply_authentication(req, CustomHeaderAuth(header="authorization", value="Token abc"))
        assert result.headers == {"X-Auth-Token": "T", "authorization": "Token abc"}

    def test_custom_other_header_keeps_api_key(self):
        req = _request({"X-API-Key": "K"})
        result = apply_authentication(req, CustomHeaderAuth(header="X-Tenant", value="acme"))
        assert result.headers == {"X-API-Key": "K", "X-Tenant": "acme"}

    def test_detected_is_pass_through(self):
        req = _request({"X-API-Key": "K"})
        assert apply_authentication(req, DetectedAuth(scheme="bearerAuth")).headers == {"X-API-Key": "K"}

    def test_empty_token_leaves_headers(self):
        req = _request({"X-API-Key": "K"})
        assert apply_authentication(req, BearerAuth(token="")).headers == {"X-API-Key": "K"}

    def test_original_is_not_mutated(self):
        original_headers = {"X-API-Key": "K"}
        req = _request(original_headers)
        snapshot = req.model_copy(deep=True)

        first = apply_authentication(req, BearerAuth(token="T1"))
        second = apply_authentication(req, BearerAuth(token="T1"))

        assert first.headers == second.headers
        assert first.headers is not req.headers
        assert req == snapshot
        assert req.headers == {"X-API-Key": "K"}

    def test_other_fields_copied(self):
        req = _request({})
        result = apply_authentication(req, BearerAuth(token="T1"))
        assert (result.id, result.name, result.method, result.url) == (req.id, req.name, req.method, req.url)
