"""
Tests for the OAuth exchange broker and its connectors.
"""

from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest
from cryptography.fernet import Fernet, InvalidToken

from config.settings import config
from connectors.encryption import TokenCipher, cipher_from_config
from connectors.exchange import ExchangeBroker, build_state, parse_state
from connectors.registry import ConnectorRegistry, default_connectors
from database.models import connection_key
from database.store import InMemoryStore
from utils.errors import NotFoundError, UpstreamError, ValidationError


def _broker(vendor, store, cipher=None, clock=None) -> ExchangeBroker:
    kwargs = {"redirect_uri": "http://localhost:3000/auth/success"}
    if clock is not None:
        kwargs["clock"] = clock
    return ExchangeBroker(
        store,
        ConnectorRegistry(default_connectors(transport=vendor.transport)),
        cipher or TokenCipher(None),
        **kwargs,
    )


class TestStateEncoding:
    def test_round_trip(self):
        raw = build_state("app1", "xyz", "todoist")
        assert raw == "app1:xyz:todoist"
        assert parse_state(raw) == ("app1", "xyz", "todoist")

    def test_caller_state_may_contain_colons(self):
        assert parse_state("app1:a:b:c:google_tasks") == ("app1", "a:b:c", "google_tasks")

    @pytest.mark.parametrize("raw", ["", "nocolons", ":x:todoist", "app1:x:"])
    def test_malformed(self, raw):
        with pytest.raises(ValidationError):
            parse_state(raw)


class TestExchange:
    @pytest.mark.asyncio
    async def test_todoist_end_to_end(self, vendor):
        vendor.add("POST", "/oauth/access_token", {"access_token": "tok"})
        store = InMemoryStore()
        broker = _broker(vendor, store, clock=lambda: 1_700_000_000_000)

        result = await broker.exchange("abc", "todoist", "app1", "s1")

        assert len(result.connection_token) == 32
        assert len(result.user_id) == 16
        assert result.redirect_uri == "http://localhost:3000/auth/success"

        info = await broker.get_connection(result.connection_token)
        assert info.app_id == "app1"
        assert info.user_id == result.user_id
        assert info.service_type.value == "todoist"
        assert info.created_at == 1_700_000_000_000
        assert "access_token" not in info.model_dump()

        form = parse_qs(vendor.calls("POST", "/oauth/access_token")[0].content.decode(), keep_blank_values=True)
        assert form["code"] == ["abc"]
        assert set(form) == {"client_id", "client_secret", "code", "redirect_uri"}

    @pytest.mark.asyncio
    async def test_repeat_exchanges_mint_distinct_identities(self, vendor):
        vendor.add("POST", "/oauth/access_token", {"access_token": "tok"})
        broker = _broker(vendor, InMemoryStore())

        first = await broker.exchange("abc", "todoist", "app1")
        second = await broker.exchange("abc", "todoist", "app1")

        assert first.connection_token != second.connection_token
        assert first.user_id != second.user_id

    @pytest.mark.asyncio
    async def test_google_converts_expires_in(self, vendor):
        vendor.add(
            "POST", "/token",
            {"access_token": "g-tok", "refresh_token": "g-ref", "expires_in": 3600},
        )
        store = InMemoryStore()
        broker = _broker(vendor, store)

        result = await broker.exchange("code", "google_tasks", "app1")

        record = await store.get(connection_key(result.connection_token))
        assert record["access_token"] == "g-tok"
        assert record["refresh_token"] == "g-ref"
        assert record["expires_at"] - record["created_at"] == pytest.approx(3_600_000, abs=5_000)

        form = parse_qs(vendor.calls("POST", "/token")[0].content.decode(), keep_blank_values=True)
        assert form["grant_type"] == ["authorization_code"]

    @pytest.mark.asyncio
    async def test_google_without_expires_in(self, vendor):
        vendor.add("POST", "/token", {"access_token": "g-tok"})
        store = InMemoryStore()

        result = await _broker(vendor, store).exchange("code", "google_tasks", "app1")

        record = await store.get(connection_key(result.connection_token))
        assert record["expires_at"] is None
        assert record["refresh_token"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "code,service,app_id",
        [(None, "todoist", "app1"), ("abc", None, "app1"), ("abc", "todoist", None), ("", "todoist", "app1")],
    )
    async def test_missing_inputs(self, vendor, code, service, app_id):
        store = InMemoryStore()
        with pytest.raises(ValidationError):
            await _broker(vendor, store).exchange(code, service, app_id)
        assert len(store) == 0
        assert vendor.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("service", ["microsoft_todo", "bitrix24", "asana"])
    async def test_unsupported_service_stores_nothing(self, vendor, service):
        store = InMemoryStore()
        with pytest.raises(ValidationError, match="Unsupported service"):
            await _broker(vendor, store).exchange("abc", service, "app1")
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_vendor_error_embeds_body(self, vendor):
        vendor.add("POST", "/oauth/access_token", status=400, text='{"error":"bad_code"}')
        store = InMemoryStore()

        with pytest.raises(UpstreamError) as excinfo:
            await _broker(vendor, store).exchange("abc", "todoist", "app1")

        assert "bad_code" in str(excinfo.value)
        assert excinfo.value.http_status() == 500
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_vendor_401_still_surfaces_as_500(self, vendor):
        vendor.add("POST", "/oauth/access_token", status=401, text="invalid_client")

        with pytest.raises(UpstreamError) as excinfo:
            await _broker(vendor, InMemoryStore()).exchange("abc", "todoist", "app1")

        assert excinfo.value.http_status() == 500

    @pytest.mark.asyncio
    async def test_non_json_body_is_upstream_error(self, vendor):
        vendor.add("POST", "/oauth/access_token", text="<html>oops</html>")
        store = InMemoryStore()

        with pytest.raises(UpstreamError):
            await _broker(vendor, store).exchange("abc", "todoist", "app1")
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_missing_access_token_is_upstream_error(self, vendor):
        vendor.add("POST", "/oauth/access_token", {"token_type": "Bearer"})

        with pytest.raises(UpstreamError):
            await _broker(vendor, InMemoryStore()).exchange("abc", "todoist", "app1")


class TestConnectionLookup:
    @pytest.mark.asyncio
    async def test_unknown_token(self, vendor):
        with pytest.raises(NotFoundError):
            await _broker(vendor, InMemoryStore()).get_connection("nope")

    @pytest.mark.asyncio
    async def test_missing_token(self, vendor):
        with pytest.raises(ValidationError):
            await _broker(vendor, InMemoryStore()).get_connection(None)

    @pytest.mark.asyncio
    async def test_tokens_encrypted_at_rest(self, vendor):
        vendor.add("POST", "/oauth/access_token", {"access_token": "plain-tok"})
        store = InMemoryStore()
        broker = _broker(vendor, store, cipher=TokenCipher(Fernet.generate_key().decode()))

        result = await broker.exchange("abc", "todoist", "app1")

        record = await store.get(connection_key(result.connection_token))
        assert record["access_token"] != "plain-tok"
        service, token = await broker.get_credentials(result.connection_token)
        assert service.value == "todoist"
        assert token == "plain-tok"


class TestAuthorizeUrl:
    def test_todoist(self, vendor):
        url = _broker(vendor, InMemoryStore()).authorize_url("todoist", "app1", "xyz")
        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert parsed.netloc == "todoist.com"
        assert query["state"] == ["app1:xyz:todoist"]
        assert query["scope"] == ["data:read_write"]

    def test_google_requests_offline_access(self, vendor):
        url = _broker(vendor, InMemoryStore()).authorize_url("google_tasks", "app1", "xyz")
        query = parse_qs(urlparse(url).query)
        assert query["access_type"] == ["offline"]
        assert query["response_type"] == ["code"]
        assert query["scope"] == ["https://www.googleapis.com/auth/tasks"]

    def test_unsupported(self, vendor):
        with pytest.raises(ValidationError):
            _broker(vendor, InMemoryStore()).authorize_url("bitrix24", "app1", "xyz")


class TestTokenCipher:
    def test_disabled_without_key(self):
        cipher = TokenCipher("")
        assert not cipher.enabled
        assert cipher.encrypt("tok") == "tok"
        assert cipher.decrypt(None) is None

    def test_round_trip_with_key(self):
        cipher = TokenCipher(Fernet.generate_key().decode())
        sealed = cipher.encrypt("tok")
        assert sealed != "tok"
        assert cipher.decrypt(sealed) == "tok"

    def test_tampered_ciphertext(self):
        cipher = TokenCipher(Fernet.generate_key().decode())
        with pytest.raises(InvalidToken):
            cipher.decrypt("not-a-fernet-token")

    def test_cipher_from_config(self):
        key = Fernet.generate_key().decode()
        with patch.object(config, "token_encryption_key", key):
            assert cipher_from_config().enabled
