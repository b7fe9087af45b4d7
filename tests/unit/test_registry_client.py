"""
Unit Tests for the Registry Client

Auth, draft CRUD and case endpoints against the in-memory backend, and the
mapping of transport / HTTP failures onto RegistryError.
"""
import httpx
import pytest

from mear.services import DraftRecord, RegistryClient
from mear.utils.exceptions import DraftNotFoundError, RegistryError


def client_for(handler, token="token-123") -> RegistryClient:
    return RegistryClient("http://registry.test/", token=token, transport=httpx.MockTransport(handler))


class TestAuth:
    """login() and bearer headers."""

    async def test_login_stores_token(self, backend):
        client = client_for(backend.handler, token=None)
        data = await client.login("doctor@example.org", "secret")

        assert data["token"] == "token-123"
        assert client.token == "token-123"
        assert "Authorization" not in backend.requests[0].headers

    async def test_bad_credentials(self, backend):
        client = client_for(backend.handler, token=None)
        with pytest.raises(RegistryError) as exc_info:
            await client.login("doctor@example.org", "wrong")
        assert exc_info.value.status_code == 401

    async def test_bearer_header_sent(self, registry, backend):
        await registry.create_draft({}, "demographics")
        assert backend.requests[-1].headers["Authorization"] == "Bearer token-123"

    def test_base_url_trailing_slash_stripped(self):
        assert client_for(lambda r: httpx.Response(200)).base_url == "http://registry.test"


class TestDrafts:
    """/api/draft"""

    async def test_create_update_get_delete(self, registry, backend):
        created = await registry.create_draft({"demographics": {"hospitalNo": "HN-1"}}, "demographics")
        assert created == {"id": "1"}

        updated = await registry.update_draft("1", {"demographics": {"hospitalNo": "HN-1", "age": "40"}}, "vitals", "HN-1")
        assert updated == {"id": "1", "hospitalNo": "HN-1"}

        record = await registry.get_draft(hospital_no="HN-1")
        assert isinstance(record, DraftRecord)
        assert record.id == "1"
        assert record.current_phase == "vitals"
        assert record.form["demographics"]["age"] == "40"

        await registry.delete_draft("1")
        assert backend.drafts == {}

    async def test_draft_id_preferred_over_hospital_no(self, registry, backend):
        await registry.create_draft({}, "demographics")
        await registry.get_draft("1", "HN-ignored")
        assert dict(backend.requests[-1].url.params) == {"draftId": "1"}

    async def test_missing_draft_raises_not_found(self, registry):
        with pytest.raises(DraftNotFoundError) as exc_info:
            await registry.get_draft("404")
        assert exc_info.value.code == "DRAFT_NOT_FOUND"
        assert exc_info.value.details["draft_id"] == "404"

    async def test_identifier_required(self, registry):
        with pytest.raises(ValueError):
            await registry.get_draft()

    async def test_server_error(self, registry, backend):
        backend.fail_all = True
        with pytest.raises(RegistryError) as exc_info:
            await registry.get_draft("1")
        assert not isinstance(exc_info.value, DraftNotFoundError)
        assert exc_info.value.status_code == 503
        assert exc_info.value.endpoint == "/api/draft"

    async def test_transport_error(self):
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RegistryError) as exc_info:
            await client_for(unreachable).create_draft({}, "demographics")
        assert exc_info.value.status_code is None
        assert "Could not reach" in exc_info.value.message


class TestCases:
    """/api/mear"""

    async def test_submit_get_and_list(self, registry):
        submitted = await registry.submit_case({"demographics": {"hospitalNo": "HN-2"}})
        assert submitted == {"id": "case-1"}

        case = await registry.get_case("case-1")
        assert case["demographics"]["hospitalNo"] == "HN-2"

        cases = await registry.list_cases(limit=5)
        assert [c["id"] for c in cases] == ["case-1"]

    async def test_unknown_case(self, registry):
        with pytest.raises(RegistryError) as exc_info:
            await registry.get_case("case-9")
        assert exc_info.value.status_code == 404

    async def test_non_json_body_is_empty(self):
        client = client_for(lambda r: httpx.Response(201, text="created"))
        assert await client.submit_case({}) == {}
