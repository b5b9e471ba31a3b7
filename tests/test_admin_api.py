import pytest

from review_admin.clients.admin_api import AdminApiClient
from review_admin.clients.errors import AuthenticationError, RemoteError, TransportError
from review_admin.schemas import ComplaintStatus, StructuredSchedule
from review_admin.session import AdminSession, MemoryTokenStorage
from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD, BASE_URL, TOKEN, FakeResponse


def test_login_returns_token(api_client):
    assert api_client.login(ADMIN_EMAIL, ADMIN_PASSWORD) == TOKEN


def test_login_failure_surfaces_backend_error(api_client):
    with pytest.raises(RemoteError) as exc:
        api_client.login(ADMIN_EMAIL, "wrong")
    assert exc.value.message == "Invalid credentials"


def test_calls_send_bearer_token(api_client, admin_session, backend):
    branches = api_client.list_branches(admin_session)
    assert [b.id for b in branches] == ["b1", "b2", "b3", "b4"]
    assert isinstance(branches[1].working_hours, StructuredSchedule)


def test_missing_token_never_hits_the_network(api_client, backend):
    session = AdminSession(MemoryTokenStorage())
    with pytest.raises(AuthenticationError):
        api_client.list_reviews(session)
    assert backend.calls == []


def test_401_clears_the_session(api_client, backend):
    session = AdminSession(MemoryTokenStorage())
    session.set_token("expired")

    with pytest.raises(AuthenticationError):
        api_client.get_me(session)
    assert session.token is None


def test_unsuccessful_envelope_raises_remote_error(api_client, admin_session):
    with pytest.raises(RemoteError) as exc:
        api_client.get_branch(admin_session, "missing")
    assert exc.value.message == "Branch not found"
    assert exc.value.status_code == 404


def test_success_false_with_200_is_still_an_error(admin_session):
    class _Http:
        def request(self, *args, **kwargs):
            return FakeResponse(200, {"success": False, "error": "Branch is linked to reviews"})

    client = AdminApiClient(BASE_URL, http=_Http())
    with pytest.raises(RemoteError) as exc:
        client.delete_branch(admin_session, "b1")
    assert exc.value.message == "Branch is linked to reviews"


def test_non_json_body_is_a_transport_error(admin_session):
    class _Http:
        def request(self, *args, **kwargs):
            return FakeResponse(502, None, content=b"<html>Bad gateway</html>")

    client = AdminApiClient(BASE_URL, http=_Http())
    with pytest.raises(TransportError):
        client.list_menus(admin_session)


def test_connection_failure_is_a_transport_error(api_client, admin_session, backend):
    backend.down = True
    with pytest.raises(TransportError):
        api_client.list_reviews(admin_session)


def test_list_reviews_passes_filters(api_client, admin_session, backend):
    reviews = api_client.list_reviews(admin_session, branch_id="b2", visit_type="TAKEAWAY", limit=100)
    assert [r.id for r in reviews] == ["r2"]
    assert backend.calls[-1][2] == {"branchId": "b2", "visitType": "TAKEAWAY", "limit": "100"}


def test_update_complaint_sends_both_fields(api_client, admin_session, backend):
    api_client.update_complaint(admin_session, "r5", ComplaintStatus.CLOSED, None)
    assert backend.calls[-1][3] == {"status": "closed", "remarks": None}


def test_export_returns_file(api_client, admin_session, backend):
    export = api_client.export_reviews(admin_session, "2024-03", "b1")
    assert export.filename == "reviews-2024-03.xlsx"
    assert export.content == b"PK-fake-xlsx"
    assert backend.calls[-1][2] == {"month": "2024-03", "branchId": "b1"}


def test_malformed_record_is_a_transport_error(api_client, admin_session, backend):
    backend.reviews["r1"].pop("visitType")
    with pytest.raises(TransportError) as exc:
        api_client.list_reviews(admin_session)
    assert "Invalid response from admin API" in str(exc.value)


def test_login_with_unexpected_data_is_a_transport_error():
    class _Http:
        def request(self, *args, **kwargs):
            return FakeResponse(200, {"success": True, "data": ["tok-1"]})

    client = AdminApiClient(BASE_URL, http=_Http())
    with pytest.raises(TransportError):
        client.login(ADMIN_EMAIL, ADMIN_PASSWORD)
