from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests

from gateways import GatewayError, RestGateway, SupabaseGateway
from schemas import ComplaintStatus, ReportStatus


# ---------------------- REST ----------------------
def fake_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


def test_rest_lists_complaints(rest_gateway):
    complaints = rest_gateway.list_complaints()

    assert len(complaints) == 2
    assert {c.status for c in complaints} == {ComplaintStatus.pending}
    # Newest first
    assert complaints[0].photo == "https://example.com/dump.jpg"
    assert complaints[1].photo is None


def test_rest_attaches_bearer_token():
    http = MagicMock()
    http.request.return_value = fake_response(payload=[])
    gateway = RestGateway("http://backend/", http=http, token_provider=lambda: "abc")

    gateway.list_workers()

    http.request.assert_called_once_with(
        "GET", "http://backend/api/workers", json=None, params=None,
        headers={"Authorization": "Bearer abc"}, timeout=None,
    )


def test_rest_mutation_returns_updated_record(rest_gateway, rest_session):
    rest_session.login("admin@example.com", "password123")

    complaint = rest_gateway.assign_worker(1, 3)

    assert complaint.status == ComplaintStatus.assigned
    assert complaint.assigned_worker.name == "Sam Okafor"


def test_rest_server_error_is_gateway_error(rest_gateway):
    # No token: the backend answers 401
    with pytest.raises(GatewayError) as info:
        rest_gateway.assign_worker(1, 1)
    assert info.value.status_code == 401


def test_rest_transport_error_is_gateway_error():
    http = MagicMock()
    http.request.side_effect = requests.Timeout("slow")

    with pytest.raises(GatewayError):
        RestGateway("http://backend", http=http).list_reports()


def test_rest_unsuccessful_envelope_is_gateway_error():
    http = MagicMock()
    http.request.return_value = fake_response(payload={"success": False})

    with pytest.raises(GatewayError):
        RestGateway("http://backend", http=http).set_report_status(1, ReportStatus.resolved)


def test_rest_invalid_json_is_gateway_error():
    http = MagicMock()
    response = fake_response()
    response.json.side_effect = ValueError("not json")
    http.request.return_value = response

    with pytest.raises(GatewayError):
        RestGateway("http://backend", http=http).list_users()


def test_rest_unknown_status_is_gateway_error():
    http = MagicMock()
    http.request.return_value = fake_response(payload=[
        {"id": 1, "userId": 1, "complaintId": 1, "description": "x", "status": "escalated"}
    ])

    with pytest.raises(GatewayError):
        RestGateway("http://backend", http=http).list_reports()


def test_rest_add_credits(rest_gateway, rest_session):
    rest_session.login("admin@example.com", "password123")

    user = rest_gateway.add_credits(2, 15)

    assert user.credits == 65


# ---------------------- SUPABASE ----------------------
@pytest.fixture
def client():
    return MagicMock()


def result(rows):
    return SimpleNamespace(data=rows)


WORKER_ROW = {"id": 4, "name": "Ana", "phone": "555-0199", "area": "Harbour"}
COMPLAINT_ROW = {
    "id": 10, "user_id": "uuid-1", "name": "Lee", "location": "Dock 3", "description": "Oil drums",
    "photo": None, "status": "pending", "assigned_worker": None,
    "created_at": "2024-05-01T10:00:00+00:00", "updated_at": None,
}


def test_supabase_lists_complaints_with_worker(client):
    query = client.table.return_value.select.return_value.order.return_value
    query.execute.return_value = result([COMPLAINT_ROW])

    complaints = SupabaseGateway(client).list_complaints()

    client.table.assert_called_with("complaints")
    client.table.return_value.select.assert_called_with("*, assigned_worker:workers(*)")
    assert complaints[0].location == "Dock 3"
    assert complaints[0].user_id == "uuid-1"


def test_supabase_assign_only_updates_pending(client):
    table = client.table.return_value
    update = table.update.return_value.eq.return_value.eq.return_value
    update.execute.return_value = result([{**COMPLAINT_ROW, "status": "assigned"}])
    table.select.return_value.eq.return_value.execute.return_value = result(
        [{**COMPLAINT_ROW, "status": "assigned", "assigned_worker": WORKER_ROW}]
    )

    complaint = SupabaseGateway(client).assign_worker(10, 4)

    table.update.assert_called_once_with({"status": "assigned", "assigned_worker_id": 4})
    table.update.return_value.eq.return_value.eq.assert_called_once_with("status", "pending")
    assert complaint.assigned_worker.area == "Harbour"


def test_supabase_assign_without_matching_row_fails(client):
    table = client.table.return_value
    table.update.return_value.eq.return_value.eq.return_value.execute.return_value = result([])

    with pytest.raises(GatewayError):
        SupabaseGateway(client).assign_worker(10, 4)


def test_supabase_sdk_error_is_gateway_error(client):
    client.table.return_value.select.return_value.order.return_value.execute.side_effect = Exception("boom")

    with pytest.raises(GatewayError):
        SupabaseGateway(client).list_workers()


def test_supabase_add_credits_reads_then_writes(client):
    table = client.table.return_value
    table.select.return_value.eq.return_value.execute.return_value = result(
        [{"id": "uuid-1", "name": "Lee", "email": "lee@example.com", "role": "user", "credits": 40}]
    )
    table.update.return_value.eq.return_value.execute.return_value = result(
        [{"id": "uuid-1", "name": "Lee", "email": "lee@example.com", "role": "user", "credits": 55}]
    )

    profile = SupabaseGateway(client).add_credits("uuid-1", 15)

    table.update.assert_called_once_with({"credits": 55})
    assert profile.credits == 55


def test_supabase_add_credits_unknown_profile(client):
    client.table.return_value.select.return_value.eq.return_value.execute.return_value = result([])

    with pytest.raises(GatewayError):
        SupabaseGateway(client).add_credits("missing", 5)


def test_supabase_report_status(client):
    table = client.table.return_value
    table.update.return_value.eq.return_value.execute.return_value = result(
        [{"id": 3, "user_id": "uuid-1", "complaint_id": 10, "description": "Late", "status": "reviewed"}]
    )

    report = SupabaseGateway(client).set_report_status(3, ReportStatus.reviewed)

    table.update.assert_called_once_with({"status": "reviewed"})
    assert report.status == ReportStatus.reviewed
