from tests.conftest import token_for


# ---------------------- AUTH ----------------------
def test_login_returns_identity_and_token(backend):
    response = backend.post("/api/auth/login", json={"email": "admin@example.com", "password": "password123"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"]["email"] == "admin@example.com"
    assert body["user"]["role"] == "admin"
    assert "password" not in body["user"]


def test_login_with_wrong_password_is_rejected(backend):
    response = backend.post("/api/auth/login", json={"email": "john@example.com", "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid email or password"}


def test_register_provisions_default_role_and_credits(backend):
    response = backend.post(
        "/api/auth/register", json={"name": "Lee", "email": "lee@example.com", "password": "secret1"}
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["role"] == "user"
    assert user["credits"] == 50


def test_register_rejects_duplicate_email(backend):
    response = backend.post(
        "/api/auth/register", json={"name": "John", "email": "john@example.com", "password": "secret1"}
    )
    assert response.status_code == 400


def test_me_requires_valid_token(backend, user_headers):
    assert backend.get("/api/auth/me").status_code == 401
    assert backend.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401

    response = backend.get("/api/auth/me", headers=user_headers)
    assert response.json()["email"] == "john@example.com"


# ---------------------- COMPLAINTS ----------------------
def test_list_complaints_uses_camel_case(backend):
    complaints = backend.get("/api/complaints", params={"role": "admin"}).json()

    assert len(complaints) == 2
    first = complaints[0]
    assert {"userId", "assignedWorker", "createdAt", "updatedAt"} <= set(first)
    assert all(c["status"] == "pending" for c in complaints)


def test_list_complaints_for_one_citizen(backend):
    complaints = backend.get("/api/complaints", params={"userId": 2}).json()
    assert [c["name"] for c in complaints] == ["Jane Smith"]


def test_submit_complaint(backend):
    response = backend.post(
        "/api/complaints",
        json={"userId": 1, "name": "John Doe", "location": "Hill Lane", "description": "Broken bin"},
    )

    assert response.status_code == 200
    complaint = response.json()["complaint"]
    assert complaint["status"] == "pending"
    assert complaint["assignedWorker"] is None


def test_assign_requires_admin(backend, user_headers):
    assert backend.put("/api/complaints/1/assign", json={"workerId": 1}).status_code == 401
    assert backend.put("/api/complaints/1/assign", json={"workerId": 1}, headers=user_headers).status_code == 403


def test_assign_pending_complaint(backend, admin_headers):
    response = backend.put("/api/complaints/1/assign", json={"workerId": 2}, headers=admin_headers)

    assert response.status_code == 200
    complaint = response.json()["complaint"]
    assert complaint["status"] == "assigned"
    assert complaint["assignedWorker"] == {
        "id": 2, "name": "Maria Lopez", "phone": "555-0102", "area": "Central Market"
    }


def test_assign_non_pending_complaint_conflicts(backend, admin_headers):
    backend.put("/api/complaints/1/assign", json={"workerId": 1}, headers=admin_headers)

    response = backend.put("/api/complaints/1/assign", json={"workerId": 2}, headers=admin_headers)
    assert response.status_code == 409


def test_assign_unknown_worker(backend, admin_headers):
    response = backend.put("/api/complaints/1/assign", json={"workerId": 99}, headers=admin_headers)
    assert response.status_code == 404


def test_complete_assigned_complaint(backend, admin_headers):
    backend.put("/api/complaints/1/assign", json={"workerId": 1}, headers=admin_headers)

    response = backend.put("/api/complaints/1/status", json={"status": "completed"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["complaint"]["status"] == "completed"


def test_complete_pending_complaint_conflicts(backend, admin_headers):
    response = backend.put("/api/complaints/1/status", json={"status": "completed"}, headers=admin_headers)
    assert response.status_code == 409


def test_unknown_complaint_status_is_rejected(backend, admin_headers):
    response = backend.put("/api/complaints/1/status", json={"status": "archived"}, headers=admin_headers)
    assert response.status_code == 422


# ---------------------- USERS / CREDITS ----------------------
def test_add_credits(backend, admin_headers):
    response = backend.post("/api/users/1/credits", json={"credits": 25}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "user": {"id": 1, "name": "John Doe", "email": "john@example.com", "role": "user", "credits": 75},
    }


def test_add_non_positive_credits_is_rejected(backend, admin_headers):
    assert backend.post("/api/users/1/credits", json={"credits": 0}, headers=admin_headers).status_code == 422
    assert backend.post("/api/users/1/credits", json={"credits": -5}, headers=admin_headers).status_code == 422


def test_users_list_is_admin_only(backend, admin_headers, user_headers):
    assert backend.get("/api/users", headers=user_headers).status_code == 403
    users = backend.get("/api/users", headers=admin_headers).json()
    assert [u["email"] for u in users] == ["john@example.com", "jane@example.com", "admin@example.com"]


# ---------------------- REPORTS ----------------------
def test_report_status_moves_forward_only(backend, admin_headers):
    response = backend.put("/api/reports/1/status", json={"status": "reviewed"}, headers=admin_headers)
    assert response.json()["report"]["status"] == "reviewed"

    response = backend.put("/api/reports/1/status", json={"status": "pending"}, headers=admin_headers)
    assert response.status_code == 409

    response = backend.put("/api/reports/1/status", json={"status": "resolved"}, headers=admin_headers)
    assert response.json()["report"]["status"] == "resolved"


def test_submit_report(backend):
    response = backend.post("/api/reports", json={"userId": 2, "complaintId": 2, "description": "Rude worker"})

    assert response.status_code == 200
    assert response.json()["report"]["complaintId"] == 2
    assert len(backend.get("/api/reports").json()) == 2


# ---------------------- REDEEM CODES ----------------------
def test_redeem_code_needs_threshold(backend):
    response = backend.post("/api/redeem-codes", json={"userId": 1})
    assert response.status_code == 400
    assert backend.get("/api/redeem-codes").json() == []


def test_redeem_code_deducts_threshold(backend, admin_headers):
    backend.post("/api/users/1/credits", json={"credits": 70}, headers=admin_headers)

    response = backend.post("/api/redeem-codes", json={"userId": 1})

    assert response.status_code == 200
    code = response.json()["redeemCode"]
    assert code["code"].startswith("ECO-")
    assert code["redeemed"] is False
    me = backend.get("/api/auth/me", headers={"Authorization": f"Bearer {token_for(backend, 'john@example.com')}"})
    assert me.json()["credits"] == 20
