import logging
from typing import Callable, List, Optional

import requests
from pydantic import ValidationError

from config import API_TIMEOUT, API_URL
from schemas import (
    ComplaintSchema,
    ComplaintStatus,
    LoginResponse,
    ProfileSchema,
    RecordId,
    RedeemCodeSchema,
    ReportSchema,
    ReportStatus,
    WorkerSchema,
)

logger = logging.getLogger(__name__)

COMPLAINT_WITH_WORKER = "*, assigned_worker:workers(*)"


class GatewayError(Exception):
    """Any failed round trip: transport, auth or server side. Callers do not tell them apart."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _parse(schema, payload):
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise GatewayError(f"Unexpected {schema.__name__} payload: {e}") from e


def _parse_list(schema, payload) -> list:
    if not isinstance(payload, list):
        raise GatewayError(f"Expected a list of {schema.__name__}")
    return [_parse(schema, item) for item in payload]


# ---------------------- REST BACKEND ----------------------
class RestGateway:
    """Single request/response calls against the /api REST backend."""

    def __init__(
        self,
        api_url: str = API_URL,
        http=None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        timeout: Optional[float] = API_TIMEOUT,
    ):
        self.api_url = api_url.rstrip("/")
        # Anything with a requests-style request(): a requests.Session or a test client
        self.http = http if http is not None else requests.Session()
        self.token_provider = token_provider
        self.timeout = timeout

    def _request(self, method: str, path: str, json=None, params=None):
        headers = {}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self.http.request(
                method,
                f"{self.api_url}{path}",
                json=json,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"[GATEWAY] {method} {path} failed: {e}")
            raise GatewayError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            logger.warning(f"[GATEWAY] {method} {path} returned {response.status_code}")
            raise GatewayError(f"{method} {path} returned {response.status_code}", response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise GatewayError(f"{method} {path} returned invalid JSON") from e

    def _mutate(self, method: str, path: str, body: dict, key: str, schema):
        data = self._request(method, path, json=body)
        if not isinstance(data, dict) or not data.get("success") or data.get(key) is None:
            raise GatewayError(f"{method} {path} was not successful")
        return _parse(schema, data[key])

    # Auth
    def login(self, email: str, password: str) -> LoginResponse:
        data = self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        if not isinstance(data, dict) or not data.get("success"):
            raise GatewayError("Login was not successful")
        return _parse(LoginResponse, data)

    # Complaints
    def list_complaints(self) -> List[ComplaintSchema]:
        return _parse_list(ComplaintSchema, self._request("GET", "/api/complaints", params={"role": "admin"}))

    def assign_worker(self, complaint_id: RecordId, worker_id: RecordId) -> ComplaintSchema:
        return self._mutate(
            "PUT", f"/api/complaints/{complaint_id}/assign", {"workerId": worker_id}, "complaint", ComplaintSchema
        )

    def set_complaint_status(self, complaint_id: RecordId, status: ComplaintStatus) -> ComplaintSchema:
        return self._mutate(
            "PUT",
            f"/api/complaints/{complaint_id}/status",
            {"status": ComplaintStatus(status).value},
            "complaint",
            ComplaintSchema,
        )

    # Workers
    def list_workers(self) -> List[WorkerSchema]:
        return _parse_list(WorkerSchema, self._request("GET", "/api/workers"))

    # Users
    def list_users(self) -> List[ProfileSchema]:
        return _parse_list(ProfileSchema, self._request("GET", "/api/users"))

    def add_credits(self, user_id: RecordId, amount: int) -> ProfileSchema:
        return self._mutate("POST", f"/api/users/{user_id}/credits", {"credits": amount}, "user", ProfileSchema)

    # Reports
    def list_reports(self) -> List[ReportSchema]:
        return _parse_list(ReportSchema, self._request("GET", "/api/reports"))

    def set_report_status(self, report_id: RecordId, status: ReportStatus) -> ReportSchema:
        return self._mutate(
            "PUT", f"/api/reports/{report_id}/status", {"status": ReportStatus(status).value}, "report", ReportSchema
        )

    # Redeem codes
    def list_redeem_codes(self) -> List[RedeemCodeSchema]:
        return _parse_list(RedeemCodeSchema, self._request("GET", "/api/redeem-codes"))


# ---------------------- HOSTED BACKEND ----------------------
class SupabaseGateway:
    """The same operations over the Supabase tables."""

    def __init__(self, client):
        self.client = client

    def _execute(self, builder, what: str) -> list:
        try:
            response = builder.execute()
        except Exception as e:
            logger.warning(f"[GATEWAY] {what} failed: {e}")
            raise GatewayError(f"{what} failed: {e}") from e
        return response.data if response.data is not None else []

    def _single(self, rows: list, what: str) -> dict:
        if not rows:
            raise GatewayError(f"{what} returned no record")
        return rows[0]

    # Complaints
    def list_complaints(self) -> List[ComplaintSchema]:
        rows = self._execute(
            self.client.table("complaints").select(COMPLAINT_WITH_WORKER).order("created_at", desc=True),
            "list complaints",
        )
        return _parse_list(ComplaintSchema, rows)

    def _get_complaint(self, complaint_id: RecordId) -> ComplaintSchema:
        rows = self._execute(
            self.client.table("complaints").select(COMPLAINT_WITH_WORKER).eq("id", complaint_id),
            f"get complaint {complaint_id}",
        )
        return _parse(ComplaintSchema, self._single(rows, f"get complaint {complaint_id}"))

    def assign_worker(self, complaint_id: RecordId, worker_id: RecordId) -> ComplaintSchema:
        rows = self._execute(
            self.client.table("complaints")
            .update({"status": ComplaintStatus.assigned.value, "assigned_worker_id": worker_id})
            .eq("id", complaint_id)
            .eq("status", ComplaintStatus.pending.value),
            f"assign complaint {complaint_id}",
        )
        self._single(rows, f"assign complaint {complaint_id}")
        return self._get_complaint(complaint_id)

    def set_complaint_status(self, complaint_id: RecordId, status: ComplaintStatus) -> ComplaintSchema:
        rows = self._execute(
            self.client.table("complaints").update({"status": ComplaintStatus(status).value}).eq("id", complaint_id),
            f"update complaint {complaint_id}",
        )
        self._single(rows, f"update complaint {complaint_id}")
        return self._get_complaint(complaint_id)

    # Workers
    def list_workers(self) -> List[WorkerSchema]:
        rows = self._execute(self.client.table("workers").select("*").order("id"), "list workers")
        return _parse_list(WorkerSchema, rows)

    # Users
    def list_users(self) -> List[ProfileSchema]:
        rows = self._execute(self.client.table("profiles").select("*").order("name"), "list profiles")
        return _parse_list(ProfileSchema, rows)

    def get_profile(self, user_id: RecordId) -> Optional[ProfileSchema]:
        rows = self._execute(
            self.client.table("profiles").select("*").eq("id", user_id), f"get profile {user_id}"
        )
        return _parse(ProfileSchema, rows[0]) if rows else None

    def create_profile(self, profile: ProfileSchema) -> ProfileSchema:
        rows = self._execute(
            self.client.table("profiles").insert(profile.model_dump(mode="json")),
            f"create profile {profile.id}",
        )
        return _parse(ProfileSchema, self._single(rows, f"create profile {profile.id}"))

    def set_credits(self, user_id: RecordId, credits: int) -> ProfileSchema:
        rows = self._execute(
            self.client.table("profiles").update({"credits": credits}).eq("id", user_id),
            f"update credits of {user_id}",
        )
        return _parse(ProfileSchema, self._single(rows, f"update credits of {user_id}"))

    def add_credits(self, user_id: RecordId, amount: int) -> ProfileSchema:
        # PostgREST has no increment; read then write
        profile = self.get_profile(user_id)
        if profile is None:
            raise GatewayError(f"Profile {user_id} not found")
        return self.set_credits(user_id, profile.credits + amount)

    # Reports
    def list_reports(self) -> List[ReportSchema]:
        rows = self._execute(
            self.client.table("reports").select("*").order("created_at", desc=True), "list reports"
        )
        return _parse_list(ReportSchema, rows)

    def set_report_status(self, report_id: RecordId, status: ReportStatus) -> ReportSchema:
        rows = self._execute(
            self.client.table("reports").update({"status": ReportStatus(status).value}).eq("id", report_id),
            f"update report {report_id}",
        )
        return _parse(ReportSchema, self._single(rows, f"update report {report_id}"))

    # Redeem codes
    def list_redeem_codes(self) -> List[RedeemCodeSchema]:
        rows = self._execute(
            self.client.table("redeem_codes").select("*").order("created_at", desc=True), "list redeem codes"
        )
        return _parse_list(RedeemCodeSchema, rows)
