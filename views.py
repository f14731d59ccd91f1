"""Admin dashboard views.

Each manager is mounted with a gateway and a notifier, loads its collection,
derives its counters from what was fetched, and merges mutation results back
into its local list by id.
"""
import logging
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Set

from gateways import GatewayError
from schemas import (
    ComplaintSchema,
    ComplaintStatus,
    ProfileSchema,
    RecordId,
    RedeemCodeSchema,
    ReportSchema,
    ReportStatus,
    WorkerSchema,
)
from session_store import SessionStore
from utils.notifications import Notifier

logger = logging.getLogger(__name__)

StatusBadge = namedtuple("StatusBadge", ["label", "variant"])
CreditLevel = namedtuple("CreditLevel", ["name", "min_credits"])

# Every status has a badge; tests check the tables stay exhaustive
COMPLAINT_BADGES: Dict[ComplaintStatus, StatusBadge] = {
    ComplaintStatus.pending: StatusBadge("Pending", "secondary"),
    ComplaintStatus.assigned: StatusBadge("Assigned", "default"),
    ComplaintStatus.completed: StatusBadge("Completed", "default"),
    ComplaintStatus.cancelled: StatusBadge("Cancelled", "destructive"),
}

REPORT_BADGES: Dict[ReportStatus, StatusBadge] = {
    ReportStatus.pending: StatusBadge("Pending", "secondary"),
    ReportStatus.reviewed: StatusBadge("Reviewed", "default"),
    ReportStatus.resolved: StatusBadge("Resolved", "default"),
}

# Highest first
CREDIT_LEVELS = [
    CreditLevel("Eco Champion", 200),
    CreditLevel("Green Hero", 100),
    CreditLevel("Eco Warrior", 50),
    CreditLevel("Green Beginner", 0),
]

REWARD_ELIGIBLE_CREDITS = 100
RECENT_REDEMPTIONS = 5


class ActionNotAvailable(Exception):
    """The record's current status does not offer this action."""


def complaint_badge(status: ComplaintStatus) -> StatusBadge:
    return COMPLAINT_BADGES[ComplaintStatus(status)]


def report_badge(status: ReportStatus) -> StatusBadge:
    return REPORT_BADGES[ReportStatus(status)]


def credit_level(credits: int) -> CreditLevel:
    for level in CREDIT_LEVELS:
        if credits >= level.min_credits:
            return level
    return CREDIT_LEVELS[-1]


def _fetch_together(first, second):
    """Run two fetches concurrently and return both results, or raise the first failure."""
    with ThreadPoolExecutor(max_workers=2) as pool:
        a = pool.submit(first)
        b = pool.submit(second)
        return a.result(), b.result()


def _replace(records: list, updated) -> list:
    return [updated if r.id == updated.id else r for r in records]


def _find(records: list, record_id: RecordId):
    for record in records:
        if str(record.id) == str(record_id):
            return record
    return None


# ---------------------- COMPLAINTS ----------------------
class ComplaintsManager:
    def __init__(self, gateway, notifier: Notifier):
        self.gateway = gateway
        self.notifier = notifier
        self.complaints: List[ComplaintSchema] = []
        self.workers: List[WorkerSchema] = []
        self.loading = True
        self.assigning_to: Optional[RecordId] = None
        self.load_failed = False

    def load(self) -> None:
        try:
            complaints, workers = _fetch_together(self.gateway.list_complaints, self.gateway.list_workers)
        except GatewayError:
            self.load_failed = True
            self.notifier.error("Error loading data")
        else:
            self.complaints = complaints
            self.workers = workers
        finally:
            self.loading = False

    def stats(self) -> dict:
        return {
            "pending": sum(1 for c in self.complaints if c.status == ComplaintStatus.pending),
            "assigned": sum(1 for c in self.complaints if c.status == ComplaintStatus.assigned),
            "completed": sum(1 for c in self.complaints if c.status == ComplaintStatus.completed),
            "total": len(self.complaints),
        }

    @staticmethod
    def actions_for(complaint: ComplaintSchema) -> Set[str]:
        actions = {"view"}
        if complaint.status == ComplaintStatus.pending:
            actions.add("assign")
        elif complaint.status == ComplaintStatus.assigned:
            actions.add("complete")
        return actions

    def _require(self, complaint_id: RecordId, action: str) -> ComplaintSchema:
        complaint = _find(self.complaints, complaint_id)
        if complaint is None or action not in self.actions_for(complaint):
            raise ActionNotAvailable(f"'{action}' is not available for complaint {complaint_id}")
        return complaint

    def assign_worker(self, complaint_id: RecordId, worker_id: Optional[RecordId]) -> bool:
        complaint = self._require(complaint_id, "assign")
        if worker_id in (None, ""):
            return False
        worker = _find(self.workers, worker_id)
        if worker is None:
            raise ActionNotAvailable(f"Worker {worker_id} is not one of the listed workers")

        self.assigning_to = complaint.id
        try:
            updated = self.gateway.assign_worker(complaint.id, worker.id)
        except GatewayError:
            self.notifier.error("Error assigning worker")
            return False
        finally:
            self.assigning_to = None

        self.complaints = _replace(self.complaints, updated)
        self.notifier.notify("Worker assigned successfully!", "The complaint has been assigned to a worker.")
        return True

    def mark_complete(self, complaint_id: RecordId) -> bool:
        complaint = self._require(complaint_id, "complete")
        return self._update_status(complaint, ComplaintStatus.completed)

    def _update_status(self, complaint: ComplaintSchema, status: ComplaintStatus) -> bool:
        try:
            updated = self.gateway.set_complaint_status(complaint.id, status)
        except GatewayError:
            self.notifier.error("Error updating status")
            return False

        self.complaints = _replace(self.complaints, updated)
        self.notifier.notify("Status updated", f"Complaint status changed to {status.value}.")
        return True

    def render(self) -> dict:
        items = []
        for c in self.complaints:
            badge = complaint_badge(c.status)
            items.append({
                "complaint": c.model_dump(mode="json", by_alias=True),
                "badge": badge._asdict(),
                "actions": sorted(self.actions_for(c)),
            })
        return {
            "loading": self.loading,
            "stats": self.stats(),
            "complaints": items,
            "workers": [w.model_dump(mode="json", by_alias=True) for w in self.workers],
            "placeholder": None if self.complaints else "No Complaints",
        }


# ---------------------- REPORTS ----------------------
class ReportsManager:
    def __init__(self, gateway, notifier: Notifier):
        self.gateway = gateway
        self.notifier = notifier
        self.reports: List[ReportSchema] = []
        self.loading = True
        self.load_failed = False

    def load(self) -> None:
        try:
            self.reports = self.gateway.list_reports()
        except GatewayError:
            self.load_failed = True
            self.notifier.error("Error loading reports")
        finally:
            self.loading = False

    def stats(self) -> dict:
        return {
            status.value: sum(1 for r in self.reports if r.status == status)
            for status in ReportStatus
        }

    @staticmethod
    def actions_for(report: ReportSchema) -> Set[str]:
        actions = {"view"}
        if report.status == ReportStatus.pending:
            actions.update({"review", "resolve"})
        elif report.status == ReportStatus.reviewed:
            actions.add("resolve")
        return actions

    def mark_reviewed(self, report_id: RecordId) -> bool:
        return self._update_status(report_id, "review", ReportStatus.reviewed)

    def resolve(self, report_id: RecordId) -> bool:
        return self._update_status(report_id, "resolve", ReportStatus.resolved)

    def _update_status(self, report_id: RecordId, action: str, status: ReportStatus) -> bool:
        report = _find(self.reports, report_id)
        if report is None or action not in self.actions_for(report):
            raise ActionNotAvailable(f"'{action}' is not available for report {report_id}")

        try:
            self.gateway.set_report_status(report.id, status)
        except GatewayError:
            self.notifier.error("Error updating status")
            return False

        self.reports = _replace(self.reports, report.model_copy(update={"status": status}))
        self.notifier.notify("Status updated", f"Report status changed to {status.value}.")
        return True

    def priority_notice(self) -> Optional[str]:
        pending = self.stats()[ReportStatus.pending.value]
        if not pending:
            return None
        return (
            f"You have {pending} pending report(s) that require immediate attention. "
            "These reports indicate potential issues with worker performance."
        )

    def render(self) -> dict:
        return {
            "loading": self.loading,
            "stats": self.stats(),
            "reports": [
                {
                    "report": r.model_dump(mode="json", by_alias=True),
                    "badge": report_badge(r.status)._asdict(),
                    "actions": sorted(self.actions_for(r)),
                }
                for r in self.reports
            ],
            "placeholder": None if self.reports else "No Reports",
            "priorityNotice": self.priority_notice(),
        }


# ---------------------- CREDITS ----------------------
class CreditsManager:
    def __init__(self, gateway, notifier: Notifier, session: Optional[SessionStore] = None):
        self.gateway = gateway
        self.notifier = notifier
        self.session = session
        self.users: List[ProfileSchema] = []
        self.redeem_codes: List[RedeemCodeSchema] = []
        self.loading = True
        self.load_failed = False

    def load(self) -> None:
        try:
            users, codes = _fetch_together(self.gateway.list_users, self.gateway.list_redeem_codes)
        except GatewayError:
            self.load_failed = True
            self.notifier.error("Error loading data")
        else:
            self.users = users
            self.redeem_codes = codes
        finally:
            self.loading = False

    def stats(self) -> dict:
        total = sum(u.credits for u in self.users)
        return {
            "totalCredits": total,
            "eligibleForRewards": sum(1 for u in self.users if u.credits >= REWARD_ELIGIBLE_CREDITS),
            "codesGenerated": len(self.redeem_codes),
            "averageCredits": round(total / len(self.users)) if self.users else 0,
        }

    def recent_redemptions(self) -> List[dict]:
        recent = []
        for code in self.redeem_codes[:RECENT_REDEMPTIONS]:
            owner = _find(self.users, code.user_id)
            recent.append({
                "code": code.code,
                "userName": owner.name if owner else f"User {code.user_id}",
                "createdAt": code.created_at.isoformat() if code.created_at else None,
                "state": "Used" if code.redeemed else "Active",
            })
        return recent

    def add_credits(self, user_id: RecordId, amount) -> bool:
        user = _find(self.users, user_id)
        if user is None or amount in (None, ""):
            return False

        # Whole numbers only; floats and booleans are not coerced
        try:
            if isinstance(amount, bool) or not isinstance(amount, (int, str)):
                raise ValueError(amount)
            credits = int(amount)
        except ValueError:
            credits = 0
        if credits <= 0:
            self.notifier.error("Invalid amount", "Please enter a positive number of credits.")
            return False

        try:
            self.gateway.add_credits(user.id, credits)
        except GatewayError:
            self.notifier.error("Error adding credits")
            return False

        updated = user.model_copy(update={"credits": user.credits + credits})
        self.users = _replace(self.users, updated)
        # Keep the logged-in identity in step when admins credit themselves
        if self.session is not None and self.session.user is not None and self.session.user.id == user.id:
            try:
                self.session.update_credits(updated.credits)
            except GatewayError as e:
                logger.warning(f"[CREDITS] Session balance not refreshed: {e}")
        self.notifier.notify("Credits added successfully!", f"Added {credits} credits to {user.name}'s account.")
        return True

    def render(self) -> dict:
        return {
            "loading": self.loading,
            "stats": self.stats(),
            "users": [
                {**u.model_dump(mode="json", by_alias=True), "level": credit_level(u.credits).name}
                for u in self.users
            ],
            "recentRedemptions": self.recent_redemptions(),
            "hasMoreRedemptions": len(self.redeem_codes) > RECENT_REDEMPTIONS,
            "redemptionsPlaceholder": None if self.redeem_codes else "No redemption codes generated yet",
        }


# ---------------------- LOGIN ----------------------
class LoginView:
    def __init__(self, session: SessionStore, notifier: Notifier):
        self.session = session
        self.notifier = notifier
        self.error = ""
        self.is_loading = False

    def submit(self, email: str, password: str) -> bool:
        self.is_loading = True
        self.error = ""
        try:
            success = self.session.login(email, password)
        finally:
            self.is_loading = False

        if success:
            self.notifier.notify("Welcome back!", "You've been successfully logged in.")
        else:
            self.error = "Invalid email or password"
        return success

    def signup(self, email: str, password: str, name: str) -> bool:
        if not self.session.supports_signup:
            self.notifier.error("Sign up failed", "Sign up is not available with this backend.")
            return False

        if self.session.signup(email, password, name):
            self.notifier.notify("Account created!", "Welcome to EcoWaste.")
            return True
        self.notifier.error("Sign up failed", self.session.last_error or "")
        return False
