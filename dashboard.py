import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import API_URL, BACKEND_MODE, LOG_LEVEL
from gateways import RestGateway, SupabaseGateway
from schemas import DashboardAssignSchema, DashboardCreditsSchema, LoginSchema, SignupSchema
from session_store import HostedSessionStore, RestSessionStore, SessionStore
from storage import ClientStorage
from supabase_client import get_supabase
from utils.notifications import Notifier
from views import ActionNotAvailable, ComplaintsManager, CreditsManager, LoginView, ReportsManager

logger = logging.getLogger(__name__)


def create_dashboard(session: SessionStore, gateway) -> FastAPI:
    """Admin dashboard bound to one session store and one data gateway."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        session.close()

    app = FastAPI(title="EcoWaste Admin Dashboard", lifespan=lifespan)
    app.state.session = session
    app.state.gateway = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def require_admin():
        if not session.is_authenticated:
            raise HTTPException(status_code=401, detail="Not logged in")
        if not session.is_admin:
            raise HTTPException(status_code=403, detail="Admin access required")
        return session.user

    def session_state() -> dict:
        return {
            "user": session.user.model_dump(mode="json", by_alias=True) if session.user else None,
            "isLoading": session.is_loading,
            "hasSeenOnboarding": session.has_seen_onboarding,
            "supportsSignup": session.supports_signup,
        }

    def mounted(view_class, notifier: Notifier, **kwargs):
        view = view_class(gateway, notifier, **kwargs)
        view.load()
        return view

    def respond(view, notifier: Notifier, **extra) -> dict:
        return {**view.render(), **extra, "toasts": notifier.drain()}

    def perform(view, notifier: Notifier, action, *args):
        # A failed load already produced its toast; the local list is empty
        if view.load_failed:
            return respond(view, notifier, success=False)
        try:
            success = action(*args)
        except ActionNotAvailable as e:
            return JSONResponse(status_code=409, content={"detail": str(e), "toasts": notifier.drain()})
        return respond(view, notifier, success=success)

    # ---------------------- SESSION ----------------------
    @app.get("/session")
    def get_session():
        return session_state()

    @app.post("/login")
    def login(data: LoginSchema):
        notifier = Notifier()
        view = LoginView(session, notifier)
        success = view.submit(data.email, data.password)
        return {"success": success, "error": view.error, **session_state(), "toasts": notifier.drain()}

    @app.post("/signup")
    def signup(data: SignupSchema):
        notifier = Notifier()
        view = LoginView(session, notifier)
        success = view.signup(data.email, data.password, data.name)
        return {"success": success, **session_state(), "toasts": notifier.drain()}

    @app.post("/logout")
    def logout():
        session.logout()
        return session_state()

    @app.post("/onboarding/seen")
    def onboarding_seen():
        if not session.is_authenticated:
            raise HTTPException(status_code=401, detail="Not logged in")
        session.mark_onboarding_seen()
        return session_state()

    # ---------------------- COMPLAINTS ----------------------
    @app.get("/complaints")
    def complaints(admin=Depends(require_admin)):
        notifier = Notifier()
        return respond(mounted(ComplaintsManager, notifier), notifier)

    @app.post("/complaints/{complaint_id}/assign")
    def assign_worker(complaint_id: str, data: DashboardAssignSchema, admin=Depends(require_admin)):
        notifier = Notifier()
        view = mounted(ComplaintsManager, notifier)
        return perform(view, notifier, view.assign_worker, complaint_id, data.worker_id)

    @app.post("/complaints/{complaint_id}/complete")
    def complete(complaint_id: str, admin=Depends(require_admin)):
        notifier = Notifier()
        view = mounted(ComplaintsManager, notifier)
        return perform(view, notifier, view.mark_complete, complaint_id)

    # ---------------------- REPORTS ----------------------
    @app.get("/reports")
    def reports(admin=Depends(require_admin)):
        notifier = Notifier()
        return respond(mounted(ReportsManager, notifier), notifier)

    @app.post("/reports/{report_id}/review")
    def review(report_id: str, admin=Depends(require_admin)):
        notifier = Notifier()
        view = mounted(ReportsManager, notifier)
        return perform(view, notifier, view.mark_reviewed, report_id)

    @app.post("/reports/{report_id}/resolve")
    def resolve(report_id: str, admin=Depends(require_admin)):
        notifier = Notifier()
        view = mounted(ReportsManager, notifier)
        return perform(view, notifier, view.resolve, report_id)

    # ---------------------- CREDITS ----------------------
    @app.get("/credits")
    def credits(admin=Depends(require_admin)):
        notifier = Notifier()
        return respond(mounted(CreditsManager, notifier, session=session), notifier)

    @app.post("/credits/{user_id}")
    def add_credits(user_id: str, data: DashboardCreditsSchema, admin=Depends(require_admin)):
        notifier = Notifier()
        view = mounted(CreditsManager, notifier, session=session)
        return perform(view, notifier, view.add_credits, user_id, data.credits)

    return app


def build_dashboard() -> FastAPI:
    """Dashboard wired from the environment: ``uvicorn dashboard:build_dashboard --factory``."""
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    storage = ClientStorage()

    if BACKEND_MODE == "supabase":
        client = get_supabase()
        gateway = SupabaseGateway(client)
        session = HostedSessionStore(client, gateway, storage)
    else:
        gateway = RestGateway(API_URL)
        session = RestSessionStore(gateway, storage)
        gateway.token_provider = session.get_token

    session.restore()
    logger.info(f"[DASHBOARD] Using the {BACKEND_MODE} backend")
    return create_dashboard(session, gateway)
