import logging
import secrets
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from auth import create_access_token, default_profile, get_current_user, hash_password, require_admin, verify_password
from config import REDEEM_THRESHOLD
from database import Base, engine, get_db
from models import Complaint, RedeemCode, Report, User, Worker
from schemas import (
    AddCreditsSchema,
    AssignWorkerSchema,
    ComplaintCreateSchema,
    ComplaintEnvelope,
    ComplaintSchema,
    ComplaintStatus,
    ComplaintStatusSchema,
    LoginResponse,
    LoginSchema,
    ProfileSchema,
    RedeemCodeCreateSchema,
    RedeemCodeEnvelope,
    RedeemCodeSchema,
    RegisterSchema,
    ReportCreateSchema,
    ReportEnvelope,
    ReportSchema,
    ReportStatus,
    ReportStatusSchema,
    UserEnvelope,
    WorkerSchema,
)

logger = logging.getLogger(__name__)

# Status changes allowed through the status endpoints.
# pending -> assigned only happens through /assign.
COMPLAINT_STATUS_CHANGES = {
    ComplaintStatus.pending: {ComplaintStatus.cancelled},
    ComplaintStatus.assigned: {ComplaintStatus.completed, ComplaintStatus.cancelled},
    ComplaintStatus.completed: set(),
    ComplaintStatus.cancelled: set(),
}

REPORT_STATUS_CHANGES = {
    ReportStatus.pending: {ReportStatus.reviewed, ReportStatus.resolved},
    ReportStatus.reviewed: {ReportStatus.resolved},
    ReportStatus.resolved: set(),
}

Base.metadata.create_all(bind=engine)

app = FastAPI(title="EcoWaste API")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------- ROUTES ----------------------
@app.get("/")
def root():
    return {"message": "EcoWaste API is running!"}


# ---------------------- REGISTER ----------------------
@app.post("/api/auth/register", response_model=UserEnvelope)
def register(data: RegisterSchema, db: Session = Depends(get_db)):
    existing = db.query(User).filter(User.email == data.email).first()
    if existing:
        raise HTTPException(400, "Email already registered")

    defaults = default_profile(data.email)
    new_user = User(
        name=data.name,
        email=data.email,
        password=hash_password(data.password),
        role=defaults["role"],
        credits=defaults["credits"],
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    logger.info(f"[AUTH] Registered {new_user.email} as {new_user.role}")
    return UserEnvelope(success=True, user=ProfileSchema.model_validate(new_user))


# ---------------------- LOGIN ----------------------
@app.post("/api/auth/login", response_model=LoginResponse)
def login(data: LoginSchema, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email).first()

    if not user or not verify_password(data.password, user.password):
        logger.info(f"[AUTH] Failed login for {data.email}")
        return JSONResponse(
            status_code=401,
            content={"success": False, "message": "Invalid email or password"},
        )

    token = create_access_token({"sub": str(user.id), "role": user.role})
    return LoginResponse(success=True, user=ProfileSchema.model_validate(user), token=token)


# ---------------------- CURRENT USER ----------------------
@app.get("/api/auth/me", response_model=ProfileSchema)
def read_me(current_user: User = Depends(get_current_user)):
    return ProfileSchema.model_validate(current_user)


# ---------------------- COMPLAINTS ----------------------
def get_complaint_or_404(db: Session, complaint_id: int) -> Complaint:
    complaint = db.query(Complaint).filter(Complaint.id == complaint_id).first()
    if not complaint:
        raise HTTPException(status_code=404, detail="Complaint not found")
    return complaint


@app.get("/api/complaints", response_model=list[ComplaintSchema])
def get_all_complaints(
    role: Optional[str] = None,
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    # role=admin lists everything; otherwise a userId narrows to one citizen
    query = db.query(Complaint)
    if role != "admin" and user_id is not None:
        query = query.filter(Complaint.user_id == user_id)
    complaints = query.order_by(Complaint.created_at.desc(), Complaint.id.desc()).all()
    return [ComplaintSchema.model_validate(c) for c in complaints]


@app.post("/api/complaints", response_model=ComplaintEnvelope)
def submit_complaint(data: ComplaintCreateSchema, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == data.user_id).first()
    if not user:
        raise HTTPException(404, "User not found")

    new_complaint = Complaint(
        user_id=data.user_id,
        name=data.name,
        location=data.location,
        description=data.description,
        photo=data.photo,
        status=ComplaintStatus.pending.value,
    )
    db.add(new_complaint)
    db.commit()
    db.refresh(new_complaint)

    logger.info(f"[COMPLAINTS] #{new_complaint.id} submitted by user {user.id}")
    return ComplaintEnvelope(success=True, complaint=ComplaintSchema.model_validate(new_complaint))


@app.put("/api/complaints/{complaint_id}/assign", response_model=ComplaintEnvelope)
def assign_complaint(
    complaint_id: int,
    data: AssignWorkerSchema,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    complaint = get_complaint_or_404(db, complaint_id)
    if complaint.status != ComplaintStatus.pending.value:
        raise HTTPException(status_code=409, detail="Only pending complaints can be assigned")

    worker = db.query(Worker).filter(Worker.id == data.worker_id).first()
    if not worker:
        raise HTTPException(status_code=404, detail="Worker not found")

    complaint.assigned_worker_id = worker.id
    complaint.status = ComplaintStatus.assigned.value
    db.commit()
    db.refresh(complaint)

    logger.info(f"[COMPLAINTS] #{complaint.id} assigned to {worker.name} by {admin.email}")
    return ComplaintEnvelope(success=True, complaint=ComplaintSchema.model_validate(complaint))


@app.put("/api/complaints/{complaint_id}/status", response_model=ComplaintEnvelope)
def update_complaint_status(
    complaint_id: int,
    data: ComplaintStatusSchema,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    complaint = get_complaint_or_404(db, complaint_id)
    current = ComplaintStatus(complaint.status)
    if data.status not in COMPLAINT_STATUS_CHANGES[current]:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot change complaint status from {current.value} to {data.status.value}",
        )

    complaint.status = data.status.value
    db.commit()
    db.refresh(complaint)

    logger.info(f"[COMPLAINTS] #{complaint.id} {current.value} -> {complaint.status}")
    return ComplaintEnvelope(success=True, complaint=ComplaintSchema.model_validate(complaint))


# ---------------------- WORKERS ----------------------
@app.get("/api/workers", response_model=list[WorkerSchema])
def get_all_workers(db: Session = Depends(get_db)):
    workers = db.query(Worker).order_by(Worker.id).all()
    return [WorkerSchema.model_validate(w) for w in workers]


# ---------------------- USERS / CREDITS ----------------------
@app.get("/api/users", response_model=list[ProfileSchema])
def get_all_users(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    users = db.query(User).order_by(User.id).all()
    return [ProfileSchema.model_validate(u) for u in users]


@app.post("/api/users/{user_id}/credits", response_model=UserEnvelope)
def add_credits(
    user_id: int,
    data: AddCreditsSchema,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(404, "User not found")

    user.credits = user.credits + data.credits
    db.commit()
    db.refresh(user)

    logger.info(f"[CREDITS] +{data.credits} to user {user.id} (now {user.credits})")
    return UserEnvelope(success=True, user=ProfileSchema.model_validate(user))


# ---------------------- REPORTS ----------------------
@app.get("/api/reports", response_model=list[ReportSchema])
def get_all_reports(db: Session = Depends(get_db)):
    reports = db.query(Report).order_by(Report.created_at.desc(), Report.id.desc()).all()
    return [ReportSchema.model_validate(r) for r in reports]


@app.post("/api/reports", response_model=ReportEnvelope)
def submit_report(data: ReportCreateSchema, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == data.user_id).first()
    if not user:
        raise HTTPException(404, "User not found")

    report = Report(
        user_id=data.user_id,
        complaint_id=data.complaint_id,
        description=data.description,
        status=ReportStatus.pending.value,
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    return ReportEnvelope(success=True, report=ReportSchema.model_validate(report))


@app.put("/api/reports/{report_id}/status", response_model=ReportEnvelope)
def update_report_status(
    report_id: int,
    data: ReportStatusSchema,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    report = db.query(Report).filter(Report.id == report_id).first()
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")

    current = ReportStatus(report.status)
    if data.status not in REPORT_STATUS_CHANGES[current]:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot change report status from {current.value} to {data.status.value}",
        )

    report.status = data.status.value
    db.commit()
    db.refresh(report)
    return ReportEnvelope(success=True, report=ReportSchema.model_validate(report))


# ---------------------- REDEEM CODES ----------------------
@app.get("/api/redeem-codes", response_model=list[RedeemCodeSchema])
def get_redeem_codes(db: Session = Depends(get_db)):
    codes = db.query(RedeemCode).order_by(RedeemCode.created_at.desc(), RedeemCode.id.desc()).all()
    return [RedeemCodeSchema.model_validate(c) for c in codes]


@app.post("/api/redeem-codes", response_model=RedeemCodeEnvelope)
def generate_redeem_code(data: RedeemCodeCreateSchema, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == data.user_id).first()
    if not user:
        raise HTTPException(404, "User not found")
    if user.credits < REDEEM_THRESHOLD:
        raise HTTPException(400, f"At least {REDEEM_THRESHOLD} credits are required to redeem")

    user.credits = user.credits - REDEEM_THRESHOLD
    code = RedeemCode(code=f"ECO-{secrets.token_hex(4).upper()}", user_id=user.id)
    db.add(code)
    db.commit()
    db.refresh(code)

    logger.info(f"[CREDITS] Redeem code {code.code} generated for user {user.id}")
    return RedeemCodeEnvelope(success=True, redeem_code=RedeemCodeSchema.model_validate(code))
