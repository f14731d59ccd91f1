from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base


# ------------------------------------
# USERS TABLE
# ------------------------------------
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(
        String(20),
        nullable=False,
        default="user",
        server_default=text("'user'")
    )  # user, admin
    credits = Column(Integer, nullable=False, default=0, server_default=text("0"))


# ------------------------------------
# WORKERS TABLE
# ------------------------------------
class Worker(Base):
    __tablename__ = "workers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    area = Column(String(255), nullable=False)


# ------------------------------------
# COMPLAINTS TABLE
# ------------------------------------
class Complaint(Base):
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    photo = Column(String, nullable=True)  # URL of the uploaded photo
    status = Column(
        String(20),
        nullable=False,
        default="pending",
        server_default=text("'pending'")
    )  # pending, assigned, completed, cancelled
    assigned_worker_id = Column(Integer, ForeignKey("workers.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    assigned_worker = relationship("Worker", lazy="joined")


# ------------------------------------
# REPORTS TABLE
# ------------------------------------
class Report(Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    # Not a foreign key: reports may outlive the complaint they reference
    complaint_id = Column(Integer, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(
        String(20),
        nullable=False,
        default="pending",
        server_default=text("'pending'")
    )  # pending, reviewed, resolved
    created_at = Column(DateTime(timezone=True), server_default=func.now())


# ------------------------------------
# REDEEM CODES TABLE
# ------------------------------------
class RedeemCode(Base):
    __tablename__ = "redeem_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(32), unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    redeemed = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())


# ------------------------------------
# CLIENT STORAGE TABLE
# ------------------------------------
class ClientStorageItem(Base):
    """Key/value row of the dashboard's local storage (user, token, hasSeenVideo)."""
    __tablename__ = "client_storage"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
