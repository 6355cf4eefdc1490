from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text, ForeignKey, Enum, Boolean
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base
import enum


class JobStatus(str, enum.Enum):
    """Job lifecycle. Ordered by convention only — any status can be set from any other."""
    DRAFT = "draft"
    QUOTING = "quoting"
    QUOTED = "quoted"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    INVOICED = "invoiced"
    PAID = "paid"


class LabourMode(str, enum.Enum):
    DAYS = "days"
    FIXED = "fixed"


class User(Base):
    """Business account — owns customers, jobs and one settings row."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    auth_tokens = relationship("AuthToken", back_populates="user", cascade="all, delete-orphan")
    customers = relationship("Customer", back_populates="user", cascade="all, delete-orphan")
    settings = relationship("BusinessSettings", back_populates="user", uselist=False, cascade="all, delete-orphan")


class AuthToken(Base):
    """JWT refresh token storage — access tokens are stateless."""
    __tablename__ = "auth_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    token_hash = Column(String, nullable=False)
    token_type = Column(String, default="refresh")
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="auth_tokens")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    phone = Column(String)
    email = Column(String)
    address = Column(Text)  # newline-separated lines, printed verbatim on documents
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="customers")
    # Deleting a customer deletes all of its jobs
    jobs = relationship("Job", back_populates="customer", cascade="all, delete-orphan")


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)  # customer-visible
    notes = Column(Text)  # internal only, never printed
    status = Column(Enum(JobStatus), default=JobStatus.DRAFT, nullable=False)
    job_address = Column(Text)

    # Dates
    quote_date = Column(DateTime, nullable=True)
    quote_valid_until = Column(DateTime, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    invoice_date = Column(Date, nullable=True)
    paid_date = Column(Date, nullable=True)

    # Materials
    materials_cost = Column(Float, nullable=True)
    materials_notes = Column(Text)

    # Labour — NULL mode means a row written before the mode was stored
    labour_mode = Column(Enum(LabourMode), nullable=True)
    labour_days = Column(Float, nullable=True)
    labour_day_rate = Column(Float, nullable=True)
    labour_cost = Column(Float, nullable=True)

    # Other
    other_costs = Column(Float, nullable=True)
    other_costs_notes = Column(Text)

    # Totals as of the last save — not recomputed on read
    subtotal = Column(Float, nullable=True)
    vat_amount = Column(Float, nullable=True)
    total = Column(Float, nullable=True)

    # Invoice
    invoice_number = Column(Integer, nullable=True)
    payment_reference = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="jobs")


class BusinessSettings(Base):
    """One row per business: branding, VAT, bank details, message templates, defaults."""
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Business details
    business_name = Column(String, nullable=True)
    contact_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    logo_url = Column(String, nullable=True)

    # Financial
    default_day_rate = Column(Float, nullable=True)
    vat_registered = Column(Boolean, default=False, nullable=False)
    vat_number = Column(String, nullable=True)
    bank_details = Column(Text, nullable=True)  # newline-separated lines

    # Message templates
    quote_message_template = Column(Text, nullable=True)
    invoice_message_template = Column(Text, nullable=True)

    default_quote_validity_days = Column(Integer, default=30, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="settings")
