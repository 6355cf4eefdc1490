from pydantic import BaseModel, field_validator
from typing import Optional, List, Union
from datetime import date, datetime
from .models import JobStatus, LabourMode

# Cost inputs are taken as typed in the form — numbers or text.
# Unparseable text counts as 0 (see cost_calculator.parse_amount_or_zero).
AmountInput = Union[float, str, None]


def _required_text(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must not be blank")
    return value


# --- Customers ---

class CustomerBase(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value):
        return _required_text(value)


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value):
        # Only runs when a name is sent; an explicit null is rejected too
        return _required_text(value)


class Customer(CustomerBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


# --- Jobs ---

class JobWrite(BaseModel):
    """Job edit form. Every save replaces the stored cost and total fields."""
    customer_id: int
    title: str
    description: Optional[str] = None
    notes: Optional[str] = None
    status: JobStatus = JobStatus.DRAFT
    job_address: Optional[str] = None

    quote_date: Optional[datetime] = None
    quote_valid_until: Optional[datetime] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    invoice_date: Optional[date] = None
    paid_date: Optional[date] = None

    materials_cost: AmountInput = None
    materials_notes: Optional[str] = None

    labour_mode: LabourMode = LabourMode.DAYS
    labour_days: AmountInput = None
    labour_day_rate: AmountInput = None
    labour_fixed_cost: AmountInput = None

    other_costs: AmountInput = None
    other_costs_notes: Optional[str] = None

    invoice_number: Optional[int] = None
    payment_reference: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value):
        return _required_text(value)


class BreakdownRequest(BaseModel):
    materials_cost: AmountInput = None
    labour_mode: LabourMode = LabourMode.DAYS
    labour_days: AmountInput = None
    labour_day_rate: AmountInput = None
    labour_fixed_cost: AmountInput = None
    other_costs: AmountInput = None
    vat_registered: Optional[bool] = None  # None: use the business settings


class Breakdown(BaseModel):
    materials_total: float
    labour_total: float
    other_total: float
    subtotal: float
    vat_amount: float
    total: float

    class Config:
        from_attributes = True


class StatusUpdate(BaseModel):
    status: JobStatus


class Job(BaseModel):
    id: int
    customer_id: int
    title: str
    description: Optional[str] = None
    notes: Optional[str] = None
    status: JobStatus
    job_address: Optional[str] = None

    quote_date: Optional[datetime] = None
    quote_valid_until: Optional[datetime] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    invoice_date: Optional[date] = None
    paid_date: Optional[date] = None

    materials_cost: Optional[float] = None
    materials_notes: Optional[str] = None
    labour_mode: Optional[LabourMode] = None
    labour_days: Optional[float] = None
    labour_day_rate: Optional[float] = None
    labour_cost: Optional[float] = None
    other_costs: Optional[float] = None
    other_costs_notes: Optional[str] = None

    subtotal: Optional[float] = None
    vat_amount: Optional[float] = None
    total: Optional[float] = None

    invoice_number: Optional[int] = None
    payment_reference: Optional[str] = None
    created_at: datetime
    customer: Optional[Customer] = None

    class Config:
        from_attributes = True


# --- Settings ---

class BusinessSettingsBase(BaseModel):
    business_name: Optional[str] = None
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    logo_url: Optional[str] = None
    default_day_rate: Optional[float] = None
    vat_registered: bool = False
    vat_number: Optional[str] = None
    bank_details: Optional[str] = None
    quote_message_template: Optional[str] = None
    invoice_message_template: Optional[str] = None
    default_quote_validity_days: int = 30

    @field_validator("default_quote_validity_days")
    @classmethod
    def positive_validity_days(cls, value):
        if value < 1:
            raise ValueError("must be at least 1 day")
        return value


class BusinessSettings(BusinessSettingsBase):
    class Config:
        from_attributes = True


class TemplateVariables(BaseModel):
    quote: List[str]
    invoice: List[str]


class Message(BaseModel):
    message: str
