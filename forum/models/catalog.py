from datetime import date, datetime, time
from typing import Literal

from pydantic import AwareDatetime, BaseModel, Field, field_validator

from forum.models.bookings import RegenerationResult


def _clean_name(v: str, limit: int = 200) -> str:
    v = v.strip()
    if not v or len(v) > limit:
        raise ValueError(f"must be 1-{limit} characters")
    return v


def _clean_email(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if "@" not in v or len(v) > 320:
        raise ValueError("invalid email address")
    return v


# Events


class EventCreate(BaseModel):
    name: str
    event_date: date
    location: str | None = None
    interview_duration_minutes: int = Field(default=20, gt=0)
    buffer_minutes: int = Field(default=5, ge=0)
    slots_per_time: int = Field(default=2, ge=1)
    phase1_booking_limit: int = Field(default=3, gt=0)
    phase2_booking_limit: int = Field(default=6, gt=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_name(v)


class EventUpdate(BaseModel):
    name: str | None = None
    event_date: date | None = None
    location: str | None = None
    interview_duration_minutes: int | None = Field(default=None, gt=0)
    buffer_minutes: int | None = Field(default=None, ge=0)
    slots_per_time: int | None = Field(default=None, ge=1)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        return _clean_name(v) if v is not None else v


class Event(BaseModel):
    id: int
    name: str
    event_date: date
    location: str | None = None
    is_active: bool
    phase_mode: str
    current_phase: int
    phase1_start: datetime | None = None
    phase1_end: datetime | None = None
    phase2_start: datetime | None = None
    phase2_end: datetime | None = None
    phase1_booking_limit: int
    phase2_booking_limit: int
    interview_duration_minutes: int
    buffer_minutes: int
    slots_per_time: int
    created_at: datetime
    updated_at: datetime


class EventUpdated(BaseModel):
    event: Event
    regeneration: RegenerationResult | None = None


class PhaseConfigRequest(BaseModel):
    phase_mode: Literal["manual", "automatic"]
    current_phase: int = Field(default=0, ge=0, le=2)
    phase1_start: AwareDatetime | None = None
    phase1_end: AwareDatetime | None = None
    phase2_start: AwareDatetime | None = None
    phase2_end: AwareDatetime | None = None
    phase1_booking_limit: int = 3
    phase2_booking_limit: int = 6


class PhaseStatus(BaseModel):
    event_id: int
    phase_mode: str
    current_phase: int
    status: str
    booking_open: bool
    max_bookings: int
    phase1_start: datetime | None = None
    phase1_end: datetime | None = None
    phase2_start: datetime | None = None
    phase2_end: datetime | None = None
    phase1_booking_limit: int
    phase2_booking_limit: int


class TimeRangeCreate(BaseModel):
    day_date: date
    start_time: time
    end_time: time


class TimeRange(BaseModel):
    id: int
    event_id: int
    day_date: date
    start_time: time
    end_time: time


class TimeRangeCreated(BaseModel):
    time_range: TimeRange
    regeneration: RegenerationResult


# Companies and registrations


class CompanyCreate(BaseModel):
    name: str
    email: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return _clean_email(v)


class Company(BaseModel):
    id: int
    name: str
    email: str | None = None
    verification_status: str
    is_verified: bool
    verified_at: datetime | None = None
    created_at: datetime


class VerificationRequest(BaseModel):
    is_verified: bool


class CompanyVerified(BaseModel):
    company: Company
    regenerations: list[RegenerationResult] = []


class RegistrationCreate(BaseModel):
    company_id: int = Field(gt=0)


class RegistrationDecision(BaseModel):
    status: Literal["pending", "approved", "rejected"]
    notes: str | None = Field(default=None, max_length=2000)


class Registration(BaseModel):
    id: int
    event_id: int
    event_name: str
    company_id: int
    company_name: str
    status: str
    notes: str | None = None
    created_at: datetime
    decided_at: datetime | None = None


class RegistrationDecided(BaseModel):
    registration: Registration
    regeneration: RegenerationResult | None = None


# Offers


class OfferFields(BaseModel):
    event_id: int | None = None
    title: str | None = None
    description: str | None = None
    category: str | None = None
    department: str | None = None
    duration: str | None = None
    is_paid: bool | None = None
    is_remote: bool | None = None
    skills: list[str] | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        return _clean_name(v) if v is not None else v

    # These columns are NOT NULL; omit them to leave them unchanged.
    # Defaults are not validated, so only an explicit null reaches this.
    @field_validator("title", "description", "is_paid", "is_remote", "skills")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class OfferCreate(OfferFields):
    company_id: int = Field(gt=0)
    title: str


class Offer(BaseModel):
    id: int
    company_id: int
    event_id: int | None = None
    title: str
    description: str
    category: str | None = None
    department: str | None = None
    duration: str | None = None
    is_paid: bool
    is_remote: bool
    skills: list[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


# Students


class StudentCreate(BaseModel):
    full_name: str
    email: str
    is_deprioritized: bool = False

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _clean_email(v)


class Student(BaseModel):
    id: int
    full_name: str
    email: str
    is_deprioritized: bool
    created_at: datetime


class HeadStartRequest(BaseModel):
    is_deprioritized: bool


class StudentEventStats(BaseModel):
    event_id: int
    event_name: str
    confirmed: int
    cancelled: int
    phase1_bookings: int
    phase2_bookings: int


# Analytics


class RegistrationCounts(BaseModel):
    pending: int
    approved: int
    rejected: int


class EventAnalytics(BaseModel):
    event_id: int
    event_name: str
    event_date: date
    is_active: bool
    total_slots: int
    inactive_slots: int
    total_seats: int
    companies_with_slots: int
    confirmed_bookings: int
    cancelled_bookings: int
    students_booked: int
    phase1_bookings: int
    phase2_bookings: int
    active_offers: int
    registrations: RegistrationCounts
    booking_rate: float
