"""Role-specific dashboard payloads."""

from typing import Literal

from pydantic import BaseModel

from healthmate.schemas.admin import ActivityLogResponse
from healthmate.schemas.appointments import AppointmentResponse
from healthmate.schemas.prescriptions import PrescriptionResponse
from healthmate.schemas.vitals import VitalResponse


class PatientDashboard(BaseModel):
    """Patient home screen."""

    role: Literal["patient"] = "patient"
    greeting: str
    upcoming_appointments: list[AppointmentResponse]
    latest_vitals: list[VitalResponse]
    active_prescriptions: list[PrescriptionResponse]
    unread_notifications: int


class DoctorDashboard(BaseModel):
    """Doctor home screen."""

    role: Literal["doctor"] = "doctor"
    greeting: str
    todays_appointments: list[AppointmentResponse]
    status_counts: dict[str, int]
    open_slots: int
    total_patients: int


class AdminDashboard(BaseModel):
    """Admin home screen."""

    role: Literal["admin"] = "admin"
    greeting: str
    users_by_role: dict[str, int]
    active_users: int
    appointments_today: int
    recent_activity: list[ActivityLogResponse]
