"""Role-specific dashboard composition."""

from datetime import date

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.models.appointments import appointments
from healthmate.models.slots import available_slots
from healthmate.schemas.dashboard import AdminDashboard, DoctorDashboard, PatientDashboard
from healthmate.services.activity_log_service import ActivityLogService
from healthmate.services.appointment_service import AppointmentService
from healthmate.services.notification_service import NotificationService
from healthmate.services.prescription_service import PrescriptionService
from healthmate.services.profile_service import ProfileService
from healthmate.services.vital_service import VitalService


def greeting(profile: dict) -> str:
    """Welcome line shown on every dashboard."""
    first_name = profile["full_name"].split()[0] if profile["full_name"] else "there"
    if profile["role"] == "doctor":
        return f"Welcome back, Dr. {profile['full_name'].split()[-1]}"
    return f"Welcome back, {first_name}"


class DashboardService:
    """Builds the home screen for each role from the domain services."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def for_profile(
        self, profile: dict
    ) -> PatientDashboard | DoctorDashboard | AdminDashboard:
        """Dashboard matching the profile's role."""
        if profile["role"] == "doctor":
            return await self.doctor_dashboard(profile)
        if profile["role"] == "admin":
            return await self.admin_dashboard(profile)
        return await self.patient_dashboard(profile)

    async def patient_dashboard(self, profile: dict) -> PatientDashboard:
        patient_id = profile["id"]
        return PatientDashboard(
            greeting=greeting(profile),
            upcoming_appointments=await AppointmentService(self.db).upcoming_appointments(
                patient_id
            ),
            latest_vitals=await VitalService(self.db).latest_vitals(patient_id),
            active_prescriptions=await PrescriptionService(self.db).list_prescriptions(
                profile, active_only=True
            ),
            unread_notifications=await NotificationService(self.db).unread_count(patient_id),
        )

    async def doctor_dashboard(self, profile: dict) -> DoctorDashboard:
        doctor_id = profile["id"]
        appointment_service = AppointmentService(self.db)

        open_slots_stmt = (
            select(func.count())
            .select_from(available_slots)
            .where(
                and_(
                    available_slots.c.doctor_id == doctor_id,
                    available_slots.c.is_available.is_(True),
                    available_slots.c.date >= date.today(),
                )
            )
        )

        return DoctorDashboard(
            greeting=greeting(profile),
            todays_appointments=await appointment_service.todays_appointments(doctor_id),
            status_counts=await appointment_service.status_counts(doctor_id, on=date.today()),
            open_slots=(await self.db.execute(open_slots_stmt)).scalar() or 0,
            total_patients=await appointment_service.count_patients(doctor_id),
        )

    async def admin_dashboard(self, profile: dict) -> AdminDashboard:
        counts = await ProfileService().count_by_role(self.db)

        today_stmt = (
            select(func.count())
            .select_from(appointments)
            .where(appointments.c.appointment_date == date.today())
        )

        return AdminDashboard(
            greeting=greeting(profile),
            users_by_role={role: counts[role] for role in ("patient", "doctor", "admin")},
            active_users=counts["active"],
            appointments_today=(await self.db.execute(today_stmt)).scalar() or 0,
            recent_activity=await ActivityLogService(self.db).recent(limit=10),
        )
