"""Role-specific dashboard endpoint."""

from fastapi import APIRouter, status

from healthmate.dependencies import CurrentUser, DatabaseSession
from healthmate.schemas.dashboard import AdminDashboard, DoctorDashboard, PatientDashboard
from healthmate.services.dashboard_service import DashboardService

router = APIRouter()


@router.get(
    "/dashboard",
    response_model=PatientDashboard | DoctorDashboard | AdminDashboard,
    status_code=status.HTTP_200_OK,
    summary="Home screen for the caller's role",
)
async def get_dashboard(
    current_user: CurrentUser,
    db: DatabaseSession,
) -> PatientDashboard | DoctorDashboard | AdminDashboard:
    """
    Dashboard for the caller.

    Patients get upcoming appointments, latest vitals, active prescriptions
    and their unread notification count. Doctors get today's schedule with
    status counts, open slots and their patient count. Admins get user and
    appointment totals with recent activity. The ``role`` field tells the
    variants apart.
    """
    return await DashboardService(db).for_profile(current_user)
