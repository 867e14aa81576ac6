"""Route table, role menus and the route guard shared by the API and the client."""

from dataclasses import dataclass
from enum import Enum

PATIENT = "patient"
DOCTOR = "doctor"
ADMIN = "admin"
ALL_ROLES = frozenset({PATIENT, DOCTOR, ADMIN})

LOGIN_PATH = "/login"
FALLBACK_PATH = "/dashboard"


class SessionStatus(str, Enum):
    """Where the caller's session is in its lifecycle."""

    INITIALIZING = "initializing"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class GuardOutcome(str, Enum):
    """What the shell should do with a path."""

    RENDER = "render"
    REDIRECT = "redirect"
    LOADING = "loading"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Route:
    """A page path; ``roles`` is None for public pages."""

    path: str
    roles: frozenset[str] | None


@dataclass(frozen=True)
class MenuItem:
    """Sidebar entry."""

    title: str
    url: str


@dataclass(frozen=True)
class RouteDecision:
    """Guard verdict for one path."""

    outcome: GuardOutcome
    redirect_to: str | None = None


def _only(*roles: str) -> frozenset[str]:
    return frozenset(roles)


ROUTES: dict[str, Route] = {
    route.path: route
    for route in (
        Route("/", None),
        Route("/login", None),
        Route("/signup", None),
        # Shared pages; the dashboard branches on role
        Route("/dashboard", ALL_ROLES),
        Route("/settings", ALL_ROLES),
        # Patient
        Route("/symptom-checker", _only(PATIENT)),
        Route("/mental-health", _only(PATIENT)),
        Route("/appointments", _only(PATIENT)),
        Route("/records", _only(PATIENT)),
        Route("/education", _only(PATIENT)),
        Route("/vitals", _only(PATIENT)),
        # Doctor
        Route("/doctor", _only(DOCTOR)),
        Route("/doctor/patients", _only(DOCTOR)),
        Route("/doctor/schedule", _only(DOCTOR)),
        Route("/doctor/consultations", _only(DOCTOR)),
        # Admin
        Route("/admin", _only(ADMIN)),
        Route("/admin/users", _only(ADMIN)),
        Route("/admin/logs", _only(ADMIN)),
    )
}

MENUS: dict[str, tuple[MenuItem, ...]] = {
    PATIENT: (
        MenuItem("Dashboard", "/dashboard"),
        MenuItem("AI Symptom Checker", "/symptom-checker"),
        MenuItem("Mental Health", "/mental-health"),
        MenuItem("Appointments", "/appointments"),
        MenuItem("Health Records", "/records"),
        MenuItem("Education Hub", "/education"),
        MenuItem("Vitals Tracker", "/vitals"),
    ),
    DOCTOR: (
        MenuItem("Doctor Dashboard", "/doctor"),
        MenuItem("Patients", "/doctor/patients"),
        MenuItem("Schedule", "/doctor/schedule"),
    ),
    ADMIN: (
        MenuItem("Admin Panel", "/admin"),
        MenuItem("User Management", "/admin/users"),
        MenuItem("System Logs", "/admin/logs"),
    ),
}

HOME_ROUTES = {
    PATIENT: "/dashboard",
    DOCTOR: "/doctor/schedule",
    ADMIN: "/admin/users",
}


def menu_for(role: str | None) -> tuple[MenuItem, ...]:
    """Sidebar items for ``role``; unknown roles get the patient menu."""
    return MENUS.get(role or PATIENT, MENUS[PATIENT])


def home_route(role: str | None) -> str:
    """Where the not-found page's "return home" link points."""
    if role is None:
        return "/"
    return HOME_ROUTES.get(role, FALLBACK_PATH)


def _normalize(path: str) -> str:
    path = path.split("?", 1)[0].split("#", 1)[0] or "/"
    if len(path) > 1:
        path = path.rstrip("/")
    return path


def evaluate_route(status: SessionStatus, role: str | None, path: str) -> RouteDecision:
    """
    Decide whether ``path`` renders for a caller.

    While the session is still initializing the guard reports ``loading``
    instead of redirecting, so a page refresh does not bounce through the
    login screen. Unknown paths are ``not_found`` with the caller's home
    route as the redirect target for the "return home" link.
    """
    route = ROUTES.get(_normalize(path))

    if route is None:
        authenticated = status == SessionStatus.AUTHENTICATED
        return RouteDecision(GuardOutcome.NOT_FOUND, home_route(role if authenticated else None))

    if route.roles is None:
        return RouteDecision(GuardOutcome.RENDER)

    if status == SessionStatus.INITIALIZING:
        return RouteDecision(GuardOutcome.LOADING)

    if status == SessionStatus.ANONYMOUS or role is None:
        return RouteDecision(GuardOutcome.REDIRECT, LOGIN_PATH)

    if role not in route.roles:
        return RouteDecision(GuardOutcome.REDIRECT, FALLBACK_PATH)

    return RouteDecision(GuardOutcome.RENDER)
