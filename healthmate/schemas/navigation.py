"""Navigation and route guard schemas."""

from pydantic import BaseModel

from healthmate.core.navigation import GuardOutcome


class MenuItemResponse(BaseModel):
    """Sidebar entry."""

    title: str
    url: str


class MenuResponse(BaseModel):
    """Sidebar for the caller's role."""

    role: str
    portal: str
    items: list[MenuItemResponse]
    home: str


class RouteDecisionResponse(BaseModel):
    """Route guard verdict for a path."""

    path: str
    outcome: GuardOutcome
    redirect_to: str | None = None
