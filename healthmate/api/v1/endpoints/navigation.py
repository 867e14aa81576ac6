"""Navigation endpoints: sidebar menus and the route guard."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.security import HTTPAuthorizationCredentials

from healthmate.core.navigation import SessionStatus, evaluate_route, home_route, menu_for
from healthmate.core.security import decode_access_token
from healthmate.dependencies import CurrentUser, security
from healthmate.schemas.navigation import MenuItemResponse, MenuResponse, RouteDecisionResponse

router = APIRouter(prefix="/navigation")

PORTAL_NAMES = {
    "patient": "Patient Portal",
    "doctor": "Doctor Portal",
    "admin": "Admin Portal",
}


@router.get(
    "/menu",
    response_model=MenuResponse,
    status_code=status.HTTP_200_OK,
    summary="Sidebar menu for the caller",
)
async def get_menu(current_user: CurrentUser) -> MenuResponse:
    role = current_user["role"]
    return MenuResponse(
        role=role,
        portal=PORTAL_NAMES.get(role, PORTAL_NAMES["patient"]),
        items=[MenuItemResponse(title=item.title, url=item.url) for item in menu_for(role)],
        home=home_route(role),
    )


@router.get(
    "/resolve",
    response_model=RouteDecisionResponse,
    status_code=status.HTTP_200_OK,
    summary="Evaluate the route guard for a path",
)
async def resolve_route(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    path: str = Query(..., min_length=1, max_length=500),
) -> RouteDecisionResponse:
    """
    Tell the shell whether ``path`` renders, redirects or is unknown.

    Works without a token; an absent or invalid token counts as anonymous.
    The role is read from the access token claims.
    """
    payload = decode_access_token(credentials.credentials) if credentials else None
    role = payload.get("role") if payload else None

    session_status = SessionStatus.AUTHENTICATED if role else SessionStatus.ANONYMOUS
    decision = evaluate_route(session_status, role, path)

    return RouteDecisionResponse(
        path=path,
        outcome=decision.outcome,
        redirect_to=decision.redirect_to,
    )
