"""Client-side session context for portal front ends and scripts."""

from collections.abc import Callable
from typing import Any, Protocol

import httpx
import structlog

from healthmate.core.navigation import SessionStatus

logger = structlog.get_logger(__name__)

NOT_AUTHENTICATED = "not authenticated"
CONNECTION_ERROR = "Unable to reach the server. Please try again."
UNEXPECTED_ERROR = "Something went wrong. Please try again."

SessionListener = Callable[[SessionStatus, dict | None], None]


class TokenStore(Protocol):
    """Where the refresh token survives between runs."""

    def load(self) -> str | None: ...

    def save(self, refresh_token: str) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStore:
    """Token store kept in process memory."""

    def __init__(self, refresh_token: str | None = None):
        self.refresh_token = refresh_token

    def load(self) -> str | None:
        return self.refresh_token

    def save(self, refresh_token: str) -> None:
        self.refresh_token = refresh_token

    def clear(self) -> None:
        self.refresh_token = None


class SessionRequestError(Exception):
    """An API call failed; ``message`` is fit to show to the user."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def error_message(response: httpx.Response) -> str:
    """Human-readable message from an API error body."""
    try:
        body = response.json()
    except ValueError:
        return UNEXPECTED_ERROR

    if not isinstance(body, dict):
        return UNEXPECTED_ERROR

    # Validation failures carry pydantic's messages in ``details``
    details = body.get("details")
    if isinstance(details, list) and details:
        msg = details[0].get("msg", "") if isinstance(details[0], dict) else ""
        return msg.removeprefix("Value error, ") or UNEXPECTED_ERROR

    message = body.get("message")
    return message if isinstance(message, str) and message else UNEXPECTED_ERROR


class PortalSession:
    """
    The caller's identity and tokens for one portal client.

    One instance is created per client and handed to whatever needs it;
    there is no module-level session. Every operation that can fail for a
    user-facing reason returns an error string (empty on success) instead
    of raising. A request rejected with 401 is retried once after the
    refresh token is exchanged for new tokens; if that exchange fails the
    session ends. Nothing else is retried.

    Example:
        session = PortalSession("http://localhost:8000")
        await session.initialize()
        if error := await session.login(email, password):
            show_toast(error)
    """

    def __init__(
        self,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        token_store: TokenStore | None = None,
        api_prefix: str = "/api/v1",
        timeout: float = 30.0,
    ):
        self.client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self.token_store = token_store or MemoryTokenStore()
        self.api_prefix = api_prefix
        self.status = SessionStatus.INITIALIZING
        self.profile: dict | None = None
        self.access_token: str | None = None
        self.refresh_token: str | None = None
        self._initialized = False
        self._listeners: list[SessionListener] = []

    @property
    def is_authenticated(self) -> bool:
        return self.status == SessionStatus.AUTHENTICATED

    @property
    def role(self) -> str | None:
        return self.profile["role"] if self.profile else None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Call ``listener(status, profile)`` on every session change.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self.status, self.profile)

    def _start(self, body: dict[str, Any]) -> None:
        self.access_token = body["access_token"]
        self.refresh_token = body["refresh_token"]
        self.profile = body["profile"]
        self.status = SessionStatus.AUTHENTICATED
        self.token_store.save(self.refresh_token)
        self._emit()

    def _end(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.profile = None
        self.status = SessionStatus.ANONYMOUS
        self.token_store.clear()
        self._emit()

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            return await self.client.request(
                method, f"{self.api_prefix}{path}", headers=headers, **kwargs
            )
        except httpx.HTTPError as e:
            logger.warning("session_request_failed", path=path, error=str(e))
            raise SessionRequestError(CONNECTION_ERROR) from e

    async def _refresh(self) -> bool:
        """Exchange the refresh token for a new pair; False when the server refuses it."""
        response = await self._send(
            "POST", "/auth/refresh", json={"refresh_token": self.refresh_token}
        )
        if response.is_error:
            logger.info("session_refresh_failed", status_code=response.status_code)
            return False

        self._start(response.json())
        return True

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Call an API path with the session's bearer token.

        An expired access token is refreshed and the call repeated once.

        Raises:
            SessionRequestError: On transport failures and non-2xx responses
        """
        response = await self._send(method, path, **kwargs)

        if (
            response.status_code == 401
            and self.refresh_token
            and not path.startswith("/auth/")
        ):
            if await self._refresh():
                response = await self._send(method, path, **kwargs)
            else:
                self._end()

        if response.is_error:
            raise SessionRequestError(error_message(response), response.status_code)
        return response

    async def initialize(self) -> None:
        """
        Restore a stored session, once.

        Later calls return immediately. Without a stored refresh token, or
        when the server rejects it, the session becomes anonymous.
        """
        if self._initialized:
            return
        self._initialized = True

        stored = self.token_store.load()
        if not stored:
            self._end()
            return

        try:
            response = await self.request("POST", "/auth/refresh", json={"refresh_token": stored})
        except SessionRequestError as e:
            logger.info("session_restore_failed", reason=e.message)
            self._end()
            return

        self._start(response.json())

    async def login(self, email: str, password: str) -> str:
        """Sign in; returns ``""`` or the reason it failed."""
        try:
            response = await self.request(
                "POST", "/auth/login", json={"email": email, "password": password}
            )
        except SessionRequestError as e:
            return e.message

        self._start(response.json())
        return ""

    async def signup(
        self,
        email: str,
        password: str,
        full_name: str,
        role: str = "patient",
        additional_data: dict[str, Any] | None = None,
    ) -> str:
        """Create an account and sign in; returns ``""`` or the reason it failed."""
        payload = {
            "email": email,
            "password": password,
            "full_name": full_name,
            "role": role,
            "additional_data": additional_data or {},
        }
        try:
            response = await self.request("POST", "/auth/signup", json=payload)
        except SessionRequestError as e:
            return e.message

        self._start(response.json())
        return ""

    async def logout(self) -> str:
        """
        Revoke the refresh token and clear the local identity.

        Local state is cleared even when the server cannot be reached.
        """
        refresh_token = self.refresh_token
        error = ""
        if refresh_token:
            try:
                await self.request("POST", "/auth/logout", json={"refresh_token": refresh_token})
            except SessionRequestError as e:
                error = e.message
        self._end()
        return error

    async def update_profile(self, changes: dict[str, Any]) -> str:
        """Merge ``changes`` into the caller's profile; returns ``""`` or the reason it failed."""
        if not self.is_authenticated:
            return NOT_AUTHENTICATED

        try:
            response = await self.request("PATCH", "/profiles/me", json=changes)
        except SessionRequestError as e:
            return e.message

        self.profile = response.json()
        self._emit()
        return ""

    async def aclose(self) -> None:
        await self.client.aclose()
