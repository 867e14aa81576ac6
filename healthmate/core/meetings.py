"""Video-call provisioning."""

from typing import Any, Protocol

from healthmate.config import settings


class MeetingProvider(Protocol):
    """Creates the join link for a video consultation."""

    def create_meeting(self, appointment: dict[str, Any]) -> str:
        """Return a join URL for ``appointment``."""
        ...


class JitsiMeetingProvider:
    """Room per appointment on a Jitsi deployment; no account or API call needed."""

    def __init__(self, base_url: str | None = None):
        self.base_url = (base_url or settings.meeting_base_url).rstrip("/")

    def create_meeting(self, appointment: dict[str, Any]) -> str:
        return f"{self.base_url}/healthmate-{appointment['id']}"


def get_meeting_provider() -> MeetingProvider:
    """Dependency returning the configured provider."""
    return JitsiMeetingProvider()
