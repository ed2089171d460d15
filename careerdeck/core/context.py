from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Literal

from careerdeck.ai.types import GenerationRequest, GenerationResponse, GenerativeClient
from careerdeck.core.config import Settings
from careerdeck.core.session_store import SessionStore

Theme = Literal["light", "dark"]


def parse_theme(value: str | None) -> Theme:
    return "dark" if (value or "").strip().lower() == "dark" else "light"


@dataclass
class UserContext:
    """Per-browser state: theme preference and the mocked signed-in user."""

    theme: Theme = "light"
    user_email: str | None = None

    def get_theme(self) -> Theme:
        return self.theme

    def set_theme(self, theme: str) -> Theme:
        self.theme = parse_theme(theme)
        return self.theme

    def toggle_theme(self) -> Theme:
        return self.set_theme("light" if self.theme == "dark" else "dark")

    @property
    def is_authenticated(self) -> bool:
        return self.user_email is not None

    def login(self, email: str) -> None:
        self.user_email = email.strip()

    def logout(self) -> None:
        self.user_email = None


class _DeferredClient:
    """Resolves the provider on first use so a missing key fails the request, not startup."""

    def __init__(self, context: "AppContext"):
        self._context = context

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        return await self._context.get_client().generate(request)


@dataclass
class AppContext:
    settings: Settings
    client_factory: Callable[[], GenerativeClient]
    sessions: SessionStore
    _client: GenerativeClient | None = field(default=None, init=False, repr=False)

    @property
    def client(self) -> GenerativeClient:
        return _DeferredClient(self)

    def get_client(self) -> GenerativeClient:
        if self._client is None:
            self._client = self.client_factory()
        return self._client

    def set_client(self, client: GenerativeClient) -> None:
        self._client = client
