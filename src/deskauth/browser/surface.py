"""Embedded browser surface contract.

The host application owns the actual browser window. deskauth only needs
to tell it where to go, hear about navigations, and ask it to close.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Protocol

from deskauth.client.services.classifier import NavigationEvent


@dataclass(frozen=True)
class BrowserSurfaceConfig:
    """Configuration handed to the host when a browser surface is created.

    ``enable_os_sso`` lets the embedded browser sign in with the operating
    system account. It is per surface, so concurrent flows may differ.
    """

    user_agent: str | None = None
    profile_directory: str | None = None
    enable_os_sso: bool = False


class BrowserSurface(Protocol):
    """Protocol for the embedded browser window driving the user login.

    ``navigation_events`` yields one event per completed navigation, in
    browser order, and stops when the window has been closed, whether by
    the user or by ``close``.
    """

    async def navigate(self, uri: str) -> None:
        ...

    def navigation_events(self) -> AsyncIterator[NavigationEvent]:
        ...

    async def close(self) -> None:
        ...


BrowserSurfaceFactory = Callable[[BrowserSurfaceConfig], BrowserSurface]
