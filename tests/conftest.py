import asyncio
from collections.abc import AsyncIterator

import pytest

from deskauth.browser.surface import BrowserSurfaceConfig
from deskauth.client.services.classifier import NavigationEvent


class ScriptedBrowserSurface:
    """In-memory browser surface replaying a fixed list of navigations.

    When the script runs out without the surface being closed, the event
    stream ends as if the user had closed the window. With ``hang=True`` it
    instead waits until ``close`` is called.
    """

    def __init__(
        self,
        navigations: list[NavigationEvent | str] | None = None,
        hang: bool = False,
        config: BrowserSurfaceConfig | None = None,
    ):
        self.navigations = [
            NavigationEvent(uri=item) if isinstance(item, str) else item
            for item in navigations or []
        ]
        self.hang = hang
        self.config = config
        self.navigated_to: list[str] = []
        self.delivered: list[NavigationEvent] = []
        self.close_calls = 0
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def navigate(self, uri: str) -> None:
        self.navigated_to.append(uri)

    async def navigation_events(self) -> AsyncIterator[NavigationEvent]:
        for event in self.navigations:
            if self.closed:
                return
            self.delivered.append(event)
            yield event
        if self.hang:
            await self._closed.wait()

    async def close(self) -> None:
        self.close_calls += 1
        self._closed.set()


@pytest.fixture
def scripted_surface():
    return ScriptedBrowserSurface
