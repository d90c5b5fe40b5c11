"""Interactive authorization through an embedded browser surface.

Drives one browser surface from the authorization URL to the terminal
redirect, feeding every navigation to the completion classifier.
"""

from __future__ import annotations

import asyncio
import logging

from deskauth.browser.surface import BrowserSurface
from deskauth.client.models.errors import UserCancelledError
from deskauth.client.models.flow import AuthorizationResult, ResponseMode
from deskauth.client.services.classifier import (
    FlowCompletionClassifier,
    NavigationDecision,
)
from deskauth.client.services.results import parse_terminal_result

logger = logging.getLogger(__name__)


class InteractiveAuthorization:
    """Runs a single interactive flow on a browser surface.

    Blocks until the classifier reports completion or the window goes away.
    A timeout, if configured, force-closes the window and is reported the
    same way as the user closing it.
    """

    def __init__(
        self,
        surface: BrowserSurface,
        classifier: FlowCompletionClassifier | None = None,
        response_mode: ResponseMode | None = None,
        timeout: float | None = None,
    ):
        self.surface = surface
        self.classifier = classifier or FlowCompletionClassifier()
        self.response_mode = response_mode
        self.timeout = timeout
        self._surface_closed = False

    async def run(self, authorization_url: str) -> AuthorizationResult:
        """Navigate to the authorization URL and wait for the terminal redirect.

        Returns:
            AuthorizationResult parsed from the completing navigation

        Raises:
            UserCancelledError: If the window closed, or the timeout expired,
                before the flow completed

        Errors raised by the browser surface propagate after the surface is
        closed.
        """
        self._surface_closed = False
        finished = False
        try:
            logger.debug("Opening browser surface for interactive authorization")
            await self.surface.navigate(authorization_url)
            await asyncio.wait_for(self._consume_navigations(), timeout=self.timeout)
            finished = True
        except asyncio.TimeoutError:
            logger.warning(
                f"Interactive authorization timed out after {self.timeout}s, "
                "closing browser surface"
            )
            await self._close_surface()
            raise UserCancelledError(
                f"Authorization did not complete within {self.timeout} seconds"
            ) from None
        finally:
            if not finished and not self._surface_closed:
                logger.warning(
                    "Interactive authorization failed, closing browser surface"
                )
                await self._close_surface()

        capture = self.classifier.capture
        if capture is None:
            raise UserCancelledError(
                "Browser window was closed before authorization completed"
            )

        return parse_terminal_result(capture, self.response_mode)

    async def _consume_navigations(self) -> None:
        async for event in self.surface.navigation_events():
            if self.classifier.observe(event) is NavigationDecision.CLOSE:
                await self._close_surface()
                return
        logger.info("Browser surface closed by the user")

    async def _close_surface(self) -> None:
        self._surface_closed = True
        await self.surface.close()
