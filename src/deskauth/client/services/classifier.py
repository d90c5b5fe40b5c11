"""Flow completion detection for embedded browser navigations.

Each navigation reported by the browser surface is matched against a
completion pattern. The first match ends the flow and captures the
terminal URI (and posted body, for form_post responses).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

# Matches an ``error`` parameter in the query string or fragment. Successful
# redirects are only detected by a caller-supplied pattern, see
# completion_pattern_for_redirect().
DEFAULT_COMPLETION_PATTERN = r"[?&#]error="


class FlowState(str, Enum):
    IN_FLIGHT = "in_flight"
    COMPLETE = "complete"


class NavigationDecision(str, Enum):
    """What the browser host should do after a navigation."""

    CONTINUE = "continue"
    CLOSE = "close"


@dataclass(frozen=True)
class NavigationEvent:
    """A navigation reported by the browser surface.

    ``body`` carries the form-encoded POST body when the identity provider
    answers with response_mode=form_post.
    """

    uri: str
    body: str | None = None


def completion_pattern_for_redirect(redirect_uri: str) -> str:
    """Build a pattern matching the redirect URI or an error redirect.

    Only the redirect URI itself, optionally followed by its query or
    fragment, matches. Longer paths and hosts sharing the prefix do not.
    """
    follows = "[?#&]" if "?" in redirect_uri else "[?#]"
    return (
        rf"^{re.escape(redirect_uri)}(?={follows}|$)"
        rf"|{DEFAULT_COMPLETION_PATTERN}"
    )


class FlowCompletionClassifier:
    """Two-state observer deciding when an interactive flow is finished.

    Events must be fed in the order the browser produced them. Once
    complete, later events are ignored and the first capture is kept.
    """

    def __init__(self, completion_pattern: str | re.Pattern[str] | None = None):
        """Initialize the classifier.

        Args:
            completion_pattern: Regex searched in each absolute navigation
                URI. Defaults to matching an ``error=`` parameter only.
        """
        if completion_pattern is None:
            completion_pattern = DEFAULT_COMPLETION_PATTERN
        self._pattern = (
            completion_pattern
            if isinstance(completion_pattern, re.Pattern)
            else re.compile(completion_pattern)
        )
        self._state = FlowState.IN_FLIGHT
        self._capture: NavigationEvent | None = None

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def is_complete(self) -> bool:
        return self._state is FlowState.COMPLETE

    @property
    def capture(self) -> NavigationEvent | None:
        """The navigation that completed the flow, if any."""
        return self._capture

    def observe(self, event: NavigationEvent) -> NavigationDecision:
        """Classify one navigation event.

        Returns:
            NavigationDecision.CLOSE when the flow is complete, otherwise
            NavigationDecision.CONTINUE
        """
        if self.is_complete:
            logger.debug(f"Ignoring navigation after completion: {event.uri}")
            return NavigationDecision.CLOSE

        if self._pattern.search(event.uri):
            self._state = FlowState.COMPLETE
            self._capture = event
            logger.debug(f"Navigation completed the flow: {event.uri}")
            return NavigationDecision.CLOSE

        logger.debug(f"Navigation in flight: {event.uri}")
        return NavigationDecision.CONTINUE
