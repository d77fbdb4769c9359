"""
Screen registry — explicit name → screen mapping.

Screens are registered by name instead of being discovered through a
class hierarchy; lookup of an unregistered name is an error.
"""

from __future__ import annotations

import logging
from typing import Any

from confsync.screens.base import Fragment, Screen

logger = logging.getLogger(__name__)


class UnknownScreenError(KeyError):
    """Raised when no screen is registered under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No screen registered as '{name}'")

    def __str__(self) -> str:
        return self.args[0]


class ScreenRegistry:
    """Central registry and dispatcher for screens."""

    def __init__(self) -> None:
        self._screens: dict[str, Screen] = {}

    def register(self, screen: Screen) -> None:
        name = screen.name
        if name in self._screens:
            logger.warning("Overwriting existing screen: %s", name)
        self._screens[name] = screen
        logger.debug("Registered screen: %s", name)

    def unregister(self, name: str) -> None:
        self._screens.pop(name, None)

    def get(self, name: str) -> Screen:
        """Look up a screen by name.

        Raises:
            UnknownScreenError: If ``name`` is not registered.
        """
        try:
            return self._screens[name]
        except KeyError:
            raise UnknownScreenError(name) from None

    def list_screens(self) -> list[str]:
        return sorted(self._screens)

    def render(self, name: str, session: Any) -> Fragment:
        return self.get(name).render(session)

    def submit(self, name: str, form: dict[str, Any]) -> None:
        self.get(name).handle_submission(form)


def default_registry() -> ScreenRegistry:
    """A registry holding the built-in screens."""
    from confsync.screens.error import ErrorScreen

    registry = ScreenRegistry()
    registry.register(ErrorScreen())
    return registry
