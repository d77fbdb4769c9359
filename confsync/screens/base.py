"""
Screen base — the contract between the screen registry and each screen.

A screen does two things: render itself into a document fragment, and
handle a submitted form.  The registry only ever talks to screens
through this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field


class Fragment(BaseModel):
    """An ordered run of rendered nodes, inserted into the page as-is."""

    nodes: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def append(self, node: str) -> None:
        self.nodes.append(node)

    def render(self) -> str:
        return "".join(self.nodes)


class Screen(ABC):
    """Abstract base class for all screens.

    To add a screen:
        1. Subclass Screen
        2. Implement name, render, handle_submission
        3. Register it in a ScreenRegistry
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The screen identifier used for lookup."""

    @abstractmethod
    def render(self, session: Any) -> Fragment:
        """Build this screen's content for the current session."""

    @abstractmethod
    def handle_submission(self, form: dict[str, Any]) -> None:
        """Process a submitted form."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
