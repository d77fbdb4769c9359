"""
Error screen — shown after something has already gone wrong.

The failure itself is reported elsewhere on the page, so this screen
contributes nothing and accepts no input.
"""

from __future__ import annotations

from typing import Any

from confsync.screens.base import Fragment, Screen


class ErrorScreen(Screen):
    @property
    def name(self) -> str:
        return "eprint_error"

    def render(self, session: Any) -> Fragment:
        return Fragment()

    def handle_submission(self, form: dict[str, Any]) -> None:
        # Nothing to act on; the request has already failed.
        return None
